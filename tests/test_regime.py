"""
Tests for smooth transition weights
"""

import numpy as np
import pandas as pd
import pytest
from statsmodels.tsa.filters.hp_filter import hpfilter

from lpirf import Dataset, InsufficientDataError, ValidationError, RegimeConfig
from lpirf.core.lag_matrix import LagMatrixBuilder
from lpirf.core.regime import RegimeWeighter, hp_filter


def test_small_gamma_gives_equal_weights():
    z = np.linspace(-10, 10, 50)
    fz = RegimeWeighter(gamma=1e-10).transition_values(z)
    np.testing.assert_allclose(fz, 0.5, atol=1e-8)


def test_transition_formula():
    z = np.array([-2.0, -0.5, 0.0, 0.5, 2.0])
    fz = RegimeWeighter(gamma=3.0).transition_values(z)
    expected = np.exp(-3.0 * z) / (1 + np.exp(-3.0 * z))
    np.testing.assert_allclose(fz, expected)
    # high switching values load on regime 1
    assert np.all(np.diff(fz) < 0)


def test_weights_stay_inside_unit_interval():
    z = np.array([-1e6, -50.0, 0.0, 50.0, 1e6])
    fz = RegimeWeighter(gamma=10.0).transition_values(z)
    assert np.all(fz > 0)
    assert np.all(fz < 1)


def test_invalid_settings():
    with pytest.raises(ValidationError):
        RegimeWeighter(gamma=0.0)
    with pytest.raises(ValidationError):
        RegimeWeighter(gamma=1.0, use_hp=True, hp_lambda=-5)
    with pytest.raises(ValidationError):
        RegimeConfig(gamma=-1.0)


def test_hp_filter_decomposition():
    np.random.seed(3)
    series = np.cumsum(np.random.normal(0, 1, 120))
    cycle, trend = hp_filter(series, 1600)

    np.testing.assert_allclose(cycle + trend, series)
    expected_cycle, _ = hpfilter(series, lamb=1600)
    np.testing.assert_allclose(cycle, np.asarray(expected_cycle))


def test_hp_input_is_standardized_cycle():
    np.random.seed(4)
    series = np.cumsum(np.random.normal(0, 1, 120))
    z_star = RegimeWeighter(gamma=1.5, use_hp=True, hp_lambda=1600).transition_input(series)

    assert abs(z_star.mean()) < 1e-10
    assert z_star.std(ddof=1) == pytest.approx(1.0)


def test_lagged_weights_alignment(switching_dataset):
    weighter = RegimeWeighter(gamma=2.0)
    fz = weighter.transition_values(switching_dataset.switching.to_numpy())
    lm = LagMatrixBuilder(switching_dataset, min_start=1).build(2)

    weights = weighter.aligned_weights(fz, lm)
    assert len(weights) == lm.n_obs
    for i in (0, 10, lm.n_obs - 1):
        assert weights[i] == fz[lm.start - 1 + i]

    contemporaneous = RegimeWeighter(gamma=2.0, lag_switching=False).aligned_weights(fz, lm)
    assert contemporaneous[0] == fz[lm.start]


def test_lagged_weights_need_a_previous_observation(switching_dataset):
    weighter = RegimeWeighter(gamma=2.0)
    fz = weighter.transition_values(switching_dataset.switching.to_numpy())
    lm = LagMatrixBuilder(switching_dataset).build(0)
    with pytest.raises(InsufficientDataError):
        weighter.aligned_weights(fz, lm)


def test_weighted_design_splits_state_columns(switching_dataset):
    weighter = RegimeWeighter(gamma=2.0)
    fz = weighter.transition_values(switching_dataset.switching.to_numpy())
    lm = LagMatrixBuilder(switching_dataset, trend=1, min_start=1).build(1)
    weighted = weighter.weight(lm, fz)

    n_det, n_state = 2, 3
    assert weighted.n_regressors == n_det + 2 * n_state
    np.testing.assert_array_equal(weighted.x[:, :n_det], lm.x[:, :n_det])
    np.testing.assert_allclose(weighted.x[:, n_det:n_det + n_state]
                               + weighted.x[:, n_det + n_state:], lm.x[:, n_det:])
    assert weighted.lag_block_starts == (2, 5)
    assert weighted.n_regimes == 2
    np.testing.assert_array_equal(weighted.lag_block(1), [5, 6, 7])
    assert weighted.column_names[2] == 'output_lag1_r1'
    assert weighted.column_names[5] == 'output_lag1_r2'


def test_weighted_design_with_shock_and_instruments(switching_dataset):
    shock = pd.Series(np.sin(np.arange(switching_dataset.n_obs)), index=switching_dataset.endog.index)
    dataset = Dataset(endog=switching_dataset.endog, shock=shock, instruments=shock * 2,
                      switching=switching_dataset.switching)
    weighter = RegimeWeighter(gamma=2.0)
    fz = weighter.transition_values(dataset.switching.to_numpy())
    lm = LagMatrixBuilder(dataset, include_shock=True, include_instruments=True, min_start=1).build(1)
    weighted = weighter.weight(lm, fz)

    # state columns: shock plus three lags
    assert weighted.shock_columns == (1, 5)
    assert weighted.lag_block_starts == (2, 6)
    assert weighted.z.shape == (lm.n_obs, 2)
    np.testing.assert_allclose(weighted.z.sum(axis=1), lm.z[:, 0])


@pytest.mark.parametrize("series", [np.full(60, 2.5), np.linspace(0.0, 5.0, 60)])
def test_hp_input_without_cycle(series):
    weighter = RegimeWeighter(gamma=2.0, use_hp=True, hp_lambda=1600)
    with pytest.raises(ValidationError):
        weighter.transition_values(series)


def test_constant_series_without_hp():
    fz = RegimeWeighter(gamma=2.0).transition_values(np.full(10, 1.0))
    np.testing.assert_allclose(fz, 1 / (1 + np.exp(2.0)))
