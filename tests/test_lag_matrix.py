"""
Tests for the lagged design matrices
"""

import numpy as np
import pandas as pd
import pytest

from lpirf import Dataset, InsufficientDataError, ValidationError
from lpirf.core.lag_matrix import LagMatrixBuilder


@pytest.fixture
def ramp_dataset():
    endog = pd.DataFrame({'a': np.arange(10.0), 'b': 10 * np.arange(10.0)})
    return Dataset(endog=endog)


def test_column_layout_and_alignment(ramp_dataset):
    lm = LagMatrixBuilder(ramp_dataset).build(2)

    assert lm.start == 2
    assert lm.y.shape == (8, 2)
    assert lm.x.shape == (8, 5)
    assert lm.column_names == ('const', 'a_lag1', 'b_lag1', 'a_lag2', 'b_lag2')
    assert lm.n_deterministic == 1
    assert lm.lag_block_starts == (1,)
    np.testing.assert_array_equal(lm.lag_block(), [1, 2])

    # row i is dated start + i
    for i in range(lm.n_obs):
        t = lm.start + i
        assert lm.y[i, 0] == t
        assert lm.x[i, 1] == t - 1
        assert lm.x[i, 2] == 10 * (t - 1)
        assert lm.x[i, 3] == t - 2
    np.testing.assert_array_equal(lm.x[:, 0], np.ones(8))


def test_trend_columns(ramp_dataset):
    lm = LagMatrixBuilder(ramp_dataset, trend=2).build(1)

    assert lm.column_names[:3] == ('const', 'trend', 'trend_sq')
    assert lm.n_deterministic == 3
    np.testing.assert_array_equal(lm.x[:, 1], np.arange(2.0, 11.0))
    np.testing.assert_array_equal(lm.x[:, 2], np.arange(2.0, 11.0) ** 2)


def test_zero_lags_keeps_only_shock(ramp_dataset):
    dataset = Dataset(endog=ramp_dataset.endog, shock=pd.Series(np.linspace(0, 1, 10), name='mp'))
    lm = LagMatrixBuilder(dataset, include_shock=True).build(0)

    assert lm.start == 0
    assert lm.column_names == ('const', 'mp')
    assert lm.shock_columns == (1,)
    assert lm.lag_block_starts == ()
    with pytest.raises(ValueError):
        lm.lag_block()


def test_exogenous_lags_move_first_row(ramp_dataset):
    exog = pd.DataFrame({'oil': np.arange(100.0, 110.0)})
    contemp = pd.DataFrame({'dummy': np.arange(10.0) % 2})
    dataset = Dataset(endog=ramp_dataset.endog, exog=exog, contemp=contemp)
    lm = LagMatrixBuilder(dataset, lags_exog=3).build(1)

    assert lm.start == 3
    assert lm.column_names == ('const', 'a_lag1', 'b_lag1', 'oil_lag1', 'oil_lag2', 'oil_lag3', 'dummy')
    assert lm.n_contemp == 1
    assert lm.x[0, 3] == 102.0
    assert lm.x[0, 5] == 100.0
    assert lm.x[0, 6] == 1.0


def test_exogenous_data_requires_lag_order(ramp_dataset):
    dataset = Dataset(endog=ramp_dataset.endog, exog=np.arange(10.0))
    with pytest.raises(ValidationError):
        LagMatrixBuilder(dataset)


def test_instruments_are_row_aligned(ramp_dataset):
    instrument = pd.Series(np.arange(10.0) * 3, name='narrative')
    dataset = Dataset(endog=ramp_dataset.endog, shock=np.arange(10.0), instruments=instrument)
    lm = LagMatrixBuilder(dataset, include_shock=True, include_instruments=True).build(2)

    assert lm.z.shape == (8, 1)
    np.testing.assert_array_equal(lm.z[:, 0], np.arange(2.0, 10.0) * 3)


def test_for_horizon_leads_responses(ramp_dataset):
    lm = LagMatrixBuilder(ramp_dataset).build(1)
    y_h, x_h, z_h = lm.for_horizon(3)

    assert z_h is None
    assert lm.sample_size(3) == lm.n_obs - 2
    assert y_h.shape[0] == x_h.shape[0] == lm.sample_size(3)
    # y_{t+h-1} paired with x_t
    assert y_h[0, 0] == lm.start + 2
    assert x_h[0, 1] == lm.start - 1


def test_min_start_shifts_zero_lag_design(ramp_dataset):
    lm = LagMatrixBuilder(ramp_dataset, min_start=1).build(0)
    assert lm.start == 1
    assert lm.n_obs == 9


def test_too_short_sample_raises():
    dataset = Dataset(endog=pd.DataFrame({'a': np.arange(5.0), 'b': np.arange(5.0) ** 2}))
    builder = LagMatrixBuilder(dataset)
    with pytest.raises(InsufficientDataError):
        builder.build(4)
    with pytest.raises(InsufficientDataError):
        builder.build(-1)


def test_build_candidates(ramp_dataset):
    candidates = LagMatrixBuilder(ramp_dataset).build_candidates([1, 2, 3])
    assert sorted(candidates) == [1, 2, 3]
    assert [candidates[p].n_regressors for p in (1, 2, 3)] == [3, 5, 7]


def test_build_candidates_skips_orders_without_rows(ramp_dataset):
    candidates = LagMatrixBuilder(ramp_dataset).build_candidates(range(1, 13))
    assert sorted(candidates) == list(range(1, 9))

    with pytest.raises(InsufficientDataError):
        LagMatrixBuilder(ramp_dataset).build_candidates([9, 12])
