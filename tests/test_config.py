"""
Tests for configuration and input validation
"""

import dataclasses

import numpy as np
import pandas as pd
import pytest

from lpirf import (
    Dataset,
    EstimationConfig,
    EstimatorType,
    ExecutorType,
    InvalidCriterionError,
    LagCriterion,
    RegimeConfig,
    ShockType,
    ValidationError,
    load_config_from_file,
    save_config_to_file,
)


def test_defaults():
    config = EstimationConfig(horizons=12, lags_endog=4)
    assert config.shock_type == ShockType.STD_DEV
    assert config.estimator == EstimatorType.OLS
    assert config.executor == ExecutorType.PROCESS
    assert config.confint == 1.96
    assert not config.nonlinear
    assert config.max_candidate_lags == 4


def test_exactly_one_lag_setting():
    with pytest.raises(ValidationError):
        EstimationConfig(horizons=4)
    with pytest.raises(ValidationError):
        EstimationConfig(horizons=4, lags_endog=2, lags_criterion='AIC', max_lags=4)
    with pytest.raises(ValidationError):
        EstimationConfig(horizons=4, lags_criterion='AIC')
    with pytest.raises(ValidationError):
        EstimationConfig(horizons=4, lags_endog=2, max_lags=4)


def test_criterion_parsing():
    config = EstimationConfig(horizons=4, lags_criterion='aicc', max_lags=3)
    assert config.lags_criterion == LagCriterion.AICC
    assert config.max_candidate_lags == 3
    assert LagCriterion.parse('Bic') == LagCriterion.BIC
    with pytest.raises(InvalidCriterionError):
        EstimationConfig(horizons=4, lags_criterion='HQ', max_lags=3)


@pytest.mark.parametrize("changes", [
    {"horizons": 0},
    {"horizons": 2.5},
    {"lags_endog": -1},
    {"trend": 3},
    {"confint": -1.0},
    {"num_workers": 0},
    {"shock_type": "one_sd"},
    {"estimator": "gmm"},
    {"executor": "cluster"},
])
def test_invalid_settings(changes):
    settings = {"horizons": 4, "lags_endog": 2}
    settings.update(changes)
    with pytest.raises(ValidationError):
        EstimationConfig(**settings)


def test_config_is_immutable():
    config = EstimationConfig(horizons=4, lags_endog=2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.horizons = 8
    updated = config.update(horizons=8)
    assert updated.horizons == 8
    assert config.horizons == 4


def test_regime_settings():
    config = EstimationConfig(horizons=4, lags_endog=2, regime={"gamma": 2.0, "use_hp": True})
    assert config.nonlinear
    assert config.regime == RegimeConfig(gamma=2.0, use_hp=True)


def test_json_round_trip(tmp_path):
    config = EstimationConfig(horizons=6, lags_criterion='BIC', max_lags=4, shock_type='unit',
                              regime=RegimeConfig(gamma=1.5), executor='thread')
    path = tmp_path / "config" / "lp.json"
    save_config_to_file(config, path)

    assert load_config_from_file(path) == config


def test_from_dict_uses_defaults():
    config = EstimationConfig.from_dict({"horizons": 8, "lags_criterion": "AIC", "max_lags": 2})
    assert config.lags_endog is None
    assert config.trend == 0

    with pytest.raises(FileNotFoundError):
        load_config_from_file("missing.json")


def test_dataset_from_arrays():
    np.random.seed(1)
    dataset = Dataset(endog=np.random.normal(0, 1, (20, 2)), shock=np.arange(20.0))

    assert dataset.endog_names == ('y1', 'y2')
    assert dataset.n_obs == 20
    assert dataset.n_endog == 2
    assert dataset.shock_name == 'shock1'


def test_dataset_validation():
    endog = pd.DataFrame({'a': np.arange(10.0), 'b': np.arange(10.0)})

    with pytest.raises(ValidationError):
        Dataset(endog=endog, shock=np.arange(9.0))
    with pytest.raises(ValidationError):
        Dataset(endog=endog.assign(a=[np.nan] + [1.0] * 9))
    with pytest.raises(ValidationError):
        Dataset(endog=endog.assign(b=list("abcdefghij")))
    with pytest.raises(ValidationError):
        Dataset(endog=endog, switching=pd.Series(np.arange(10.0), index=range(5, 15)))
    with pytest.raises(ValidationError):
        Dataset(endog=endog, shock=np.ones((10, 2)))
