"""
Shared fixtures: small simulated macro systems with known structure.
"""

import numpy as np
import pandas as pd
import pytest

from lpirf import Dataset, EstimationConfig

VAR_COEFFICIENTS = np.array([
    [0.5, 0.1, 0.0],
    [0.2, 0.4, 0.1],
    [0.0, 0.1, 0.3],
])

SHOCK_IMPACT = np.array([1.0, 0.5, -0.3])


def simulate_var(n_obs=100, seed=42, burn_in=50):
    """Three-variable VAR(1) with unit-variance correlated errors"""
    np.random.seed(seed)
    n_total = n_obs + burn_in
    errors = np.random.normal(0, 1, (n_total, 3))
    errors[:, 1] += 0.4 * errors[:, 0]
    errors[:, 2] += 0.2 * errors[:, 0] + 0.3 * errors[:, 1]

    y = np.zeros((n_total, 3))
    for t in range(1, n_total):
        y[t] = VAR_COEFFICIENTS @ y[t - 1] + errors[t]

    index = pd.date_range("1990-01-01", periods=n_obs, freq="QS")
    return pd.DataFrame(y[burn_in:], index=index, columns=["output", "inflation", "rate"])


def simulate_shock_system(n_obs=200, seed=7, burn_in=50):
    """VAR(1) driven by an observed shock, plus an instrument for that shock"""
    np.random.seed(seed)
    n_total = n_obs + burn_in
    shock = np.random.normal(0, 1, n_total)
    instrument = 0.8 * shock + np.random.normal(0, 0.5, n_total)
    errors = np.random.normal(0, 0.5, (n_total, 3))

    y = np.zeros((n_total, 3))
    for t in range(1, n_total):
        y[t] = VAR_COEFFICIENTS @ y[t - 1] + SHOCK_IMPACT * shock[t] + errors[t]

    index = pd.date_range("1970-01-01", periods=n_obs, freq="QS")
    endog = pd.DataFrame(y[burn_in:], index=index, columns=["output", "inflation", "rate"])
    return (endog,
            pd.Series(shock[burn_in:], index=index, name="policy_shock"),
            pd.Series(instrument[burn_in:], index=index, name="narrative"))


@pytest.fixture
def var_data():
    return simulate_var()


@pytest.fixture
def var_dataset(var_data):
    return Dataset(endog=var_data)


@pytest.fixture
def shock_dataset():
    endog, shock, instrument = simulate_shock_system()
    return Dataset(endog=endog, shock=shock, instruments=instrument)


@pytest.fixture
def switching_dataset(var_data):
    np.random.seed(11)
    cycle = np.sin(np.arange(len(var_data)) / 6.0) + 0.3 * np.random.normal(0, 1, len(var_data))
    switching = pd.Series(cycle, index=var_data.index, name="output_gap")
    return Dataset(endog=var_data, switching=switching)


@pytest.fixture
def serial_config():
    return EstimationConfig(horizons=8, lags_endog=1, trend=0, confint=1.96, executor="serial")
