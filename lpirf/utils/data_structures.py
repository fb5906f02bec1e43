"""
Data structures for local projection estimation

This module contains the input table (Dataset) and the externally visible
result (ResponseArrays) shared across the estimation framework.

Author: LPIRF Development Team
Date: 2026
Version: 1.0
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from ..config import EstimationConfig
from ..exceptions import ValidationError, PerShockFailure


def _as_frame(data, name, index, prefix):
    """Convert input to a DataFrame aligned with ``index``."""
    if isinstance(data, pd.Series):
        frame = data.to_frame(name=data.name if data.name is not None else f"{prefix}1")
    elif isinstance(data, pd.DataFrame):
        frame = data
    else:
        values = np.asarray(data, dtype=float)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.ndim != 2:
            raise ValidationError(f"{name} must be one- or two-dimensional")
        if index is not None and len(values) != len(index):
            raise ValidationError(f"{name} length ({len(values)}) does not match "
                                  f"endogenous data length ({len(index)})")
        frame = pd.DataFrame(values, index=index,
                             columns=[f"{prefix}{i + 1}" for i in range(values.shape[1])])

    if index is not None:
        if len(frame) != len(index):
            raise ValidationError(f"{name} length ({len(frame)}) does not match "
                                  f"endogenous data length ({len(index)})")
        if not frame.index.equals(index):
            raise ValidationError(f"{name} must have the same index as the endogenous data")

    if frame.shape[1] == 0:
        raise ValidationError(f"{name} has no columns")
    non_numeric = [col for col in frame.columns if not pd.api.types.is_numeric_dtype(frame[col])]
    if non_numeric:
        raise ValidationError(f"{name} contains non-numeric columns: {non_numeric}")
    if frame.isnull().any().any():
        n_missing = int(frame.isnull().sum().sum())
        raise ValidationError(f"{name} contains {n_missing} missing values. "
                              "Please handle missing values before estimation.")
    frame = frame.copy()
    frame.columns = [str(col) for col in frame.columns]
    return frame


@dataclass
class Dataset:
    """
    Row-aligned input tables for one estimation call.

    endog: T x K endogenous variables
    shock: identified shock series (identified-shock variants only)
    instruments: instruments for the shock (2SLS only)
    exog: exogenous variables entering with their own lag order
    contemp: exogenous variables with contemporaneous impact (no lags)
    switching: series driving the transition function (nonlinear variants only)
    """

    endog: pd.DataFrame
    shock: Optional[pd.Series] = None
    instruments: Optional[pd.DataFrame] = None
    exog: Optional[pd.DataFrame] = None
    contemp: Optional[pd.DataFrame] = None
    switching: Optional[pd.Series] = None

    def __post_init__(self):
        self.endog = _as_frame(self.endog, "endog", None, "y")
        index = self.endog.index

        if self.shock is not None:
            shock = _as_frame(self.shock, "shock", index, "shock")
            if shock.shape[1] != 1:
                raise ValidationError("The shock has to be a single series")
            self.shock = shock.iloc[:, 0]
        if self.instruments is not None:
            self.instruments = _as_frame(self.instruments, "instruments", index, "instrument")
        if self.exog is not None:
            self.exog = _as_frame(self.exog, "exog", index, "exog")
        if self.contemp is not None:
            self.contemp = _as_frame(self.contemp, "contemp", index, "contemp")
        if self.switching is not None:
            switching = _as_frame(self.switching, "switching", index, "switching")
            if switching.shape[1] != 1:
                raise ValidationError("The switching variable has to be a single series")
            self.switching = switching.iloc[:, 0]

    @property
    def n_obs(self) -> int:
        return len(self.endog)

    @property
    def n_endog(self) -> int:
        return self.endog.shape[1]

    @property
    def endog_names(self) -> Tuple[str, ...]:
        return tuple(self.endog.columns)

    @property
    def shock_name(self) -> Optional[str]:
        if self.shock is None:
            return None
        return str(self.shock.name) if self.shock.name is not None else "shock"


def _read_only(array):
    array = np.array(array, dtype=float)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class ResponseArrays:
    """
    Impulse responses with confidence bands.

    Array layout:
        linear, identified shock:     [response, horizon]
        linear, Cholesky:             [response, horizon, shock]
        nonlinear, identified shock:  [regime, response, horizon]
        nonlinear, Cholesky:          [regime, response, horizon, shock]

    Cells of failed shocks are NaN; ``failures`` maps their shock index to the
    PerShockFailure that caused it.
    """

    mean: np.ndarray
    low: np.ndarray
    up: np.ndarray
    response_names: Tuple[str, ...]
    shock_names: Tuple[str, ...]
    config: EstimationConfig
    identified_shock: bool
    lag_orders: np.ndarray
    failures: Dict[int, PerShockFailure] = field(default_factory=dict)
    regime_weights: Optional[np.ndarray] = None
    shock_matrix: Optional[np.ndarray] = None

    def __post_init__(self):
        object.__setattr__(self, "mean", _read_only(self.mean))
        object.__setattr__(self, "low", _read_only(self.low))
        object.__setattr__(self, "up", _read_only(self.up))
        lag_orders = np.array(self.lag_orders, dtype=int)
        lag_orders.setflags(write=False)
        object.__setattr__(self, "lag_orders", lag_orders)
        if self.regime_weights is not None:
            object.__setattr__(self, "regime_weights", _read_only(self.regime_weights))
        if self.shock_matrix is not None:
            object.__setattr__(self, "shock_matrix", _read_only(self.shock_matrix))

    @classmethod
    def from_canonical(cls, mean, low, up, lag_orders, identified_shock, nonlinear, **kwargs):
        """
        Build from [regime, response, horizon, shock] arrays and a
        [response, horizon, shock] lag order array, dropping the axes that
        the variant does not use.
        """
        def shaped(array):
            if identified_shock:
                array = array[..., 0]
            if not nonlinear:
                array = array[0]
            return array

        if identified_shock:
            lag_orders = lag_orders[..., 0]
        return cls(mean=shaped(mean), low=shaped(low), up=shaped(up), lag_orders=lag_orders,
                   identified_shock=identified_shock, **kwargs)

    @property
    def nonlinear(self) -> bool:
        return self.config.nonlinear

    @property
    def n_horizons(self) -> int:
        return self.config.horizons

    @property
    def failed_shocks(self):
        return sorted(self.failures)

    def _canonical(self, array):
        if not self.nonlinear:
            array = array[np.newaxis]
        if self.identified_shock:
            array = array[..., np.newaxis]
        return array

    def regime(self, regime: int) -> "ResponseArrays":
        """Responses of one regime (0 or 1) laid out like a linear result"""
        if not self.nonlinear:
            raise ValueError("Linear results have no regimes")
        if regime not in (0, 1):
            raise ValueError(f"regime must be 0 or 1, got {regime}")
        return ResponseArrays(
            mean=self.mean[regime], low=self.low[regime], up=self.up[regime],
            response_names=self.response_names, shock_names=self.shock_names,
            config=self.config.update(regime=None), identified_shock=self.identified_shock,
            lag_orders=self.lag_orders, failures=dict(self.failures),
            shock_matrix=self.shock_matrix,
        )

    def to_frame(self) -> pd.DataFrame:
        """Long table with one row per (regime, shock, response, horizon)"""
        mean, low, up = (self._canonical(a) for a in (self.mean, self.low, self.up))
        n_regimes, n_responses, n_horizons, n_shocks = mean.shape
        regime, response, horizon, shock = np.meshgrid(
            np.arange(n_regimes), np.arange(n_responses), np.arange(n_horizons),
            np.arange(n_shocks), indexing='ij'
        )
        frame = pd.DataFrame({
            'regime': regime.ravel() + (1 if self.nonlinear else 0),
            'shock': np.asarray(self.shock_names, dtype=object)[shock.ravel()],
            'response': np.asarray(self.response_names, dtype=object)[response.ravel()],
            'horizon': horizon.ravel(),
            'mean': mean.ravel(),
            'low': low.ravel(),
            'up': up.ravel(),
        })
        if not self.nonlinear:
            frame = frame.drop(columns='regime')
        return frame
