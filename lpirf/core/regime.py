"""
Smooth transition weights for two-regime local projections.

The transition function F(z) = exp(-gamma z) / (1 + exp(-gamma z)) maps a
switching series into (0, 1) (Auerbach and Gorodnichenko, 2012). Regime 1
regressors are weighted with 1 - F, regime 2 regressors with F. The switching
series can first be detrended with the Hodrick-Prescott filter and
standardized (Auerbach and Gorodnichenko, 2013).
"""

import logging
from dataclasses import replace

import numpy as np
from scipy.special import expit
from scipy.stats import zscore
from statsmodels.tsa.filters.hp_filter import hpfilter

from ..config import RegimeConfig
from ..exceptions import ValidationError, InsufficientDataError
from .lag_matrix import LagMatrix

logger = logging.getLogger(__name__)

_EPS = np.finfo(float).eps


def hp_filter(series, lamb=1600.0):
    """
    Hodrick-Prescott decomposition of a series.

    Args:
        series: One-dimensional array-like
        lamb: Smoothing weight on the squared second differences of the trend

    Returns:
        tuple: (cycle, trend) as numpy arrays
    """
    if not lamb > 0:
        raise ValidationError(f"The HP smoothing parameter has to be positive, got {lamb}")
    values = np.asarray(series, dtype=float).ravel()
    cycle, trend = hpfilter(values, lamb=lamb)
    return np.asarray(cycle), np.asarray(trend)


class RegimeWeighter:
    """
    Computes transition values and regime-weighted designs.

    Args:
        gamma: Steepness of the transition function, strictly positive
        use_hp: Use the standardized HP cycle of the switching series
        hp_lambda: HP smoothing weight
        lag_switching: Weight the row dated t with F(z_{t-1}) instead of F(z_t)
    """

    def __init__(self, gamma, use_hp=False, hp_lambda=1600.0, lag_switching=True):
        if not gamma > 0:
            raise ValidationError(f"gamma has to be strictly positive, got {gamma}")
        if use_hp and not hp_lambda > 0:
            raise ValidationError(f"hp_lambda has to be positive when use_hp is set, got {hp_lambda}")
        self.gamma = gamma
        self.use_hp = use_hp
        self.hp_lambda = hp_lambda
        self.lag_switching = lag_switching

    @classmethod
    def from_config(cls, regime_config: RegimeConfig) -> "RegimeWeighter":
        return cls(gamma=regime_config.gamma, use_hp=regime_config.use_hp,
                   hp_lambda=regime_config.hp_lambda, lag_switching=regime_config.lag_switching)

    def transition_input(self, switching) -> np.ndarray:
        z = np.asarray(switching, dtype=float).ravel()
        if not self.use_hp:
            return z
        cycle, _ = hp_filter(z, self.hp_lambda)
        # constant and linear-trend series leave no cycle to standardize
        scale = max(np.abs(z).max(initial=0.0), 1.0)
        if len(cycle) < 2 or not cycle.std(ddof=1) > 1e-8 * scale:
            raise ValidationError("The HP cycle of the switching series has zero variance; "
                                  "it cannot be standardized")
        return zscore(cycle, ddof=1)

    def transition_values(self, switching) -> np.ndarray:
        """F(z_t) for every observation, strictly inside (0, 1)"""
        z_star = self.transition_input(switching)
        fz = expit(-self.gamma * z_star)
        return np.clip(fz, _EPS, 1.0 - _EPS)

    def aligned_weights(self, fz: np.ndarray, lag_matrix: LagMatrix) -> np.ndarray:
        """Transition values matching the rows of ``lag_matrix``"""
        offset = 1 if self.lag_switching else 0
        first = lag_matrix.start - offset
        if first < 0:
            raise InsufficientDataError("The lagged transition values need at least one "
                                        "observation before the first row of the design")
        weights = fz[first:first + lag_matrix.n_obs]
        if len(weights) != lag_matrix.n_obs:
            raise ValidationError("Switching series is shorter than the design")
        return weights

    def weight(self, lag_matrix: LagMatrix, fz: np.ndarray) -> LagMatrix:
        """
        Split a linear design into a two-regime design.

        Deterministic terms and contemporaneous-impact columns stay unweighted.
        The shock, endogenous and exogenous lag columns appear twice: multiplied
        by 1 - F (regime 1) and by F (regime 2). Instruments are split the same
        way.
        """
        weights = self.aligned_weights(fz, lag_matrix)[:, np.newaxis]
        n_det = lag_matrix.n_deterministic
        n_state = lag_matrix.n_regressors - n_det - lag_matrix.n_contemp
        state = slice(n_det, n_det + n_state)

        x = lag_matrix.x
        x_nl = np.hstack([
            x[:, :n_det],
            x[:, state] * (1.0 - weights),
            x[:, state] * weights,
            x[:, n_det + n_state:],
        ])
        names = lag_matrix.column_names
        names_nl = (names[:n_det]
                    + tuple(f"{name}_r1" for name in names[state])
                    + tuple(f"{name}_r2" for name in names[state])
                    + names[n_det + n_state:])

        z_nl = None
        if lag_matrix.z is not None:
            z_nl = np.hstack([lag_matrix.z * (1.0 - weights), lag_matrix.z * weights])

        def split(columns):
            return tuple(col + offset for col in columns for offset in (0, n_state))

        return replace(
            lag_matrix,
            x=x_nl,
            z=z_nl,
            column_names=names_nl,
            shock_columns=split(lag_matrix.shock_columns),
            lag_block_starts=split(lag_matrix.lag_block_starts),
        )
