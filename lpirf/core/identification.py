"""
Shock identification for local projections.

Two strategies decide which coefficients of a horizon regression form the
impulse response and how they are combined:

- CholeskyIdentification: every endogenous variable is a shock. The response
  at horizon h is B^h d_s, where B^h collects the coefficients on the first
  endogenous lag and d_s is column s of the lower Cholesky factor of the
  reduced-form residual covariance. The impact response is d_s itself.
- ShockSeriesIdentification: a single identified shock series enters the
  regression contemporaneously and its coefficient is the response.
"""

import logging

import numpy as np

from ..config import ShockType
from ..exceptions import SingularDesignError, ValidationError
from .estimators import check_full_rank
from .lag_matrix import LagMatrix

logger = logging.getLogger(__name__)


def reduced_form_covariance(lag_matrix: LagMatrix) -> np.ndarray:
    """
    Residual covariance E'E / (n - d) of the multivariate OLS of Y on X.

    Raises:
        SingularDesignError: If the design is rank deficient
    """
    check_full_rank(lag_matrix.x, "Reduced-form design")
    beta, _, _, _ = np.linalg.lstsq(lag_matrix.x, lag_matrix.y, rcond=None)
    resid = lag_matrix.y - lag_matrix.x @ beta
    return resid.T @ resid / (lag_matrix.n_obs - lag_matrix.n_regressors)


def cholesky_shock_matrix(sigma, shock_type=ShockType.STD_DEV) -> np.ndarray:
    """
    Lower-triangular shock matrix D with sigma = D D'.

    With ``ShockType.UNIT`` every column is divided by its diagonal entry so
    that shock s moves variable s by exactly one unit on impact.

    Raises:
        SingularDesignError: If sigma is not positive definite
    """
    sigma = np.asarray(sigma, dtype=float)
    if sigma.ndim != 2 or sigma.shape[0] != sigma.shape[1]:
        raise ValidationError(f"Residual covariance must be square, got shape {sigma.shape}")
    try:
        d = np.linalg.cholesky(sigma)
    except np.linalg.LinAlgError as e:
        raise SingularDesignError(f"Residual covariance is not positive definite: {e}")
    if ShockType(shock_type) == ShockType.UNIT:
        d = d / np.diag(d)[np.newaxis, :]
    return d


class CholeskyIdentification:
    """Recursive identification, one shock per endogenous variable"""

    identified_shock = False

    def __init__(self, shock_matrix):
        shock_matrix = np.asarray(shock_matrix, dtype=float)
        if shock_matrix.ndim != 2 or shock_matrix.shape[0] != shock_matrix.shape[1]:
            raise ValidationError(f"Shock matrix must be square, got shape {shock_matrix.shape}")
        self.shock_matrix = shock_matrix

    @property
    def n_shocks(self) -> int:
        return self.shock_matrix.shape[1]

    def horizon_map(self, horizons: int):
        """(regression index, horizon column) pairs; column 0 is the impact"""
        return [(h, h) for h in range(1, horizons)]

    def impact(self, shock_index: int):
        return self.shock_matrix[:, shock_index]

    def loading(self, shock_index: int) -> np.ndarray:
        return self.shock_matrix[:, shock_index]

    def interest_columns(self, lag_matrix: LagMatrix, regime: int = 0) -> np.ndarray:
        return lag_matrix.lag_block(regime)

    def endog_columns(self, lag_matrix: LagMatrix):
        return ()


class ShockSeriesIdentification:
    """Identified shock series entering every horizon regression contemporaneously"""

    identified_shock = True
    n_shocks = 1

    def horizon_map(self, horizons: int):
        return [(h, h - 1) for h in range(1, horizons + 1)]

    def impact(self, shock_index: int):
        return None

    def loading(self, shock_index: int) -> np.ndarray:
        return np.ones(1)

    def interest_columns(self, lag_matrix: LagMatrix, regime: int = 0) -> np.ndarray:
        return np.array([lag_matrix.shock_columns[regime]])

    def endog_columns(self, lag_matrix: LagMatrix):
        return lag_matrix.shock_columns
