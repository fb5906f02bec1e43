"""
Single-equation estimators with Newey-West standard errors.

Both estimators return the coefficient vector and the HAC covariance
(X'X)^-1 S (X'X)^-1, where S is the Bartlett-weighted long-run variance of the
scores x_t e_t. The truncation lag grows with the horizon, L = h - 1, to cover
the serial correlation that h-step-ahead projections induce in the residuals.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from statsmodels.regression.linear_model import OLS

from ..config import EstimatorType
from ..exceptions import SingularDesignError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class HacResult:
    """Coefficients and HAC covariance of one (horizon, response, shock, regime) regression"""

    params: np.ndarray
    cov: np.ndarray
    nobs: int
    hac_lags: int
    ssr: float
    first_stage_r2: Tuple[float, ...] = ()

    @property
    def bse(self) -> np.ndarray:
        return np.sqrt(np.clip(np.diag(self.cov), 0.0, None))

    def combination(self, columns, loading):
        """
        Point estimate and standard error of ``loading @ params[columns]``.

        Returns:
            tuple: (estimate, standard error)
        """
        columns = np.asarray(columns)
        loading = np.asarray(loading, dtype=float)
        estimate = float(self.params[columns] @ loading)
        variance = float(loading @ self.cov[np.ix_(columns, columns)] @ loading)
        return estimate, np.sqrt(max(variance, 0.0))


def newey_west_lags(h: int) -> int:
    """Truncation lag for regression index h"""
    return max(h - 1, 0)


def check_full_rank(x: np.ndarray, description: str = "Design matrix") -> None:
    """
    Raises:
        SingularDesignError: If x has no more rows than columns or is rank deficient
    """
    n_obs, n_regressors = x.shape
    if n_obs <= n_regressors:
        raise SingularDesignError(f"{description} has {n_obs} observations "
                                  f"for {n_regressors} regressors")
    rank = np.linalg.matrix_rank(x)
    if rank < n_regressors:
        raise SingularDesignError(f"{description} is rank deficient "
                                  f"(rank {rank} < {n_regressors} regressors)")


def fit_hac(y: np.ndarray, x: np.ndarray, hac_lags: int):
    """OLS with Newey-West covariance and no small-sample correction"""
    return OLS(y, x).fit(cov_type='HAC', cov_kwds={'maxlags': hac_lags, 'use_correction': False})


class OlsHacEstimator:
    """OLS estimator: beta = (X'X)^-1 X'y"""

    estimator_type = EstimatorType.OLS

    def fit(self, y, x, h, z: Optional[np.ndarray] = None,
            endog_columns: Sequence[int] = ()) -> HacResult:
        """
        Fit one local projection.

        Args:
            y: Response led by h-1 periods
            x: Row-aligned regressors
            h: Regression index, sets the truncation lag to h - 1
            z: Ignored
            endog_columns: Ignored

        Returns:
            HacResult
        """
        check_full_rank(x)
        hac_lags = newey_west_lags(h)
        model = fit_hac(y, x, hac_lags)
        return HacResult(params=np.asarray(model.params), cov=np.asarray(model.cov_params()),
                         nobs=int(model.nobs), hac_lags=hac_lags, ssr=float(model.ssr))


class TwoStageHacEstimator:
    """
    Two-stage least squares.

    The first stage regresses each instrumented column of X on the instruments
    and the remaining regressors; the second stage regresses y on X with the
    instrumented columns replaced by their fitted values. Coefficients,
    residuals and the HAC covariance come from the second stage.
    """

    estimator_type = EstimatorType.TSLS

    def fit(self, y, x, h, z: Optional[np.ndarray] = None,
            endog_columns: Sequence[int] = ()) -> HacResult:
        if z is None:
            raise ValidationError("Two-stage least squares requires an instrument matrix")
        if not endog_columns:
            raise ValidationError("Two-stage least squares requires the position of the shock column")

        endog_columns = list(endog_columns)
        exog_columns = [j for j in range(x.shape[1]) if j not in endog_columns]
        first_stage_x = np.column_stack([z, x[:, exog_columns]])
        check_full_rank(first_stage_x, "First-stage design")

        x_fitted = x.copy()
        first_stage_r2 = []
        for col in endog_columns:
            first_stage = OLS(x[:, col], first_stage_x).fit()
            x_fitted[:, col] = first_stage.fittedvalues
            first_stage_r2.append(float(first_stage.rsquared))

        check_full_rank(x_fitted, "Second-stage design")
        hac_lags = newey_west_lags(h)
        model = fit_hac(y, x_fitted, hac_lags)
        return HacResult(params=np.asarray(model.params), cov=np.asarray(model.cov_params()),
                         nobs=int(model.nobs), hac_lags=hac_lags, ssr=float(model.ssr),
                         first_stage_r2=tuple(first_stage_r2))


def make_estimator(estimator_type):
    """Estimator strategy for an EstimatorType"""
    estimator_type = EstimatorType(estimator_type)
    if estimator_type == EstimatorType.TSLS:
        return TwoStageHacEstimator()
    return OlsHacEstimator()
