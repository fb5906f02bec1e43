"""
Lag-length selection by information criteria.

For a given horizon and response variable every candidate order p = 1..p_max
is fitted by OLS on its own design and scored with

    AIC  = n ln(RSS/n) + 2d
    AICc = AIC + 2d(d+1)/(n-d-1)
    BIC  = n ln(RSS/n) + d ln(n)

where n is the usable sample of that candidate after lagging and leading the
response by h-1 periods, and d the number of regressors. Candidates that leave
too few observations are excluded instead of scored.
"""

import logging
from typing import Dict, Mapping

import numpy as np

from ..config import EstimationConfig, LagCriterion
from ..exceptions import InsufficientDataError, ValidationError
from .lag_matrix import LagMatrix

logger = logging.getLogger(__name__)


def penalized_score(n_obs, log_fit, n_params, criterion) -> float:
    """Penalized fit n * log_fit + penalty(n_params); NaN when degenerate"""
    criterion = LagCriterion.parse(criterion)
    if n_obs <= n_params or not np.isfinite(log_fit):
        return np.nan
    aic = n_obs * log_fit + 2 * n_params
    if criterion == LagCriterion.AIC:
        return aic
    if criterion == LagCriterion.AICC:
        if n_obs - n_params - 1 <= 0:
            return np.nan
        return aic + 2 * n_params * (n_params + 1) / (n_obs - n_params - 1)
    return n_obs * log_fit + n_params * np.log(n_obs)


def information_criterion(rss, n_obs, n_regressors, criterion) -> float:
    """
    Single-equation information criterion.

    Args:
        rss: Residual sum of squares
        n_obs: Usable sample size
        n_regressors: Number of regressors including deterministic terms
        criterion: 'AICc', 'AIC' or 'BIC'

    Returns:
        float: Criterion value, NaN if n_obs <= n_regressors or rss is zero

    Raises:
        InvalidCriterionError: For unknown criterion names
    """
    criterion = LagCriterion.parse(criterion)
    if rss <= 0 or n_obs <= 0:
        return np.nan
    return penalized_score(n_obs, np.log(rss / n_obs), n_regressors, criterion)


def select_from_scores(scores: Mapping[int, float]) -> int:
    """
    Lag order with the smallest finite score; ties go to the smallest order.

    Raises:
        InsufficientDataError: If no candidate has a finite score
    """
    best_order, best_score = None, np.inf
    for order in sorted(scores):
        score = scores[order]
        if np.isfinite(score) and score < best_score:
            best_order, best_score = order, score
    if best_order is None:
        raise InsufficientDataError("No candidate lag order leaves enough observations "
                                    "to evaluate the lag length criterion")
    return best_order


def _ols_residuals(y, x):
    beta, _, _, _ = np.linalg.lstsq(x, y, rcond=None)
    resid = y - x @ beta
    return resid


class LagOrderSelector:
    """
    Chooses lag orders by minimizing an information criterion.

    Args:
        criterion: 'AICc', 'AIC' or 'BIC'
        max_lags: Largest candidate lag order
    """

    def __init__(self, criterion, max_lags: int):
        self.criterion = LagCriterion.parse(criterion)
        if max_lags is None or max_lags < 1:
            raise ValidationError(f"max_lags has to be a positive integer, got {max_lags}")
        self.max_lags = max_lags

    @property
    def candidate_orders(self):
        return tuple(range(1, self.max_lags + 1))

    def scores(self, candidates: Mapping[int, LagMatrix], h: int, k: int) -> Dict[int, float]:
        """Criterion value of every candidate for response k at regression index h"""
        scores = {}
        for order in self.candidate_orders:
            lag_matrix = candidates.get(order)
            if lag_matrix is None:
                scores[order] = np.nan
                continue
            n_obs = lag_matrix.sample_size(h)
            if n_obs <= lag_matrix.n_regressors:
                scores[order] = np.nan
                continue
            y_h, x_h, _ = lag_matrix.for_horizon(h)
            resid = _ols_residuals(y_h[:, k], x_h)
            scores[order] = information_criterion(float(resid @ resid), n_obs,
                                                  lag_matrix.n_regressors, self.criterion)
        logger.debug(f"{self.criterion.value} scores for horizon {h}, response {k}: {scores}")
        return scores

    def select(self, candidates: Mapping[int, LagMatrix], h: int, k: int) -> int:
        return select_from_scores(self.scores(candidates, h, k))

    def system_scores(self, candidates: Mapping[int, LagMatrix]) -> Dict[int, float]:
        """
        Multivariate criterion of the reduced-form system at regression index 1,
        n ln det(E'E/n) penalized for K * d parameters.
        """
        scores = {}
        for order in self.candidate_orders:
            lag_matrix = candidates.get(order)
            if lag_matrix is None:
                scores[order] = np.nan
                continue
            n_obs, n_regressors = lag_matrix.n_obs, lag_matrix.n_regressors
            if n_obs <= n_regressors:
                scores[order] = np.nan
                continue
            resid = _ols_residuals(lag_matrix.y, lag_matrix.x)
            sign, logdet = np.linalg.slogdet(resid.T @ resid / n_obs)
            log_fit = logdet if sign > 0 else np.nan
            scores[order] = penalized_score(n_obs, log_fit, lag_matrix.n_endog * n_regressors,
                                            self.criterion)
        return scores

    def select_system(self, candidates: Mapping[int, LagMatrix]) -> int:
        return select_from_scores(self.system_scores(candidates))


class FixedLagOrder:
    """Lag strategy that always uses the configured order"""

    def __init__(self, lags: int):
        self.lags = lags

    @property
    def candidate_orders(self):
        return (self.lags,)

    def choose(self, candidates, h, k) -> int:
        return self.lags

    def choose_system(self, candidates) -> int:
        return self.lags


class CriterionLagOrder:
    """Lag strategy that selects the order per horizon and response variable"""

    def __init__(self, selector: LagOrderSelector):
        self.selector = selector

    @property
    def candidate_orders(self):
        return self.selector.candidate_orders

    def choose(self, candidates, h, k) -> int:
        return self.selector.select(candidates, h, k)

    def choose_system(self, candidates) -> int:
        return self.selector.select_system(candidates)


def lag_strategy(config: EstimationConfig):
    """Resolve the lag strategy of a configuration"""
    if config.lags_criterion is not None:
        return CriterionLagOrder(LagOrderSelector(config.lags_criterion, config.max_lags))
    return FixedLagOrder(config.lags_endog)
