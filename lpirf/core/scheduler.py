"""
Horizon loop and worker pool for local projections.

One task per shock variable runs the horizon and response-variable loops
sequentially. Tasks are independent: each receives its own copy of the
estimation plan (process pool) or only reads it (thread and serial pools), and
results are placed by shock index, never by completion order.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from ..config import ExecutorType
from ..exceptions import EstimationError, InsufficientDataError, PerShockFailure
from .lag_matrix import LagMatrix

logger = logging.getLogger(__name__)


@dataclass
class EstimationPlan:
    """Everything a shock task needs, resolved once per estimation call"""

    candidates: Dict[int, LagMatrix]
    lag_strategy: object
    estimator: object
    identification: object
    horizons: int
    confint: float
    n_endog: int
    n_regimes: int = 1


@dataclass
class ShockOutcome:
    """Responses of one shock, [regime, response, horizon], or the error that stopped it"""

    shock_index: int
    mean: Optional[np.ndarray] = None
    low: Optional[np.ndarray] = None
    up: Optional[np.ndarray] = None
    lag_orders: Optional[np.ndarray] = None
    error: Optional[EstimationError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def check_sample_size(plan: EstimationPlan) -> None:
    """
    Make sure at least one candidate design can be fitted at the longest horizon.

    Raises:
        InsufficientDataError: If the sample is too short for the lag/horizon combination
    """
    horizon_map = plan.identification.horizon_map(plan.horizons)
    if not horizon_map:
        return
    last_h = max(h for h, _ in horizon_map)
    if not any(lm.sample_size(last_h) > lm.n_regressors for lm in plan.candidates.values()):
        smallest = min(plan.candidates.values(), key=lambda lm: lm.n_regressors)
        raise InsufficientDataError(
            f"Sample too short: {smallest.sample_size(last_h)} observations remain at horizon "
            f"{last_h} for {smallest.n_regressors} regressors ({smallest.lags} lags)"
        )


def estimate_shock(plan: EstimationPlan, shock_index: int) -> ShockOutcome:
    """
    Estimate the responses of all variables to one shock at all horizons.

    For every regression index h and response variable k the lag order is
    chosen (fixed or by criterion), the h-aligned design is fitted, and the
    response b with HAC standard error se is written as
    mean = b, low = b - confint * se, up = b + confint * se.
    """
    shape = (plan.n_regimes, plan.n_endog, plan.horizons)
    mean = np.full(shape, np.nan)
    low = np.full(shape, np.nan)
    up = np.full(shape, np.nan)
    lag_orders = np.full((plan.n_endog, plan.horizons), -1, dtype=int)

    identification = plan.identification
    impact = identification.impact(shock_index)
    if impact is not None:
        mean[:, :, 0] = impact
        low[:, :, 0] = impact
        up[:, :, 0] = impact
    loading = identification.loading(shock_index)

    for h, column in identification.horizon_map(plan.horizons):
        for k in range(plan.n_endog):
            lags = plan.lag_strategy.choose(plan.candidates, h, k)
            lag_matrix = plan.candidates[lags]
            y_h, x_h, z_h = lag_matrix.for_horizon(h)
            logger.debug(f"Shock {shock_index}, horizon {h}, response {k}: "
                         f"{len(y_h)} observations, {lags} lag(s)")
            result = plan.estimator.fit(y_h[:, k], x_h, h, z=z_h,
                                        endog_columns=identification.endog_columns(lag_matrix))
            lag_orders[k, column] = lags
            for regime in range(plan.n_regimes):
                b, se = result.combination(identification.interest_columns(lag_matrix, regime),
                                           loading)
                mean[regime, k, column] = b
                low[regime, k, column] = b - plan.confint * se
                up[regime, k, column] = b + plan.confint * se

    return ShockOutcome(shock_index=shock_index, mean=mean, low=low, up=up, lag_orders=lag_orders)


def run_shock_task(plan: EstimationPlan, shock_index: int) -> ShockOutcome:
    """Task boundary: numerical failures become a failed outcome for this shock only"""
    try:
        return estimate_shock(plan, shock_index)
    except EstimationError as e:
        logger.warning(f"Estimation for shock {shock_index} failed: {e}")
        return ShockOutcome(shock_index=shock_index, error=e)


@dataclass
class ScheduledResponses:
    """Gathered responses, [regime, response, horizon, shock]"""

    mean: np.ndarray
    low: np.ndarray
    up: np.ndarray
    lag_orders: np.ndarray
    failures: Dict[int, PerShockFailure]


class HorizonScheduler:
    """
    Runs one estimation task per shock on a worker pool.

    The pool is created for a single call to ``run`` and is shut down when the
    call returns or raises.

    Args:
        num_workers: Pool size, default min(number of shocks, CPU count)
        executor: 'process', 'thread' or 'serial'
    """

    def __init__(self, num_workers: Optional[int] = None, executor=ExecutorType.PROCESS):
        self.num_workers = num_workers
        self.executor = ExecutorType(executor)
        self.logger = logging.getLogger(__name__)

    def pool_size(self, n_shocks: int) -> int:
        if self.num_workers is not None:
            return max(1, min(self.num_workers, n_shocks))
        return max(1, min(n_shocks, os.cpu_count() or 1))

    def _make_executor(self, n_workers: int):
        if self.executor == ExecutorType.THREAD:
            return ThreadPoolExecutor(max_workers=n_workers)
        return ProcessPoolExecutor(max_workers=n_workers)

    def _scatter(self, plan, n_shocks, task) -> List[ShockOutcome]:
        if self.executor == ExecutorType.SERIAL:
            return [task(plan, shock_index) for shock_index in range(n_shocks)]

        n_workers = self.pool_size(n_shocks)
        self.logger.info(f"Estimating {n_shocks} shock(s) on a {self.executor.value} pool "
                         f"with {n_workers} worker(s)")
        outcomes = []
        with self._make_executor(n_workers) as executor:
            future_to_shock = {executor.submit(task, plan, shock_index): shock_index
                               for shock_index in range(n_shocks)}
            for future in as_completed(future_to_shock):
                outcomes.append(future.result())
        return outcomes

    def run(self, plan: EstimationPlan, shock_names: Sequence[str],
            task: Callable[[EstimationPlan, int], ShockOutcome] = run_shock_task) -> ScheduledResponses:
        """
        Scatter one task per shock and gather the outcomes into arrays.

        Returns:
            ScheduledResponses: arrays of failed shocks stay NaN
        """
        n_shocks = len(shock_names)
        shape = (plan.n_regimes, plan.n_endog, plan.horizons, n_shocks)
        mean = np.full(shape, np.nan)
        low = np.full(shape, np.nan)
        up = np.full(shape, np.nan)
        lag_orders = np.full((plan.n_endog, plan.horizons, n_shocks), -1, dtype=int)
        failures = {}

        for outcome in self._scatter(plan, n_shocks, task):
            s = outcome.shock_index
            if outcome.failed:
                failures[s] = PerShockFailure(s, shock_names[s], outcome.error)
                continue
            mean[..., s] = outcome.mean
            low[..., s] = outcome.low
            up[..., s] = outcome.up
            lag_orders[..., s] = outcome.lag_orders

        if failures:
            self.logger.warning(f"{len(failures)} of {n_shocks} shock(s) failed: "
                                f"{[shock_names[s] for s in sorted(failures)]}")
        return ScheduledResponses(mean=mean, low=low, up=up, lag_orders=lag_orders,
                                  failures=failures)
