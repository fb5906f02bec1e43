"""
Two-regime (state-dependent) local projections.

The linear designs are split with the smooth transition weights, every
horizon regression is re-estimated on the split design and the responses of
each regime are formed from that regime's coefficients: B_r^h d_s for
Cholesky shocks (B_r^0 = identity) or the regime's shock coefficient for an
identified shock series.
"""

import logging
from dataclasses import replace
from typing import Dict, Sequence, Tuple

import numpy as np

from ..exceptions import ValidationError
from ..utils.data_structures import Dataset
from .lag_matrix import LagMatrix
from .regime import RegimeWeighter
from .scheduler import EstimationPlan, HorizonScheduler, ScheduledResponses, check_sample_size

logger = logging.getLogger(__name__)


class NonlinearAssembler:
    """
    Estimates two-regime responses from a linear estimation plan.

    Args:
        weighter: RegimeWeighter holding the transition settings
    """

    n_regimes = 2

    def __init__(self, weighter: RegimeWeighter):
        self.weighter = weighter
        self.logger = logging.getLogger(__name__)

    def transition_values(self, dataset: Dataset) -> np.ndarray:
        if dataset.switching is None:
            raise ValidationError("Nonlinear estimation requires a switching series")
        return self.weighter.transition_values(dataset.switching.to_numpy(dtype=float))

    def weight_candidates(self, candidates: Dict[int, LagMatrix], fz: np.ndarray) -> Dict[int, LagMatrix]:
        return {lags: self.weighter.weight(lag_matrix, fz) for lags, lag_matrix in candidates.items()}

    def regime_plan(self, plan: EstimationPlan, fz: np.ndarray) -> EstimationPlan:
        """Copy of a linear plan estimating on regime-weighted designs"""
        if plan.n_regimes != 1:
            raise ValueError("Plan is already split into regimes")
        return replace(plan, candidates=self.weight_candidates(plan.candidates, fz),
                       n_regimes=self.n_regimes)

    def assemble(self, plan: EstimationPlan, dataset: Dataset, scheduler: HorizonScheduler,
                 shock_names: Sequence[str]) -> Tuple[ScheduledResponses, np.ndarray]:
        """
        Run the two-regime estimation.

        Returns:
            tuple: (responses [regime, response, horizon, shock], transition values F(z_t))

        Raises:
            InsufficientDataError: If the split design leaves too few observations
        """
        fz = self.transition_values(dataset)
        nonlinear_plan = self.regime_plan(plan, fz)
        check_sample_size(nonlinear_plan)
        self.logger.info(f"Two-regime estimation: mean transition value {fz.mean():.3f}")
        return scheduler.run(nonlinear_plan, shock_names), fz
