"""
Local projections for impulse responses (Jordà, 2005).

LocalProjections resolves an EstimationConfig and a Dataset into one of four
variants and runs it:

- linear, Cholesky:          one shock per endogenous variable
- linear, identified shock:  Dataset.shock enters contemporaneously, OLS or 2SLS
  (Jordà et al., 2015; Ramey and Zubairy, 2018)
- nonlinear, Cholesky / identified shock: the same with regime-weighted
  regressors (Auerbach and Gorodnichenko, 2012)

Standard errors are Newey-West with truncation lag h - 1 at regression index h.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from ..config import EstimationConfig, EstimatorType
from ..exceptions import ValidationError
from ..utils.data_structures import Dataset, ResponseArrays
from .estimators import make_estimator
from .identification import (
    CholeskyIdentification,
    ShockSeriesIdentification,
    cholesky_shock_matrix,
    reduced_form_covariance,
)
from .lag_matrix import LagMatrixBuilder
from .lag_selection import lag_strategy
from .nonlinear import NonlinearAssembler
from .regime import RegimeWeighter
from .scheduler import EstimationPlan, HorizonScheduler, check_sample_size


class LocalProjections:
    """
    Impulse responses by local projections with HAC confidence bands.

    Estimates, for every horizon h and response variable k,
        y_{k, t+h} = alpha_h + (shock or lagged endogenous terms) + controls + u_{t+h}
    and stores responses, lower and upper bands in ``results``.
    """

    def __init__(self, config: EstimationConfig, scheduler: Optional[HorizonScheduler] = None):
        self.config = config
        self.scheduler = scheduler or HorizonScheduler(config.num_workers, config.executor)
        self.results: Optional[ResponseArrays] = None
        self.fitted = False
        self.logger = logging.getLogger(__name__)

    def _validate_variant(self, dataset: Dataset, identified: bool, shock_matrix, residual_covariance):
        config = self.config
        if config.estimator == EstimatorType.TSLS:
            if not identified:
                raise ValidationError("Two-stage least squares requires a shock series to instrument.")
            if dataset.instruments is None:
                raise ValidationError("Two-stage least squares requires instruments.")
        if config.nonlinear and dataset.switching is None:
            raise ValidationError("Nonlinear estimation requires a switching series.")
        if identified:
            if shock_matrix is not None or residual_covariance is not None:
                raise ValidationError("A shock matrix is only used with Cholesky identification.")
        elif config.lags_endog == 0:
            raise ValidationError("Cholesky identification needs at least one lag of the "
                                  "endogenous variables.")

    def _identification(self, dataset, candidates, strategy, identified,
                        shock_matrix, residual_covariance):
        if identified:
            return ShockSeriesIdentification()

        n_endog = dataset.n_endog
        if shock_matrix is None:
            if residual_covariance is None:
                lags = strategy.choose_system(candidates)
                residual_covariance = reduced_form_covariance(candidates[lags])
                self.logger.info(f"Reduced-form covariance estimated with {lags} lag(s)")
            shock_matrix = cholesky_shock_matrix(residual_covariance, self.config.shock_type)
        shock_matrix = np.asarray(shock_matrix, dtype=float)
        if shock_matrix.shape != (n_endog, n_endog):
            raise ValidationError(f"Shock matrix must be {n_endog} x {n_endog}, "
                                  f"got {shock_matrix.shape}")
        return CholeskyIdentification(shock_matrix)

    def fit(self, dataset: Dataset, shock_matrix=None, residual_covariance=None) -> "LocalProjections":
        """
        Estimate impulse responses.

        Args:
            dataset: Validated input tables. A shock series selects the
                identified-shock variants, otherwise every endogenous variable
                is shocked with Cholesky identification.
            shock_matrix: Optional K x K impact matrix D for Cholesky shocks
            residual_covariance: Optional K x K reduced-form residual covariance;
                its lower Cholesky factor (normalized by ``shock_type``) is used as D

        Returns:
            self (for method chaining)

        Raises:
            ValidationError: If the dataset does not match the configuration
            InsufficientDataError: If the sample is too short for the lags and horizons
            SingularDesignError: If the reduced-form covariance cannot be factorized
        """
        if not isinstance(dataset, Dataset):
            raise TypeError("dataset must be a Dataset")

        config = self.config
        identified = dataset.shock is not None
        self._validate_variant(dataset, identified, shock_matrix, residual_covariance)
        self.logger.info(f"Local projections: {'nonlinear' if config.nonlinear else 'linear'}, "
                         f"{'identified shock' if identified else 'Cholesky'}, "
                         f"{config.estimator.value}, {config.horizons} horizon(s)")

        lag_switching = config.nonlinear and config.regime.lag_switching
        builder = LagMatrixBuilder(
            dataset,
            trend=config.trend,
            lags_exog=config.lags_exog,
            include_shock=identified,
            include_instruments=config.estimator == EstimatorType.TSLS,
            min_start=1 if lag_switching else 0,
        )
        strategy = lag_strategy(config)
        candidates = builder.build_candidates(strategy.candidate_orders)
        identification = self._identification(dataset, candidates, strategy, identified,
                                              shock_matrix, residual_covariance)

        plan = EstimationPlan(
            candidates=candidates,
            lag_strategy=strategy,
            estimator=make_estimator(config.estimator),
            identification=identification,
            horizons=config.horizons,
            confint=config.confint,
            n_endog=dataset.n_endog,
        )
        shock_names = (dataset.shock_name,) if identified else dataset.endog_names

        fz = None
        if config.nonlinear:
            assembler = NonlinearAssembler(RegimeWeighter.from_config(config.regime))
            responses, fz = assembler.assemble(plan, dataset, self.scheduler, shock_names)
        else:
            check_sample_size(plan)
            responses = self.scheduler.run(plan, shock_names)

        self.results = ResponseArrays.from_canonical(
            responses.mean, responses.low, responses.up, responses.lag_orders,
            identified_shock=identified,
            nonlinear=config.nonlinear,
            response_names=dataset.endog_names,
            shock_names=tuple(shock_names),
            config=config,
            failures=responses.failures,
            regime_weights=fz,
            shock_matrix=None if identified else identification.shock_matrix,
        )
        self.fitted = True
        self.logger.info("Local projections finished"
                         + (f" with failed shocks {self.results.failed_shocks}"
                            if self.results.failures else ""))
        return self

    def get_impulse_responses(self, shock=None, regime=None) -> pd.DataFrame:
        """
        Impulse responses with confidence bands as a long table.

        Args:
            shock: Optional shock name to filter on
            regime: Optional regime (1 or 2) to filter on, nonlinear results only

        Returns:
            pd.DataFrame: columns [regime,] shock, response, horizon, mean, low, up
        """
        if not self.fitted:
            raise ValueError("Model not fitted")

        frame = self.results.to_frame()
        if shock is not None:
            frame = frame[frame['shock'] == shock]
        if regime is not None:
            if 'regime' not in frame.columns:
                raise ValueError("Linear results have no regimes")
            frame = frame[frame['regime'] == regime]
        return frame.reset_index(drop=True)


def estimate_irfs(dataset: Dataset, config: EstimationConfig, shock_matrix=None,
                  residual_covariance=None) -> ResponseArrays:
    """Estimate impulse responses and return the response arrays"""
    model = LocalProjections(config)
    model.fit(dataset, shock_matrix=shock_matrix, residual_covariance=residual_covariance)
    return model.results
