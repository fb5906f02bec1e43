"""
Core estimation engine for local projections.
"""

from .lag_matrix import LagMatrix, LagMatrixBuilder
from .regime import RegimeWeighter, hp_filter
from .lag_selection import LagOrderSelector, FixedLagOrder, CriterionLagOrder, information_criterion
from .estimators import HacResult, OlsHacEstimator, TwoStageHacEstimator, make_estimator
from .identification import CholeskyIdentification, ShockSeriesIdentification
from .scheduler import EstimationPlan, HorizonScheduler
from .nonlinear import NonlinearAssembler
from .models import LocalProjections, estimate_irfs

__all__ = [
    "LagMatrix",
    "LagMatrixBuilder",
    "RegimeWeighter",
    "hp_filter",
    "LagOrderSelector",
    "FixedLagOrder",
    "CriterionLagOrder",
    "information_criterion",
    "HacResult",
    "OlsHacEstimator",
    "TwoStageHacEstimator",
    "make_estimator",
    "CholeskyIdentification",
    "ShockSeriesIdentification",
    "EstimationPlan",
    "HorizonScheduler",
    "NonlinearAssembler",
    "LocalProjections",
    "estimate_irfs",
]
