"""
LPIRF: Local Projection Impulse Response Functions

Estimation of impulse responses by local projections: linear and
state-dependent (smooth transition) models, Cholesky or identified shocks,
OLS or two-stage least squares with Newey-West confidence bands.
"""

__version__ = "1.0.0"
__author__ = "LPIRF Development Team"

# Configuration
from .config import (
    EstimationConfig,
    RegimeConfig,
    LagCriterion,
    ShockType,
    EstimatorType,
    ExecutorType,
    load_config_from_file,
    save_config_to_file,
)

# Errors
from .exceptions import (
    LocalProjectionError,
    ValidationError,
    EstimationError,
    InsufficientDataError,
    InvalidCriterionError,
    SingularDesignError,
    PerShockFailure,
)

# Data structures
from .utils.data_structures import Dataset, ResponseArrays

# Core estimation
from .core.models import LocalProjections, estimate_irfs

__all__ = [
    # Configuration
    "EstimationConfig",
    "RegimeConfig",
    "LagCriterion",
    "ShockType",
    "EstimatorType",
    "ExecutorType",
    "load_config_from_file",
    "save_config_to_file",

    # Errors
    "LocalProjectionError",
    "ValidationError",
    "EstimationError",
    "InsufficientDataError",
    "InvalidCriterionError",
    "SingularDesignError",
    "PerShockFailure",

    # Data structures
    "Dataset",
    "ResponseArrays",

    # Estimation
    "LocalProjections",
    "estimate_irfs",
]
