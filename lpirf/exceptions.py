"""
Error taxonomy for local projection estimation.

Numerical failures (too little data, singular designs, unknown criteria) derive
from EstimationError so the worker tasks can catch exactly those at the task
boundary and report them per shock.
"""


class LocalProjectionError(Exception):
    """Base class for all lpirf errors"""


class ValidationError(LocalProjectionError, ValueError):
    """Malformed or missing configuration or input data"""


class EstimationError(LocalProjectionError):
    """Base class for deterministic numerical failures"""


class InsufficientDataError(EstimationError):
    """Sample too short for the requested lag/horizon combination"""


class InvalidCriterionError(EstimationError, ValueError):
    """Unrecognized lag-length criterion"""


class SingularDesignError(EstimationError):
    """Design matrix is not of full column rank"""


class PerShockFailure(LocalProjectionError):
    """
    Failure of one shock-variable task.

    Attributes:
        shock_index: Position of the shock in the result arrays
        shock_name: Name of the shock variable
        error: The EstimationError raised inside the task
    """

    def __init__(self, shock_index, shock_name, error):
        self.shock_index = shock_index
        self.shock_name = shock_name
        self.error = error
        super().__init__(f"Estimation for shock {shock_index} ({shock_name}) failed: "
                         f"{type(error).__name__}: {error}")
