"""
Configuration settings for local projection estimation.

An EstimationConfig is resolved and validated once per estimation call and is
never mutated afterwards; every stage of the estimation reads from it.
"""

import json
import logging
from dataclasses import dataclass, asdict, replace
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, Union

from .exceptions import ValidationError, InvalidCriterionError

logger = logging.getLogger(__name__)


class LagCriterion(str, Enum):
    """Information criteria available for lag-length selection"""
    AICC = "AICc"
    AIC = "AIC"
    BIC = "BIC"

    @classmethod
    def parse(cls, value: Union[str, "LagCriterion"]) -> "LagCriterion":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        raise InvalidCriterionError(
            f"Unknown lag length criterion {value!r}. Possible criteria are AICc, AIC or BIC."
        )


class ShockType(str, Enum):
    """Normalization of Cholesky-identified shocks"""
    STD_DEV = "std_dev"
    UNIT = "unit"


class EstimatorType(str, Enum):
    """Single-equation estimator used at every horizon"""
    OLS = "ols"
    TSLS = "2sls"


class ExecutorType(str, Enum):
    """Worker pool backing the per-shock tasks"""
    PROCESS = "process"
    THREAD = "thread"
    SERIAL = "serial"


def _coerce_enum(enum_cls, value, field_name):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        options = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field_name} must be one of {options}, got {value!r}")


# Default configuration
DEFAULT_CONFIG = {
    "horizons": 12,
    "lags_endog": 4,
    "lags_criterion": None,
    "max_lags": None,
    "lags_exog": None,
    "trend": 0,
    "confint": 1.96,
    "shock_type": ShockType.STD_DEV.value,
    "estimator": EstimatorType.OLS.value,
    "regime": None,
    "num_workers": None,
    "executor": ExecutorType.PROCESS.value,
}


@dataclass(frozen=True)
class RegimeConfig:
    """Smooth transition settings for two-regime estimation"""

    gamma: float = 3.0                 # steepness of the logistic transition
    use_hp: bool = False               # detrend the switching series first
    hp_lambda: float = 1600.0          # HP smoothing weight (quarterly default)
    lag_switching: bool = True         # weight row t with F(z_{t-1})

    def __post_init__(self):
        if not self.gamma > 0:
            raise ValidationError(f"gamma has to be strictly positive, got {self.gamma}")
        if self.use_hp and not self.hp_lambda > 0:
            raise ValidationError(f"hp_lambda has to be positive when use_hp is set, got {self.hp_lambda}")


@dataclass(frozen=True)
class EstimationConfig:
    """
    Immutable estimation configuration.

    Exactly one of ``lags_endog`` (fixed lag order) and ``lags_criterion``
    (select the order per horizon and equation, up to ``max_lags``) is active.
    """

    horizons: int
    lags_endog: Optional[int] = None
    lags_criterion: Optional[LagCriterion] = None
    max_lags: Optional[int] = None
    lags_exog: Optional[int] = None
    trend: int = 0
    confint: float = 1.96
    shock_type: ShockType = ShockType.STD_DEV
    estimator: EstimatorType = EstimatorType.OLS
    regime: Optional[RegimeConfig] = None
    num_workers: Optional[int] = None
    executor: ExecutorType = ExecutorType.PROCESS

    def __post_init__(self):
        if self.lags_criterion is not None:
            object.__setattr__(self, "lags_criterion", LagCriterion.parse(self.lags_criterion))
        object.__setattr__(self, "shock_type", _coerce_enum(ShockType, self.shock_type, "shock_type"))
        object.__setattr__(self, "estimator", _coerce_enum(EstimatorType, self.estimator, "estimator"))
        object.__setattr__(self, "executor", _coerce_enum(ExecutorType, self.executor, "executor"))
        if isinstance(self.regime, dict):
            object.__setattr__(self, "regime", RegimeConfig(**self.regime))

        if (self.lags_endog is None) == (self.lags_criterion is None):
            raise ValidationError("Provide either a fixed lag order (lags_endog) or a lag length "
                                  "criterion (lags_criterion), not both and not neither.")
        if self.lags_criterion is not None:
            if not _is_int(self.max_lags) or self.max_lags < 1:
                raise ValidationError("max_lags has to be a positive integer when a lag criterion is used.")
        elif self.max_lags is not None:
            raise ValidationError("max_lags is only used together with a lag length criterion.")
        if self.lags_endog is not None and (not _is_int(self.lags_endog) or self.lags_endog < 0):
            raise ValidationError(f"lags_endog has to be a non-negative integer, got {self.lags_endog!r}")
        if self.lags_exog is not None and (not _is_int(self.lags_exog) or self.lags_exog < 0):
            raise ValidationError(f"lags_exog has to be a non-negative integer, got {self.lags_exog!r}")
        if not _is_int(self.horizons) or self.horizons < 1:
            raise ValidationError("The number of horizons has to be an integer and > 0.")
        if self.trend not in (0, 1, 2):
            raise ValidationError("For trend please enter 0 = no trend, 1 = trend, "
                                  "2 = trend and quadratic trend.")
        if not self.confint >= 0:
            raise ValidationError("The width of the confidence bands has to be >= 0.")
        if self.num_workers is not None and (not _is_int(self.num_workers) or self.num_workers < 1):
            raise ValidationError("num_workers has to be a positive integer.")

    @property
    def nonlinear(self) -> bool:
        return self.regime is not None

    @property
    def max_candidate_lags(self) -> int:
        """Largest endogenous lag order any regression can use"""
        return self.max_lags if self.lags_criterion is not None else self.lags_endog

    def to_dict(self) -> Dict[str, Any]:
        config_dict = asdict(self)
        for key, value in config_dict.items():
            if isinstance(value, Enum):
                config_dict[key] = value.value
        return config_dict

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "EstimationConfig":
        merged = DEFAULT_CONFIG.copy()
        merged.update(config_dict)
        if merged.get("lags_criterion") is not None and "lags_endog" not in config_dict:
            merged["lags_endog"] = None
        return cls(**merged)

    def update(self, **changes) -> "EstimationConfig":
        """Return a validated copy with some fields replaced"""
        return replace(self, **changes)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def load_config_from_file(config_path: str) -> EstimationConfig:
    """Load an estimation configuration from a JSON file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config_dict = json.load(f)

    logger.info(f"Loaded estimation configuration from {config_path}")
    return EstimationConfig.from_dict(config_dict)


def save_config_to_file(config_obj: EstimationConfig, config_path: str) -> None:
    """Save an estimation configuration to a JSON file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config_obj.to_dict(), f, indent=2)
