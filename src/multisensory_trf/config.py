"""Configuration for multisensory TRF cross-validation.

Option values are closed enumerations. Strings are accepted wherever an option
is expected and are matched case-insensitively, either exactly or by an
unambiguous prefix (``"tik"`` selects Tikhonov regularization).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from enum import Enum
from numbers import Integral
from pathlib import Path
from typing import Any, Dict, Mapping, Type, TypeVar

import yaml

from .exceptions import InvalidMethodError, InvalidParameterError

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class Direction(int, Enum):
    """Modeling direction: encoding (stim -> resp) or decoding (resp -> stim)."""

    FORWARD = 1
    BACKWARD = -1

    @classmethod
    def coerce(cls, value: Any) -> "Direction":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text and "forward".startswith(text):
                return cls.FORWARD
            if text and "backward".startswith(text):
                return cls.BACKWARD
        elif not isinstance(value, bool) and isinstance(value, (Integral, float)) and value in (1, -1):
            return cls(int(value))
        raise InvalidParameterError(f"Direction must be 1 (forward) or -1 (backward), got {value!r}")


class RegularizationMethod(str, Enum):
    RIDGE = "ridge"
    TIKHONOV = "Tikhonov"
    OLS = "ols"


class ModelType(str, Enum):
    MULTI = "multi"
    SINGLE = "single"


class AccuracyMetric(str, Enum):
    PEARSON = "Pearson"
    SPEARMAN = "Spearman"


class ErrorMetric(str, Enum):
    MSE = "mse"
    MAE = "mae"


class AccumulationStrategy(str, Enum):
    """Covariance accumulation: ``eager`` keeps every fold, ``lazy`` only the total."""

    EAGER = "eager"
    LAZY = "lazy"


class SingularPolicy(str, Enum):
    """What to do with a fold/lambda cell whose normal equations are singular."""

    RAISE = "raise"
    NAN = "nan"
    LSTSQ = "lstsq"


def coerce_option(
    enum_cls: Type[E],
    value: Any,
    name: str,
    error_cls: Type[InvalidParameterError] = InvalidParameterError,
) -> E:
    """Resolve ``value`` to a member of ``enum_cls``."""

    if isinstance(value, enum_cls):
        return value
    text = str(value).strip().lower()
    if text:
        members = list(enum_cls)
        for member in members:
            if str(member.value).lower() == text:
                return member
        partial = [m for m in members if str(m.value).lower().startswith(text)]
        if len(partial) == 1:
            return partial[0]
    available = ", ".join(str(m.value) for m in enum_cls)
    raise error_cls(f"Unknown {name} '{value}'. Available: {available}")


def _is_flag(value: Any) -> bool:
    return isinstance(value, bool) or (isinstance(value, Integral) and value in (0, 1))


@dataclass(frozen=True)
class CrossValConfig:
    """Immutable options for one cross-validation run.

    Attributes
    ----------
    dim:
        Axis holding observations in every trial array: 0 for rows (default)
        or 1 for columns.
    method:
        Regularization method (ridge, Tikhonov or ols).
    model_type:
        ``multi`` fits all lags jointly, ``single`` fits one model per lag.
    accuracy / error:
        Metrics reported per output variable.
    split:
        Number of contiguous segments each trial is cut into. Every segment is
        one cross-validation fold.
    zeropad:
        Zero-pad the trial edges of the design matrix (True) or drop the rows
        whose lags fall outside the trial (False).
    strategy:
        Covariance accumulation strategy (eager/lazy).
    on_singular:
        Policy for unsolvable normal equations.
    """

    dim: int = 0
    method: RegularizationMethod = RegularizationMethod.RIDGE
    model_type: ModelType = ModelType.MULTI
    accuracy: AccuracyMetric = AccuracyMetric.PEARSON
    error: ErrorMetric = ErrorMetric.MSE
    split: int = 1
    zeropad: bool = True
    strategy: AccumulationStrategy = AccumulationStrategy.EAGER
    on_singular: SingularPolicy = SingularPolicy.NAN

    def __post_init__(self) -> None:
        setter = object.__setattr__
        setter(self, "method", coerce_option(RegularizationMethod, self.method, "regularization method", InvalidMethodError))
        setter(self, "model_type", coerce_option(ModelType, self.model_type, "model type"))
        setter(self, "accuracy", coerce_option(AccuracyMetric, self.accuracy, "accuracy metric"))
        setter(self, "error", coerce_option(ErrorMetric, self.error, "error metric"))
        setter(self, "strategy", coerce_option(AccumulationStrategy, self.strategy, "accumulation strategy"))
        setter(self, "on_singular", coerce_option(SingularPolicy, self.on_singular, "singular policy"))

        if isinstance(self.dim, bool) or self.dim not in (0, 1):
            raise InvalidParameterError(f"dim must be 0 or 1, got {self.dim!r}")
        if isinstance(self.split, bool) or not isinstance(self.split, Integral) or self.split < 1:
            raise InvalidParameterError(f"split must be a positive integer, got {self.split!r}")
        if not _is_flag(self.zeropad):
            raise InvalidParameterError(f"zeropad must be a boolean, got {self.zeropad!r}")
        setter(self, "dim", int(self.dim))
        setter(self, "split", int(self.split))
        setter(self, "zeropad", bool(self.zeropad))

    @property
    def fast(self) -> bool:
        """Legacy alias: True for the eager strategy."""

        return self.strategy is AccumulationStrategy.EAGER

    def with_overrides(self, **overrides: Any) -> "CrossValConfig":
        return replace(self, **crossval_options(overrides)) if overrides else self


# Option names used by the original toolbox and their config fields.
_OPTION_ALIASES = {
    "type": "model_type",
    "acc": "accuracy",
    "err": "error",
}


def crossval_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Normalize option names (including legacy aliases) to config fields."""

    valid = {f.name for f in fields(CrossValConfig)}
    resolved: Dict[str, Any] = {}
    for key, value in options.items():
        if key == "fast":
            if not _is_flag(value):
                raise InvalidParameterError(f"fast must be a boolean, got {value!r}")
            resolved["strategy"] = AccumulationStrategy.EAGER if value else AccumulationStrategy.LAZY
            continue
        name = _OPTION_ALIASES.get(key, key)
        if name not in valid:
            raise InvalidParameterError(f"Unknown cross-validation option '{key}'")
        resolved[name] = value
    return resolved


def crossval_config_from_dict(section: Mapping[str, Any] | None) -> CrossValConfig:
    """Build a :class:`CrossValConfig` from a (YAML) mapping.

    Unknown keys are ignored with a warning so that a shared YAML file can carry
    options for other tools.
    """

    section = dict(section or {})
    known = {f.name for f in fields(CrossValConfig)} | set(_OPTION_ALIASES) | {"fast"}
    unknown = sorted(k for k in section if k not in known)
    if unknown:
        logger.warning("Ignoring unknown cross-validation options: %s", unknown)
    return CrossValConfig(**crossval_options({k: v for k, v in section.items() if k in known}))


def load_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML configuration file.

    Parameters
    ----------
    path:
        Path to the YAML file.

    Returns
    -------
    Dict[str, Any]
        Parsed configuration dictionary (empty for an empty file).
    """

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


__all__ = [
    "AccumulationStrategy",
    "AccuracyMetric",
    "CrossValConfig",
    "Direction",
    "ErrorMetric",
    "ModelType",
    "RegularizationMethod",
    "SingularPolicy",
    "coerce_option",
    "crossval_config_from_dict",
    "crossval_options",
    "load_config",
]
