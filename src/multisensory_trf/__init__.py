"""Cross-validation of additive multisensory temporal response functions."""

from .config import CrossValConfig, Direction, load_config
from .evaluation import evaluate
from .splits import cvfold
from .trf import CrossValResult, TrialSet, multisensory_crossval

__all__ = [
    "CrossValConfig",
    "CrossValResult",
    "Direction",
    "TrialSet",
    "cvfold",
    "evaluate",
    "load_config",
    "multisensory_crossval",
]
