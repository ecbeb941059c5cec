"""Exception hierarchy for TRF cross-validation."""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np


class TRFError(Exception):
    """Base exception for TRF estimation failures."""


class ShapeMismatchError(TRFError, ValueError):
    """Trial collections disagree in trial count or observation count."""


class InvalidParameterError(TRFError, ValueError):
    """A scalar argument or configuration value is out of range or unknown."""


class InvalidMethodError(InvalidParameterError):
    """Unknown regularization method."""


class DimensionMismatchError(TRFError, ValueError):
    """Predicted and observed outputs do not line up."""


class SingularSystemError(TRFError, np.linalg.LinAlgError):
    """The regularized normal equations could not be solved.

    Args:
        message: Description of the failure.
        fold: Index of the fold being fitted, when known.
        cell: ``(lambda_index, lag_index)`` of the failing tensor cell.
    """

    def __init__(
        self,
        message: str,
        fold: Optional[int] = None,
        cell: Optional[Tuple[int, int]] = None,
    ):
        self.fold = fold
        self.cell = cell
        super().__init__(message)


__all__ = [
    "TRFError",
    "ShapeMismatchError",
    "InvalidParameterError",
    "InvalidMethodError",
    "DimensionMismatchError",
    "SingularSystemError",
]
