"""Solving the regularized normal equations of a TRF model."""

from __future__ import annotations

import logging
import warnings

import numpy as np
from scipy.linalg import LinAlgError, LinAlgWarning, lstsq, solve

from ..config import SingularPolicy, coerce_option
from ..exceptions import DimensionMismatchError, SingularSystemError

logger = logging.getLogger(__name__)

# Additive models are trained on two unisensory covariance sets whose sum has
# twice the weight of the multisensory response they are validated against.
SUPERPOSITION_FACTOR = 2.0


def solve_normal_equations(
    cxx: np.ndarray,
    cxy: np.ndarray,
    lam: float,
    M: np.ndarray,
    on_singular: SingularPolicy | str = SingularPolicy.RAISE,
) -> np.ndarray:
    """Solve ``(Cxx + lam * M) w = Cxy`` for ``w``.

    Parameters
    ----------
    cxx:
        Input covariance (P, P).
    cxy:
        Input-output cross-covariance (P, O).
    lam:
        Regularization strength.
    M:
        Regularization operator (P, P).
    on_singular:
        ``lstsq`` falls back to a least-squares solution (with a warning) when
        the system is singular or ill-conditioned; any other policy raises
        :class:`SingularSystemError`.
    """

    on_singular = coerce_option(SingularPolicy, on_singular, "singular policy")
    A = cxx + lam * M
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", LinAlgWarning)
            return solve(A, cxy)
    except (LinAlgError, LinAlgWarning) as exc:
        if on_singular is SingularPolicy.LSTSQ:
            logger.warning("Singular system at lambda=%g, using least-squares solution: %s", lam, exc)
            w, *_ = lstsq(A, cxy)
            return w
        raise SingularSystemError(f"Regularized normal equations are singular at lambda={lam:g}: {exc}") from exc


def fit_additive_model(
    cxx: np.ndarray,
    cxy: np.ndarray,
    lam: float,
    M: np.ndarray,
    on_singular: SingularPolicy | str = SingularPolicy.RAISE,
) -> np.ndarray:
    """Weights of an additive multisensory model, corrected for superposition."""

    return solve_normal_equations(cxx, cxy, lam, M, on_singular=on_singular) * SUPERPOSITION_FACTOR


def predict(design: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Predict outputs from a biased design matrix."""

    if design.shape[1] != w.shape[0]:
        raise DimensionMismatchError(f"Design has {design.shape[1]} columns but model has {w.shape[0]} coefficients")
    return design @ w


__all__ = [
    "SUPERPOSITION_FACTOR",
    "fit_additive_model",
    "predict",
    "solve_normal_equations",
]
