"""Regularization operators for the TRF normal equations."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..config import RegularizationMethod, coerce_option
from ..exceptions import InvalidMethodError, InvalidParameterError


def regularization_matrix(mvar: int, fs: float, method: RegularizationMethod | str = RegularizationMethod.RIDGE) -> np.ndarray:
    """Penalty matrix ``M`` for ``(Cxx + lambda * M) w = Cxy``.

    Row/column 0 belongs to the bias term and is never penalized. The matrix
    is divided by the sampling interval ``1 / fs`` so that a given lambda has
    a comparable effect across sample rates.

    Parameters
    ----------
    mvar:
        Number of model coefficients including the bias.
    fs:
        Sample rate in Hz.
    method:
        ``ridge``: identity. ``Tikhonov``: first-difference smoothing, with
        the first and last lag coefficients weighted 0.5. ``ols``: identity;
        callers disable the penalty through :func:`effective_lambdas`.
    """

    method = coerce_option(RegularizationMethod, method, "regularization method", InvalidMethodError)
    if mvar < 2:
        raise InvalidParameterError(f"mvar must include the bias and at least one coefficient, got {mvar}")

    M = np.eye(mvar)
    if method is RegularizationMethod.TIKHONOV:
        M -= 0.5 * (np.eye(mvar, k=1) + np.eye(mvar, k=-1))
        M[1, 1] = 0.5
        M[-1, -1] = 0.5
        M[0, 1] = 0.0
        M[1, 0] = 0.0
    M[0, 0] = 0.0
    return M * fs


def effective_lambdas(lambdas: Sequence[float] | float, method: RegularizationMethod | str) -> np.ndarray:
    """Regularization strengths actually applied; ``ols`` forces them all to 0."""

    method = coerce_option(RegularizationMethod, method, "regularization method", InvalidMethodError)
    lambdas = np.atleast_1d(np.asarray(lambdas, dtype=np.float64)).ravel()
    if method is RegularizationMethod.OLS:
        return np.zeros_like(lambdas)
    return lambdas


__all__ = ["effective_lambdas", "regularization_matrix"]
