"""Accuracy and error metrics for TRF predictions."""

from __future__ import annotations

from typing import Tuple

import numpy as np
from scipy.stats import rankdata
from sklearn.metrics import mean_absolute_error, mean_squared_error

from .config import AccuracyMetric, ErrorMetric, coerce_option
from .exceptions import DimensionMismatchError


def _as_columns(a: np.ndarray) -> np.ndarray:
    a = np.asarray(a, dtype=np.float64)
    return a.reshape(-1, 1) if a.ndim == 1 else a


def pearson_corr(y_true: np.ndarray, y_pred: np.ndarray) -> np.ndarray:
    """Pearson correlation between matching columns.

    Columns with zero variance in either input score 0.0.
    """

    a = _as_columns(y_true)
    b = _as_columns(y_pred)
    a = a - a.mean(axis=0)
    b = b - b.mean(axis=0)
    num = np.sum(a * b, axis=0)
    den = np.sqrt(np.sum(a**2, axis=0) * np.sum(b**2, axis=0))
    out = np.zeros(a.shape[1], dtype=np.float64)
    ok = den > 0
    out[ok] = num[ok] / den[ok]
    return np.clip(out, -1.0, 1.0)


def spearman_corr(y_true: np.ndarray, y_pred: np.ndarray) -> np.ndarray:
    """Spearman rank correlation between matching columns (average ranks for ties)."""

    a = rankdata(_as_columns(y_true), axis=0)
    b = rankdata(_as_columns(y_pred), axis=0)
    return pearson_corr(a, b)


def evaluate(
    y: np.ndarray,
    pred: np.ndarray,
    accuracy: AccuracyMetric | str = AccuracyMetric.PEARSON,
    error: ErrorMetric | str = ErrorMetric.MSE,
) -> Tuple[np.ndarray, np.ndarray]:
    """Score predictions against observations, one value per output variable.

    Parameters
    ----------
    y:
        Observed output of shape (N, O).
    pred:
        Predicted output of shape (N, O).
    accuracy:
        ``Pearson`` or ``Spearman`` correlation.
    error:
        ``mse`` (mean squared error, take the square root for RMSE) or ``mae``.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        ``(acc, err)``, each of shape (O,).
    """

    accuracy = coerce_option(AccuracyMetric, accuracy, "accuracy metric")
    error = coerce_option(ErrorMetric, error, "error metric")
    y = _as_columns(y)
    pred = _as_columns(pred)
    if y.shape != pred.shape:
        raise DimensionMismatchError(
            f"Predicted output {pred.shape} does not match observed output {y.shape}"
        )
    if y.shape[0] == 0:
        raise DimensionMismatchError("Cannot evaluate an empty prediction")

    if accuracy is AccuracyMetric.SPEARMAN:
        acc = spearman_corr(y, pred)
    else:
        acc = pearson_corr(y, pred)

    if error is ErrorMetric.MAE:
        err = mean_absolute_error(y, pred, multioutput="raw_values")
    else:
        err = mean_squared_error(y, pred, multioutput="raw_values")
    return acc, np.asarray(err, dtype=np.float64)


__all__ = ["evaluate", "pearson_corr", "spearman_corr"]
