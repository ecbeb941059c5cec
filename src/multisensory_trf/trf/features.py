"""Time-lag embedding of continuous trials."""

from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np

from ..config import Direction


def as_trial_matrix(x: np.ndarray) -> np.ndarray:
    """Return ``x`` as a float (T, V) array; 1-D input becomes a single column."""

    x = np.asarray(x, dtype=np.float64)
    if x.ndim == 1:
        return x.reshape(-1, 1)
    if x.ndim != 2:
        raise ValueError("Trials must be 1D or 2D arrays (T, V)")
    return x


def lag_samples(fs: float, tmin: float, tmax: float, direction: Direction | int | str = Direction.FORWARD) -> np.ndarray:
    """Convert a lag window in milliseconds to integer sample lags.

    Backward (decoding) models reverse the window, so ``[tmin, tmax]`` becomes
    ``[-tmax, -tmin]``. The window is widened outwards to whole samples.
    """

    direction = Direction.coerce(direction)
    if direction is Direction.BACKWARD:
        tmin, tmax = tmax, tmin
    sign = int(direction)
    lo = int(math.floor(tmin * fs * sign / 1e3))
    hi = int(math.ceil(tmax * fs * sign / 1e3))
    return np.arange(lo, hi + 1)


def lag_times(lags: np.ndarray, fs: float) -> np.ndarray:
    """Sample lags in milliseconds."""

    return np.asarray(lags, dtype=np.float64) / fs * 1e3


def edge_sizes(lags: np.ndarray) -> Tuple[int, int]:
    """Rows at the start and end of a trial whose lags reach outside it."""

    lags = np.asarray(lags)
    return max(0, int(lags.max())), max(0, -int(lags.min()))


def lag_matrix(x: np.ndarray, lags: np.ndarray, zeropad: bool = True) -> Tuple[np.ndarray, np.ndarray]:
    """Build a time-lagged design matrix.

    Column block ``i`` holds all variables of ``x`` delayed by ``lags[i]``
    samples: row ``n`` of the block is ``x[n - lags[i]]``. Positive lags look
    into the past, negative lags into the future.

    Parameters
    ----------
    x:
        Input of shape (T, V).
    lags:
        Integer sample lags (L,).
    zeropad:
        If True, rows referencing samples outside ``x`` are zero-filled and all
        T rows are kept. Otherwise those edge rows are dropped.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        The (M, V*L) design matrix and the indices of its rows into ``x``.
    """

    x = as_trial_matrix(x)
    lags = np.asarray(lags, dtype=int).ravel()
    T, V = x.shape
    X = np.zeros((T, V * len(lags)), dtype=np.float64)
    for i, lag in enumerate(lags):
        if abs(lag) >= T:
            continue
        cols = slice(i * V, (i + 1) * V)
        if lag > 0:
            X[lag:, cols] = x[: T - lag]
        elif lag < 0:
            X[: T + lag, cols] = x[-lag:]
        else:
            X[:, cols] = x

    if zeropad:
        return X, np.arange(T)
    head, tail = edge_sizes(lags)
    idx = np.arange(head, max(head, T - tail))
    return X[idx], idx


def lag_segment(
    x: np.ndarray,
    lags: np.ndarray,
    start: int,
    stop: int,
    zeropad: bool = True,
    bias: bool = True,
) -> Tuple[np.ndarray, np.ndarray]:
    """Design matrix for rows ``[start, stop)`` of a trial.

    Lags are computed on a local window that includes enough neighbouring
    samples of the trial around the segment, so only the trial edges are
    padded or truncated. Stacking the segments of a trial gives exactly the
    design matrix of the whole trial.

    Returns the design matrix (with a leading column of ones when ``bias``)
    and the kept row indices relative to ``start``.
    """

    x = as_trial_matrix(x)
    lags = np.asarray(lags, dtype=int).ravel()
    T = x.shape[0]
    head, tail = edge_sizes(lags)
    ctx_start = max(0, start - head)
    ctx_stop = min(T, stop + tail)
    local, _ = lag_matrix(x[ctx_start:ctx_stop], lags, zeropad=True)
    offset = start - ctx_start
    design = local[offset : offset + (stop - start)]
    if zeropad:
        idx = np.arange(stop - start)
    else:
        first = max(head, start) - start
        last = min(stop, T - tail) - start
        idx = np.arange(first, max(first, last))
        design = design[idx]
    if bias:
        design = np.hstack([np.ones((design.shape[0], 1)), design])
    return design, idx


def single_lag_columns(n_vars: int, lag_index: int) -> np.ndarray:
    """Bias column plus the column block of one lag in a biased design matrix."""

    first = 1 + lag_index * n_vars
    return np.r_[0, first : first + n_vars]


def segment_bounds(n_obs: int, split: int) -> List[Tuple[int, int]]:
    """Cut ``n_obs`` rows into ``split`` contiguous segments.

    Segments hold ``ceil(n_obs / split)`` rows each and the last one takes the
    remainder. When that would leave the last segment empty, segments hold
    ``n_obs // split`` rows and the last one absorbs the extra rows. Segments
    are only empty when ``n_obs < split``.
    """

    if split < 1:
        return [(0, n_obs)]
    size = int(math.ceil(n_obs / split))
    if (split - 1) * size >= n_obs:
        size = n_obs // split
    bounds = [(j * size, (j + 1) * size) for j in range(split - 1)]
    bounds.append(((split - 1) * size, n_obs))
    return bounds


__all__ = [
    "as_trial_matrix",
    "edge_sizes",
    "lag_matrix",
    "lag_samples",
    "lag_segment",
    "lag_times",
    "segment_bounds",
    "single_lag_columns",
]
