"""Contiguous k-fold partitioning of continuous data."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
from sklearn.utils import check_random_state

from .exceptions import InvalidParameterError, ShapeMismatchError
from .trf.features import segment_bounds


def cvfold(
    stim: np.ndarray,
    resp: np.ndarray,
    k: int = 10,
    test_fold: int | str | None = None,
    dim: int = 0,
    random_state: int | np.random.RandomState | None = None,
) -> Tuple[List[np.ndarray], ...]:
    """Partition stimulus and response data into ``k`` contiguous folds.

    Each fold holds ``ceil(n / k)`` observations and the last fold takes the
    remainder, so all data are used (see :func:`segment_bounds` for awkward sizes).

    Parameters
    ----------
    stim, resp:
        Continuous data of shape (N, V); 1-D arrays are single variables.
    k:
        Number of folds.
    test_fold:
        ``None`` returns only the training folds. An integer index, or
        ``"random"`` for a randomly drawn fold, is removed from the training
        folds and returned separately.
    dim:
        Observation axis (0 for rows, 1 for columns).
    random_state:
        Seed or ``RandomState`` used when ``test_fold="random"``.

    Returns
    -------
    tuple
        ``(strain, rtrain)`` or ``(strain, rtrain, stest, rtest)``.
    """

    stim = np.asarray(stim)
    resp = np.asarray(resp)
    if dim == 1:
        stim, resp = stim.T, resp.T
    elif dim != 0:
        raise InvalidParameterError(f"dim must be 0 or 1, got {dim!r}")
    if stim.shape[0] != resp.shape[0]:
        raise ShapeMismatchError("stim and resp must have the same number of observations")
    if isinstance(k, bool) or int(k) != k or k < 1:
        raise InvalidParameterError(f"k must be a positive integer, got {k!r}")
    k = int(k)

    bounds = segment_bounds(stim.shape[0], k)
    strain = [stim[start:stop] for start, stop in bounds]
    rtrain = [resp[start:stop] for start, stop in bounds]
    if test_fold is None:
        return strain, rtrain

    if isinstance(test_fold, str):
        if test_fold != "random":
            raise InvalidParameterError(f"test_fold must be an index or 'random', got {test_fold!r}")
        test_fold = int(check_random_state(random_state).randint(k))
    if not 0 <= test_fold < k:
        raise InvalidParameterError(f"test_fold must be in [0, {k}), got {test_fold}")
    stest = strain.pop(test_fold)
    rtest = rtrain.pop(test_fold)
    return strain, rtrain, stest, rtest


__all__ = ["cvfold"]
