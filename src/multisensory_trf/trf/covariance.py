"""Covariance accumulation for additive TRF models.

Covariances are computed per segment from the lagged design matrix ``X`` (with
bias column) as ``Cxx = X'X`` and ``Cxy = X'Y``. In single-lag mode the arrays
carry a trailing lag axis, one bias + one-lag design per slice.

Two strategies give the leave-one-fold-out training covariance:

* :class:`EagerCovariance` keeps every fold's pair and subtracts it from the
  total. Fast, memory grows with the number of folds.
* :class:`LazyCovariance` keeps only the total and rebuilds the held-out fold's
  pair when asked. One extra design build per fold, constant memory.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple, Type

import numpy as np

from ..config import AccumulationStrategy, ModelType, coerce_option
from .data import Fold
from .features import as_trial_matrix, lag_segment, single_lag_columns

logger = logging.getLogger(__name__)

CovPair = Tuple[np.ndarray, np.ndarray]


def segment_covariance(
    x: np.ndarray,
    ys: Sequence[np.ndarray],
    lags: np.ndarray,
    start: int,
    stop: int,
    model_type: ModelType | str = ModelType.MULTI,
    zeropad: bool = True,
) -> Tuple[np.ndarray, List[np.ndarray]]:
    """Covariance of one input segment with one or more target segments.

    Parameters
    ----------
    x:
        Input trial (T, V).
    ys:
        Target trials sharing the design of ``x``, each (T, O).
    lags:
        Integer sample lags.
    start / stop:
        Segment rows within the trial.
    model_type:
        ``multi``: Cxx (V*L+1, V*L+1), Cxy (V*L+1, O).
        ``single``: Cxx (V+1, V+1, L), Cxy (V+1, O, L).

    Returns
    -------
    Tuple[np.ndarray, List[np.ndarray]]
        ``Cxx`` and one ``Cxy`` per target.
    """

    model_type = coerce_option(ModelType, model_type, "model type")
    lags = np.asarray(lags, dtype=int).ravel()
    design, idx = lag_segment(x, lags, start, stop, zeropad=zeropad, bias=True)
    targets = [as_trial_matrix(y)[start:stop][idx] for y in ys]

    if model_type is ModelType.MULTI:
        return design.T @ design, [design.T @ y for y in targets]

    n_vars = as_trial_matrix(x).shape[1]
    n_lags = len(lags)
    cxx = np.empty((n_vars + 1, n_vars + 1, n_lags), dtype=np.float64)
    cxys = [np.empty((n_vars + 1, y.shape[1], n_lags), dtype=np.float64) for y in targets]
    for k in range(n_lags):
        xk = design[:, single_lag_columns(n_vars, k)]
        cxx[:, :, k] = xk.T @ xk
        for cxy, y in zip(cxys, targets):
            cxy[:, :, k] = xk.T @ y
    return cxx, cxys


@dataclass(frozen=True)
class AdditiveStream:
    """A unisensory input family and the target families it is paired with.

    For a segment the stream contributes ``Cxx * len(targets)`` and the sum of
    the target cross-covariances, i.e. the covariance of stacking one copy of
    the input per target.
    """

    inputs: Sequence[np.ndarray]
    targets: Sequence[Sequence[np.ndarray]]

    def covariance(
        self,
        trial: int,
        start: int,
        stop: int,
        lags: np.ndarray,
        model_type: ModelType | str = ModelType.MULTI,
        zeropad: bool = True,
    ) -> CovPair:
        cxx, cxys = segment_covariance(
            self.inputs[trial],
            [family[trial] for family in self.targets],
            lags,
            start,
            stop,
            model_type=model_type,
            zeropad=zeropad,
        )
        cxy = cxys[0].copy()
        for other in cxys[1:]:
            cxy += other
        return cxx * len(cxys), cxy


def additive_covariance(
    streams: Sequence[AdditiveStream],
    fold: Fold,
    lags: np.ndarray,
    model_type: ModelType | str = ModelType.MULTI,
    zeropad: bool = True,
) -> CovPair:
    """Sum of all streams' contributions for one fold."""

    cxx, cxy = streams[0].covariance(fold.trial, fold.start, fold.stop, lags, model_type, zeropad)
    for stream in streams[1:]:
        sxx, sxy = stream.covariance(fold.trial, fold.start, fold.stop, lags, model_type, zeropad)
        cxx += sxx
        cxy += sxy
    return cxx, cxy


class CovarianceStrategy(ABC):
    """Leave-one-fold-out training covariances for additive models."""

    def __init__(
        self,
        streams: Sequence[AdditiveStream],
        lags: np.ndarray,
        model_type: ModelType | str = ModelType.MULTI,
        zeropad: bool = True,
    ):
        if not streams:
            raise ValueError("At least one additive stream is required")
        self.streams = list(streams)
        self.lags = np.asarray(lags, dtype=int).ravel()
        self.model_type = coerce_option(ModelType, model_type, "model type")
        self.zeropad = bool(zeropad)
        self.folds: List[Fold] = []
        self.total: CovPair | None = None

    def _set_folds(self, folds: Sequence[Fold]) -> None:
        if not folds:
            raise ValueError("At least one fold is required")
        self.folds = list(folds)

    def fold_covariance(self, fold: Fold) -> CovPair:
        return additive_covariance(self.streams, fold, self.lags, self.model_type, self.zeropad)

    def _check_fitted(self) -> CovPair:
        if self.total is None:
            raise RuntimeError(f"{type(self).__name__} has not accumulated any folds yet.")
        return self.total

    @abstractmethod
    def accumulate(self, folds: Sequence[Fold]) -> None:
        """Compute the covariance total over ``folds``."""

    @abstractmethod
    def training_covariance(self, n: int) -> CovPair:
        """Covariance of every fold except fold ``n``."""

    @property
    @abstractmethod
    def n_stored(self) -> int:
        """Number of covariance pairs held in memory."""


class EagerCovariance(CovarianceStrategy):
    """Store each fold's covariance pair; subtract on demand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._pairs: List[CovPair] = []

    def accumulate(self, folds: Sequence[Fold]) -> None:
        self._set_folds(folds)
        self._pairs = [self.fold_covariance(fold) for fold in self.folds]
        cxx = np.zeros_like(self._pairs[0][0])
        cxy = np.zeros_like(self._pairs[0][1])
        for sxx, sxy in self._pairs:
            cxx += sxx
            cxy += sxy
        self.total = (cxx, cxy)
        logger.debug("Eager covariance: %d folds, %d stored pairs", len(self.folds), self.n_stored)

    def training_covariance(self, n: int) -> CovPair:
        cxx, cxy = self._check_fitted()
        sxx, sxy = self._pairs[n]
        return cxx - sxx, cxy - sxy

    @property
    def n_stored(self) -> int:
        return len(self._pairs) + (self.total is not None)


class LazyCovariance(CovarianceStrategy):
    """Store only the running total; rebuild the held-out fold when asked."""

    def accumulate(self, folds: Sequence[Fold]) -> None:
        self._set_folds(folds)
        cxx = cxy = None
        for fold in self.folds:
            sxx, sxy = self.fold_covariance(fold)
            if cxx is None:
                cxx, cxy = sxx, sxy
            else:
                cxx += sxx
                cxy += sxy
        self.total = (cxx, cxy)
        logger.debug("Lazy covariance: %d folds, %d stored pairs", len(self.folds), self.n_stored)

    def training_covariance(self, n: int) -> CovPair:
        cxx, cxy = self._check_fitted()
        sxx, sxy = self.fold_covariance(self.folds[n])
        return cxx - sxx, cxy - sxy

    @property
    def n_stored(self) -> int:
        return int(self.total is not None)


STRATEGY_REGISTRY: Dict[AccumulationStrategy, Type[CovarianceStrategy]] = {
    AccumulationStrategy.EAGER: EagerCovariance,
    AccumulationStrategy.LAZY: LazyCovariance,
}


def build_strategy(
    strategy: AccumulationStrategy | str,
    streams: Sequence[AdditiveStream],
    lags: np.ndarray,
    model_type: ModelType | str = ModelType.MULTI,
    zeropad: bool = True,
) -> CovarianceStrategy:
    strategy = coerce_option(AccumulationStrategy, strategy, "accumulation strategy")
    return STRATEGY_REGISTRY[strategy](streams, lags, model_type=model_type, zeropad=zeropad)


__all__ = [
    "AdditiveStream",
    "CovarianceStrategy",
    "EagerCovariance",
    "LazyCovariance",
    "STRATEGY_REGISTRY",
    "additive_covariance",
    "build_strategy",
    "segment_covariance",
]
