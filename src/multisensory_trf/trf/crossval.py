"""Leave-one-out cross-validation of additive multisensory TRF models.

Models are trained on the sum of two unisensory responses (the additive model
of multisensory processing) and validated on the actual multisensory response
(Crosse et al., 2015, J Neurosci 35(42):14195-14204).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

from ..config import CrossValConfig, Direction, ModelType, SingularPolicy
from ..evaluation import evaluate
from ..exceptions import InvalidParameterError, ShapeMismatchError, SingularSystemError
from .covariance import AdditiveStream, build_strategy
from .data import FAMILIES, Fold, check_trial_shapes, format_trials
from .features import edge_sizes, lag_samples, lag_segment, lag_times, segment_bounds, single_lag_columns
from .models import fit_additive_model, predict
from .regularization import effective_lambdas, regularization_matrix

logger = logging.getLogger(__name__)


@dataclass
class CrossValResult:
    """Cross-validation statistics.

    Attributes
    ----------
    acc / err:
        Accuracy and error of shape (folds, lambdas, output variables) for
        multi-lag models, with a trailing lag axis for single-lag models.
    t:
        Time lags in milliseconds.
    lags:
        Time lags in samples.
    lambdas:
        Regularization strengths applied (all zero for ``ols``).
    invalid:
        True where the normal equations were singular and the cell was left
        as NaN; shape (folds, lambdas[, lags]).
    folds:
        The held-out segments, in tensor order.
    """

    acc: np.ndarray
    err: np.ndarray
    t: np.ndarray
    lags: np.ndarray
    lambdas: np.ndarray
    invalid: np.ndarray
    folds: List[Fold]
    direction: Direction
    config: CrossValConfig = field(default_factory=CrossValConfig)

    @property
    def single_lag(self) -> bool:
        return self.config.model_type is ModelType.SINGLE

    def to_frame(self) -> pd.DataFrame:
        """Long-format table with one row per fold, lambda, variable (and lag)."""

        rows: List[Dict[str, Any]] = []
        n_lag = len(self.lags) if self.single_lag else 1
        for fold in self.folds:
            for j, lam in enumerate(self.lambdas):
                for v in range(self.acc.shape[2]):
                    for k in range(n_lag):
                        cell = (fold.index, j, v, k) if self.single_lag else (fold.index, j, v)
                        row: Dict[str, Any] = {
                            "fold": fold.index,
                            "trial": fold.trial,
                            "segment": fold.segment,
                            "lambda": float(lam),
                            "variable": v,
                        }
                        if self.single_lag:
                            row["lag"] = int(self.lags[k])
                            row["t_ms"] = float(self.t[k])
                        row["acc"] = float(self.acc[cell])
                        row["err"] = float(self.err[cell])
                        rows.append(row)
        return pd.DataFrame(rows)


def _finite_scalar(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{name} must be a numeric scalar, got {value!r}") from exc
    if not np.isfinite(out):
        raise InvalidParameterError(f"{name} must be finite, got {value!r}")
    return out


def _validate_parameters(fs: Any, tmin: Any, tmax: Any, lambdas: Any) -> Tuple[float, float, float, np.ndarray]:
    fs = _finite_scalar(fs, "fs")
    if fs <= 0:
        raise InvalidParameterError(f"fs must be positive, got {fs}")
    tmin = _finite_scalar(tmin, "tmin")
    tmax = _finite_scalar(tmax, "tmax")
    if tmin > tmax:
        raise InvalidParameterError(f"tmin ({tmin}) must not exceed tmax ({tmax})")
    try:
        lam = np.atleast_1d(np.asarray(lambdas, dtype=np.float64)).ravel()
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"lambdas must be numeric, got {lambdas!r}") from exc
    if lam.size == 0:
        raise InvalidParameterError("At least one regularization value is required")
    if not np.all(np.isfinite(lam)) or np.any(lam < 0):
        raise InvalidParameterError(f"lambdas must be finite and non-negative, got {lam}")
    return fs, tmin, tmax, lam


def build_folds(n_obs: Sequence[int], split: int, lags: np.ndarray, zeropad: bool = True) -> List[Fold]:
    """Cut every trial into ``split`` segments, one fold each.

    Raises :class:`InvalidParameterError` if a segment would be empty or, when
    edges are truncated, would keep no valid rows.
    """

    head, tail = edge_sizes(lags)
    folds: List[Fold] = []
    for trial, T in enumerate(n_obs):
        for segment, (start, stop) in enumerate(segment_bounds(T, split)):
            if stop <= start:
                raise InvalidParameterError(
                    f"Trial {trial} has {T} samples, fewer than the {split} segments requested"
                )
            if not zeropad and min(stop, T - tail) <= max(start, head):
                raise InvalidParameterError(
                    f"Segment {segment} of trial {trial} has no rows left after truncating lags {lags.min()}..{lags.max()}"
                )
            folds.append(Fold(index=len(folds), trial=trial, segment=segment, start=start, stop=stop))
    return folds


def multisensory_crossval(
    stim: np.ndarray | Sequence[np.ndarray],
    resp: np.ndarray | Sequence[np.ndarray],
    resp1: np.ndarray | Sequence[np.ndarray],
    resp2: np.ndarray | Sequence[np.ndarray],
    fs: float,
    direction: Direction | int | str,
    tmin: float,
    tmax: float,
    lambdas: float | Sequence[float],
    config: CrossValConfig | None = None,
    **options: Any,
) -> CrossValResult:
    """Cross-validate an additive multisensory TRF model.

    Forward models map ``stim`` to the responses; backward models map the
    responses to ``stim`` and reverse the time lags automatically. The model
    is trained on ``resp1`` and ``resp2`` (unisensory responses) and validated
    on ``resp`` (multisensory response), leaving out one trial segment at a
    time.

    Parameters
    ----------
    stim, resp, resp1, resp2:
        Trial collections (a sequence of (T_i, V) arrays, or one array for a
        single trial). Trial ``i`` must have the same number of observations
        in all four collections.
    fs:
        Sample rate in Hz.
    direction:
        1 / ``"forward"`` or -1 / ``"backward"``.
    tmin, tmax:
        Lag window in milliseconds.
    lambdas:
        Regularization strength(s) to validate.
    config:
        Run options; keyword ``options`` override individual fields (legacy
        names ``type``, ``acc``, ``err`` and ``fast`` are accepted).

    Returns
    -------
    CrossValResult
        Performance tensors and the lag axis.
    """

    config = (config or CrossValConfig()).with_overrides(**options)
    direction = Direction.coerce(direction)
    fs, tmin, tmax, lambdas = _validate_parameters(fs, tmin, tmax, lambdas)

    families = {name: format_trials(trials, dim=config.dim) for name, trials in zip(FAMILIES, (stim, resp, resp1, resp2))}
    n_obs = check_trial_shapes(families)
    n_resp_vars = families["resp"][0].shape[1]
    for name in ("resp1", "resp2"):
        if families[name][0].shape[1] != n_resp_vars:
            raise ShapeMismatchError(
                f"'{name}' has {families[name][0].shape[1]} variables but 'resp' has {n_resp_vars}"
            )

    lags = lag_samples(fs, tmin, tmax, direction)
    if direction is Direction.FORWARD:
        x, y = families["stim"], families["resp"]
        streams = [AdditiveStream(x, (families["resp1"], families["resp2"]))]
    else:
        x, y = families["resp"], families["stim"]
        streams = [AdditiveStream(families["resp1"], (y,)), AdditiveStream(families["resp2"], (y,))]

    folds = build_folds(n_obs, config.split, lags, zeropad=config.zeropad)

    single = config.model_type is ModelType.SINGLE
    x_vars = x[0].shape[1]
    y_vars = y[0].shape[1]
    n_lag = len(lags) if single else 1
    mvar = x_vars + 1 if single else x_vars * len(lags) + 1
    M = regularization_matrix(mvar, fs, config.method)
    lambdas = effective_lambdas(lambdas, config.method)

    logger.info(
        "Additive %s model: trials=%d folds=%d lags=%d..%d (%d) lambdas=%d method=%s type=%s strategy=%s",
        direction.name.lower(),
        len(n_obs),
        len(folds),
        lags[0],
        lags[-1],
        len(lags),
        len(lambdas),
        config.method.value,
        config.model_type.value,
        config.strategy.value,
    )

    strategy = build_strategy(config.strategy, streams, lags, model_type=config.model_type, zeropad=config.zeropad)
    strategy.accumulate(folds)
    logger.info("Accumulated covariances, %d pair(s) stored", strategy.n_stored)

    acc = np.zeros((len(folds), len(lambdas), y_vars, n_lag), dtype=np.float64)
    err = np.zeros_like(acc)
    invalid = np.zeros((len(folds), len(lambdas), n_lag), dtype=bool)

    for fold in folds:
        design, idx = lag_segment(x[fold.trial], lags, fold.start, fold.stop, zeropad=config.zeropad)
        target = y[fold.trial][fold.start : fold.stop][idx]
        cxx, cxy = strategy.training_covariance(fold.index)
        logger.debug("Fold %d: trial=%d rows=%d", fold.index, fold.trial, len(idx))

        for j, lam in enumerate(lambdas):
            for k in range(n_lag):
                if single:
                    cols = single_lag_columns(x_vars, k)
                    cxx_k, cxy_k, design_k = cxx[:, :, k], cxy[:, :, k], design[:, cols]
                else:
                    cxx_k, cxy_k, design_k = cxx, cxy, design
                try:
                    w = fit_additive_model(cxx_k, cxy_k, lam, M, on_singular=config.on_singular)
                except SingularSystemError as exc:
                    exc.fold, exc.cell = fold.index, (j, k)
                    if config.on_singular is SingularPolicy.RAISE:
                        raise
                    logger.warning("Fold %d, lambda=%g, lag index %d: %s", fold.index, lam, k, exc)
                    acc[fold.index, j, :, k] = np.nan
                    err[fold.index, j, :, k] = np.nan
                    invalid[fold.index, j, k] = True
                    continue
                pred = predict(design_k, w)
                acc[fold.index, j, :, k], err[fold.index, j, :, k] = evaluate(
                    target, pred, accuracy=config.accuracy, error=config.error
                )

    if not single:
        acc, err, invalid = acc[..., 0], err[..., 0], invalid[..., 0]
    if invalid.any():
        logger.warning("%d of %d cells were singular and left as NaN", int(invalid.sum()), invalid.size)

    return CrossValResult(
        acc=acc,
        err=err,
        t=lag_times(lags, fs),
        lags=lags,
        lambdas=lambdas,
        invalid=invalid,
        folds=folds,
        direction=direction,
        config=config,
    )


__all__ = ["CrossValResult", "build_folds", "multisensory_crossval"]
