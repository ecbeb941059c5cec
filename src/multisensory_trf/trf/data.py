"""Trial containers, fold bookkeeping and manifest loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np
import pandas as pd

from ..exceptions import InvalidParameterError, ShapeMismatchError

logger = logging.getLogger(__name__)

FAMILIES = ("stim", "resp", "resp1", "resp2")


@dataclass
class TrialSet:
    """Four parallel collections of continuous trials.

    Attributes
    ----------
    stim:
        Stimulus trials, each of shape (T_i, V_stim).
    resp:
        Multisensory (combined) response trials, each of shape (T_i, V_resp).
    resp1 / resp2:
        Unisensory response trials A and B, same shapes as ``resp``.
    trial_ids:
        Optional labels, one per trial.
    """

    stim: List[np.ndarray]
    resp: List[np.ndarray]
    resp1: List[np.ndarray]
    resp2: List[np.ndarray]
    trial_ids: List[str] = field(default_factory=list)

    @property
    def n_trials(self) -> int:
        return len(self.stim)

    def families(self) -> Dict[str, List[np.ndarray]]:
        return {name: getattr(self, name) for name in FAMILIES}


@dataclass(frozen=True)
class Fold:
    """One held-out unit of cross-validation: a segment of one trial."""

    index: int
    trial: int
    segment: int
    start: int
    stop: int

    @property
    def n_obs(self) -> int:
        return self.stop - self.start


def format_trials(trials: np.ndarray | Sequence[np.ndarray], dim: int = 0) -> List[np.ndarray]:
    """Normalize a trial collection to a list of (T, V) float arrays.

    A single array is treated as one trial. 1-D trials become one column;
    with ``dim=1`` 2-D trials are transposed so observations run along rows.
    """

    if isinstance(trials, np.ndarray):
        trials = [trials]
    out: List[np.ndarray] = []
    for trial in trials:
        arr = np.asarray(trial, dtype=np.float64)
        if arr.ndim == 1:
            arr = arr.reshape(-1, 1)
        elif arr.ndim == 2:
            if dim == 1:
                arr = arr.T
        else:
            raise InvalidParameterError(f"Trials must be 1D or 2D arrays, got shape {arr.shape}")
        out.append(arr)
    return out


def check_trial_shapes(families: Mapping[str, Sequence[np.ndarray]]) -> List[int]:
    """Check that parallel families agree trial by trial.

    Returns the observation count of every trial. Variable counts must be
    constant across the trials of each family.
    """

    names = list(families)
    counts = {name: len(families[name]) for name in names}
    if len(set(counts.values())) != 1:
        raise ShapeMismatchError(f"Trial collections differ in number of trials: {counts}")
    if not counts[names[0]]:
        raise ShapeMismatchError("No trials given")

    for name in names:
        n_vars = {trial.shape[1] for trial in families[name]}
        if len(n_vars) != 1:
            raise ShapeMismatchError(f"Trials of '{name}' differ in number of variables: {sorted(n_vars)}")

    n_obs: List[int] = []
    for i in range(counts[names[0]]):
        obs = {name: families[name][i].shape[0] for name in names}
        if len(set(obs.values())) != 1:
            raise ShapeMismatchError(f"Trial {i} has mismatched observation counts: {obs}")
        n_obs.append(obs[names[0]])
    return n_obs


def _resolve_path(base: Path, value: str | Path) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return base / path


def load_trials_from_manifest(
    manifest_path: str | Path,
    columns: Mapping[str, str] | None = None,
    dim: int = 0,
) -> TrialSet:
    """Load the four trial families from a CSV manifest of ``.npy`` files.

    Parameters
    ----------
    manifest_path:
        CSV with one row per trial. Relative paths are resolved against the
        manifest directory.
    columns:
        Optional mapping from family name (``stim``, ``resp``, ``resp1``,
        ``resp2``) to manifest column; defaults to the family names.
    dim:
        Observation axis of the stored arrays.
    """

    manifest_path = Path(manifest_path)
    if not manifest_path.exists():
        raise FileNotFoundError(f"Manifest not found at {manifest_path}")
    columns = {name: name for name in FAMILIES} | dict(columns or {})

    df = pd.read_csv(manifest_path)
    missing = [col for col in columns.values() if col not in df.columns]
    if missing:
        raise ValueError(f"Manifest missing required columns: {missing}")

    base = manifest_path.parent
    loaded: Dict[str, List[np.ndarray]] = {name: [] for name in FAMILIES}
    trial_ids: List[str] = []
    for i, row in df.iterrows():
        for name in FAMILIES:
            path = _resolve_path(base, str(row[columns[name]]))
            if not path.exists():
                raise FileNotFoundError(f"Trial {i}: {name} array not found at {path}")
            loaded[name].append(np.load(path))
        trial_id = row.get("trial_id")
        trial_ids.append(str(i) if trial_id is None or pd.isna(trial_id) else str(trial_id))

    logger.info("Loaded %d trials from %s", len(trial_ids), manifest_path)
    return TrialSet(
        **{name: format_trials(loaded[name], dim=dim) for name in FAMILIES},
        trial_ids=trial_ids,
    )


def nan_inf_report(trials: TrialSet) -> Dict[str, int]:
    """Log and return how many trials of each family contain NaN or Inf."""

    report: Dict[str, int] = {}
    n = trials.n_trials if trials.n_trials else 1
    for name, family in trials.families().items():
        bad = sum(int(not np.isfinite(trial).all()) for trial in family)
        report[name] = bad
        logger.info("%s: trials=%d, with_NaN_or_Inf=%d (%.1f%%)", name, len(family), bad, 100 * bad / n)
    return report


__all__ = [
    "FAMILIES",
    "Fold",
    "TrialSet",
    "check_trial_shapes",
    "format_trials",
    "load_trials_from_manifest",
    "nan_inf_report",
]
