"""Cross-validate an additive multisensory TRF model from a YAML config."""

from __future__ import annotations

import argparse
import datetime
import logging
from pathlib import Path
from typing import Dict

from multisensory_trf.config import crossval_config_from_dict, load_config
from multisensory_trf.trf.crossval import multisensory_crossval
from multisensory_trf.trf.data import load_trials_from_manifest, nan_inf_report

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cross-validate an additive multisensory TRF model")
    parser.add_argument("--config", required=True, help="Path to YAML config")
    parser.add_argument("--manifest", type=Path, help="Override the manifest path from the config")
    parser.add_argument("--output-dir", type=Path, help="Override the output directory from the config")
    parser.add_argument("--verbose", action="store_true", help="Log per-fold progress")
    return parser.parse_args()


def _require(config_dict: Dict[str, object], key: str) -> object:
    if key not in config_dict:
        raise KeyError(f"Config is missing required key '{key}'")
    return config_dict[key]


def _crossval_section(config_dict: Dict[str, object]) -> Dict[str, object]:
    section = config_dict.get("crossval")
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"Config key 'crossval' must be a mapping of options, got {section!r}")
    return section


def _ensure_results_path(output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    return output_dir / f"multicrossval_{timestamp}.csv"


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    config_dict = load_config(args.config)

    manifest = args.manifest or Path(str(_require(config_dict, "manifest_path")))
    cv_config = crossval_config_from_dict(_crossval_section(config_dict))

    trials = load_trials_from_manifest(manifest, columns=config_dict.get("columns"), dim=cv_config.dim)
    nan_inf_report(trials)

    result = multisensory_crossval(
        trials.stim,
        trials.resp,
        trials.resp1,
        trials.resp2,
        fs=float(_require(config_dict, "fs")),
        direction=config_dict.get("direction", "forward"),
        tmin=float(_require(config_dict, "tmin")),
        tmax=float(_require(config_dict, "tmax")),
        lambdas=_require(config_dict, "lambdas"),
        # dim was applied when loading
        config=cv_config.with_overrides(dim=0),
    )

    df = result.to_frame()
    df["trial_id"] = [trials.trial_ids[i] for i in df["trial"]]
    output_dir = args.output_dir or Path(str(config_dict.get("output_dir", "results/multicrossval")))
    output_path = _ensure_results_path(output_dir)
    df.to_csv(output_path, index=False)
    print(f"Saved cross-validation results to {output_path}")

    if not df.empty:
        summary = df.groupby("lambda")[["acc", "err"]].mean()
        print(summary.to_string())


if __name__ == "__main__":
    main()
