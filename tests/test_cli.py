"""Tests for the cross-validation command-line entry point."""

from __future__ import annotations

import sys

import numpy as np
import pandas as pd
import pytest
import yaml

from conftest import make_additive_trials
from multisensory_trf.bin import run_multicrossval


def test_main_writes_results(tmp_path, rng, monkeypatch):
    stim, resp, resp1, resp2 = make_additive_trials(rng, n_trials=2, noise=0.3)
    rows = []
    for i in range(2):
        row = {"trial_id": f"trial{i}"}
        for name, family in (("stim", stim), ("resp", resp), ("resp1", resp1), ("resp2", resp2)):
            np.save(tmp_path / f"{name}{i}.npy", family[i])
            row[name] = f"{name}{i}.npy"
        rows.append(row)
    pd.DataFrame(rows).to_csv(tmp_path / "manifest.csv", index=False)

    config = {
        "manifest_path": str(tmp_path / "manifest.csv"),
        "fs": 100,
        "direction": "forward",
        "tmin": 0,
        "tmax": 20,
        "lambdas": [0.1, 1],
        "crossval": {"split": 2, "type": "single"},
    }
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config), encoding="utf-8")
    output_dir = tmp_path / "out"

    monkeypatch.setattr(sys, "argv", ["run_multicrossval", "--config", str(config_path), "--output-dir", str(output_dir)])
    run_multicrossval.main()

    outputs = list(output_dir.glob("multicrossval_*.csv"))
    assert len(outputs) == 1
    df = pd.read_csv(outputs[0])
    # 4 folds x 2 lambdas x 1 variable x 3 lags
    assert len(df) == 24
    assert set(df["trial_id"]) == {"trial0", "trial1"}
    assert {"lag", "t_ms", "acc", "err"} <= set(df.columns)


def test_crossval_section_must_be_mapping(tmp_path, monkeypatch):
    config = {
        "manifest_path": str(tmp_path / "manifest.csv"),
        "fs": 100,
        "tmin": 0,
        "tmax": 20,
        "lambdas": [1],
        "crossval": "lasso",
    }
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config), encoding="utf-8")

    monkeypatch.setattr(sys, "argv", ["run_multicrossval", "--config", str(config_path)])
    with pytest.raises(ValueError, match="crossval"):
        run_multicrossval.main()
