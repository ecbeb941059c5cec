"""Shared synthetic data for the TRF tests."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
import pytest

from multisensory_trf.trf.features import lag_matrix


def make_additive_trials(
    rng: np.random.Generator,
    n_trials: int = 3,
    n_obs: int = 100,
    x_vars: int = 1,
    y_vars: int = 1,
    lags: np.ndarray = np.arange(3),
    noise: float = 0.0,
) -> Tuple[List[np.ndarray], List[np.ndarray], List[np.ndarray], List[np.ndarray]]:
    """Stimulus trials and responses generated by a lagged linear kernel.

    The unisensory responses are identical half-amplitude copies of the
    multisensory response.
    """

    kernel = rng.standard_normal((x_vars * len(lags), y_vars))
    stim, resp = [], []
    for _ in range(n_trials):
        x = rng.standard_normal((n_obs, x_vars))
        X, _ = lag_matrix(x, lags)
        y = X @ kernel + noise * rng.standard_normal((n_obs, y_vars))
        stim.append(x)
        resp.append(y)
    resp1 = [r / 2 for r in resp]
    resp2 = [r / 2 for r in resp]
    return stim, resp, resp1, resp2


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def trials(rng):
    """3 trials x 100 samples, 1 input and 1 output variable, noisy."""
    return make_additive_trials(rng, noise=0.5)
