"""Tests for the normal-equation solver."""

from __future__ import annotations

import numpy as np
import pytest

from multisensory_trf.exceptions import DimensionMismatchError, SingularSystemError
from multisensory_trf.trf.models import SUPERPOSITION_FACTOR, fit_additive_model, predict, solve_normal_equations
from multisensory_trf.trf.regularization import regularization_matrix


@pytest.fixture
def system(rng):
    X = np.hstack([np.ones((80, 1)), rng.standard_normal((80, 4))])
    Y = rng.standard_normal((80, 2))
    return X, X.T @ X, X.T @ Y


class TestSolveNormalEquations:
    def test_matches_direct_solution(self, system):
        _, cxx, cxy = system
        M = regularization_matrix(5, 10)
        w = solve_normal_equations(cxx, cxy, 0.5, M)
        np.testing.assert_allclose(w, np.linalg.solve(cxx + 0.5 * M, cxy))

    def test_zero_lambda_is_least_squares(self, system):
        X, cxx, cxy = system
        w = solve_normal_equations(cxx, cxy, 0.0, regularization_matrix(5, 10, "Tikhonov"))
        np.testing.assert_allclose(w, np.linalg.solve(cxx, cxy))

    def test_singular_raises(self):
        with pytest.raises(SingularSystemError) as info:
            solve_normal_equations(np.zeros((3, 3)), np.ones((3, 1)), 0.0, np.eye(3))
        assert isinstance(info.value, np.linalg.LinAlgError)

    def test_singular_lstsq_fallback(self):
        w = solve_normal_equations(np.zeros((3, 3)), np.ones((3, 1)), 0.0, np.eye(3), on_singular="lstsq")
        assert w.shape == (3, 1)
        assert np.all(np.isfinite(w))

    def test_regularization_makes_system_solvable(self):
        cxx = np.zeros((3, 3))
        cxx[0, 0] = 10.0
        w = solve_normal_equations(cxx, np.ones((3, 1)), 1.0, regularization_matrix(3, 1))
        assert np.all(np.isfinite(w))


def test_additive_weights_are_doubled(system):
    _, cxx, cxy = system
    M = regularization_matrix(5, 10)
    np.testing.assert_allclose(
        fit_additive_model(cxx, cxy, 1.0, M),
        SUPERPOSITION_FACTOR * solve_normal_equations(cxx, cxy, 1.0, M),
    )
    assert SUPERPOSITION_FACTOR == 2


def test_predict_checks_columns(system):
    X, _, _ = system
    assert predict(X, np.ones((5, 2))).shape == (80, 2)
    with pytest.raises(DimensionMismatchError):
        predict(X, np.ones((4, 2)))
    with pytest.raises(DimensionMismatchError):
        predict(np.ones((5, 3)), np.ones((2, 1)))
