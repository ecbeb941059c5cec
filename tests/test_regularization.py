"""Tests for regularization operators."""

from __future__ import annotations

import numpy as np
import pytest

from multisensory_trf.exceptions import InvalidMethodError, InvalidParameterError
from multisensory_trf.trf.regularization import effective_lambdas, regularization_matrix


class TestRegularizationMatrix:
    def test_ridge_leaves_bias_unpenalized(self):
        M = regularization_matrix(4, 100, "ridge")
        np.testing.assert_array_equal(M, np.diag([0.0, 100.0, 100.0, 100.0]))

    def test_tikhonov(self):
        M = regularization_matrix(5, 1, "Tikhonov")
        expected = np.array(
            [
                [0.0, 0.0, 0.0, 0.0, 0.0],
                [0.0, 0.5, -0.5, 0.0, 0.0],
                [0.0, -0.5, 1.0, -0.5, 0.0],
                [0.0, 0.0, -0.5, 1.0, -0.5],
                [0.0, 0.0, 0.0, -0.5, 0.5],
            ]
        )
        np.testing.assert_array_equal(M, expected)

    def test_tikhonov_is_symmetric_and_scaled(self):
        M = regularization_matrix(7, 64, "tik")
        np.testing.assert_array_equal(M, M.T)
        np.testing.assert_allclose(M / 64, regularization_matrix(7, 1, "Tikhonov"))

    def test_ols_matrix_matches_ridge(self):
        np.testing.assert_array_equal(regularization_matrix(3, 10, "ols"), regularization_matrix(3, 10, "ridge"))

    def test_unknown_method(self):
        with pytest.raises(InvalidMethodError):
            regularization_matrix(3, 10, "lasso")
        assert issubclass(InvalidMethodError, InvalidParameterError)

    def test_too_small(self):
        with pytest.raises(InvalidParameterError):
            regularization_matrix(1, 10)


def test_effective_lambdas():
    np.testing.assert_array_equal(effective_lambdas([0.1, 10], "ols"), [0.0, 0.0])
    np.testing.assert_array_equal(effective_lambdas([0.1, 10], "ridge"), [0.1, 10])
    np.testing.assert_array_equal(effective_lambdas(5, "Tikhonov"), [5.0])
