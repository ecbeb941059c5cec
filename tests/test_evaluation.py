"""Tests for accuracy and error metrics."""

from __future__ import annotations

import numpy as np
import pytest

from multisensory_trf.evaluation import evaluate, pearson_corr, spearman_corr
from multisensory_trf.exceptions import DimensionMismatchError, InvalidParameterError


class TestEvaluate:
    def test_perfect_prediction(self, rng):
        y = rng.standard_normal((50, 3))
        acc, err = evaluate(y, y.copy())
        np.testing.assert_allclose(acc, 1.0)
        np.testing.assert_allclose(err, 0.0)

    def test_pearson_matches_numpy(self, rng):
        y = rng.standard_normal((200, 2))
        pred = y + rng.standard_normal((200, 2))
        acc, _ = evaluate(y, pred, accuracy="Pearson")
        expected = [np.corrcoef(y[:, i], pred[:, i])[0, 1] for i in range(2)]
        np.testing.assert_allclose(acc, expected)

    def test_spearman_is_rank_based(self, rng):
        x = rng.standard_normal((100, 1))
        y = x**3
        acc_s, _ = evaluate(x, y, accuracy="Spearman")
        acc_p, _ = evaluate(x, y, accuracy="Pearson")
        np.testing.assert_allclose(acc_s, 1.0)
        assert acc_p[0] < 1.0

    def test_error_metrics(self):
        y = np.array([[0.0, 1.0], [2.0, 3.0]])
        pred = np.array([[1.0, 1.0], [0.0, 3.0]])
        _, mse = evaluate(y, pred, error="mse")
        _, mae = evaluate(y, pred, error="mae")
        np.testing.assert_allclose(mse, [2.5, 0.0])
        np.testing.assert_allclose(mae, [1.5, 0.0])

    def test_constant_column_scores_zero(self, rng):
        y = np.column_stack([np.ones(20), rng.standard_normal(20)])
        acc, _ = evaluate(y, rng.standard_normal((20, 2)))
        assert acc[0] == 0.0

    def test_vectors_are_single_variables(self, rng):
        y = rng.standard_normal(30)
        acc, err = evaluate(y, y)
        assert acc.shape == (1,) and err.shape == (1,)

    def test_shape_mismatch(self, rng):
        with pytest.raises(DimensionMismatchError):
            evaluate(rng.standard_normal((10, 2)), rng.standard_normal((9, 2)))
        with pytest.raises(DimensionMismatchError):
            evaluate(rng.standard_normal((10, 2)), rng.standard_normal((10, 3)))

    def test_unknown_metric(self, rng):
        y = rng.standard_normal((10, 1))
        with pytest.raises(InvalidParameterError):
            evaluate(y, y, accuracy="Kendall")


def test_correlations_are_bounded(rng):
    a = rng.standard_normal((60, 4))
    b = rng.standard_normal((60, 4))
    for corr in (pearson_corr(a, b), spearman_corr(a, b)):
        assert np.all(corr >= -1.0) and np.all(corr <= 1.0)
