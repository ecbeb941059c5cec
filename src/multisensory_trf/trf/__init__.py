"""Additive multisensory TRF cross-validation."""

from .covariance import (
    AdditiveStream,
    CovarianceStrategy,
    EagerCovariance,
    LazyCovariance,
    additive_covariance,
    build_strategy,
    segment_covariance,
)
from .crossval import CrossValResult, build_folds, multisensory_crossval
from .data import Fold, TrialSet, check_trial_shapes, format_trials, load_trials_from_manifest, nan_inf_report
from .features import lag_matrix, lag_samples, lag_segment, lag_times, segment_bounds
from .models import SUPERPOSITION_FACTOR, fit_additive_model, predict, solve_normal_equations
from .regularization import effective_lambdas, regularization_matrix

__all__ = [
    "AdditiveStream",
    "CovarianceStrategy",
    "EagerCovariance",
    "LazyCovariance",
    "additive_covariance",
    "build_strategy",
    "segment_covariance",
    "CrossValResult",
    "build_folds",
    "multisensory_crossval",
    "Fold",
    "TrialSet",
    "check_trial_shapes",
    "format_trials",
    "load_trials_from_manifest",
    "nan_inf_report",
    "lag_matrix",
    "lag_samples",
    "lag_segment",
    "lag_times",
    "segment_bounds",
    "SUPERPOSITION_FACTOR",
    "fit_additive_model",
    "predict",
    "solve_normal_equations",
    "effective_lambdas",
    "regularization_matrix",
]
