"""
Module-level run_analysis() and run_optimization_sweep() functions.

These are the primary entry points for calibrating a PLS model on a set of
spectral samples.

Example:
    >>> import nirscal
    >>> result = nirscal.run_analysis(samples, [{"method": "snv", "params": {}}], 3)
    >>> print(result.summary_string())
"""

from __future__ import annotations

import time
from typing import Any, Optional, Sequence, Union

import numpy as np

from nirscal.analysis.outliers import detect_outliers, flag_outliers, mahalanobis_distances
from nirscal.analysis.validation import cross_validate_loo, cv_components
from nirscal.config import DEFAULT_CONFIG, AnalysisConfig
from nirscal.core.exceptions import CalibrationError, ConfigurationError, InsufficientSamplesError
from nirscal.core.logging import format_duration, get_logger
from nirscal.core.metrics import q2, regression_stats
from nirscal.data.types import Sample, active_samples, to_matrix
from nirscal.operators.models.simpls import predict_many, train
from nirscal.operators.transforms.steps import (
    PreprocessingStep,
    apply_preprocessing,
    resolve_references,
)

from .result import Correlation, ModelResults, OptimizationResult, ResidualRecord

logger = get_logger(__name__)

StepsSpec = Optional[Sequence[Union[PreprocessingStep, dict[str, Any]]]]

__all__ = [
    "apply_preprocessing",
    "run_analysis",
    "run_optimization_sweep",
    "best_components",
]


def _preprocess(X_raw: np.ndarray, steps: StepsSpec) -> tuple[np.ndarray, list[PreprocessingStep]]:
    """Resolve MSC references on the training set and preprocess every row."""
    resolved = resolve_references(X_raw, steps)
    X = np.vstack([apply_preprocessing(row, resolved) for row in X_raw])
    return X, resolved


def run_analysis(
    samples: Sequence[Sample],
    steps: StepsSpec,
    n_components: int,
    config: AnalysisConfig | None = None,
) -> ModelResults:
    """Calibrate a PLS model and validate it by leave-one-out.

    Inactive samples are ignored. The model is trained on all active samples
    with ``n_components`` latent components (clamped to ``min(N - 1, M)``), then
    each sample is predicted by a model trained without it.

    Args:
        samples: Calibration samples.
        steps: Ordered preprocessing steps (dataclasses or dicts).
        n_components: Requested number of latent components (>= 1).
        config: Numerical and outlier settings. Defaults to ``DEFAULT_CONFIG``.

    Returns:
        ModelResults: Statistics, predictions, residuals, outliers and model.

    Raises:
        InsufficientSamplesError: If fewer than ``config.min_samples`` samples are active.
        DataValidationError: If spectra have unequal lengths or non-finite values.
        ConfigurationError: If ``n_components`` < 1.
    """
    config = config or DEFAULT_CONFIG
    active = active_samples(samples)
    n_samples = len(active)
    if n_samples < config.min_samples:
        raise InsufficientSamplesError(n_samples, config.min_samples)
    if n_components < 1:
        raise ConfigurationError(f"n_components must be >= 1, got {n_components}")

    start = time.monotonic()
    logger.starting(f"Calibrating on {n_samples} samples with {n_components} components")

    X_raw, y = to_matrix(active)
    X, resolved = _preprocess(X_raw, steps)

    model = train(X, y, n_components, ridge=config.ridge, norm_floor=config.norm_floor)
    if model.n_components != n_components:
        logger.info(f"Components clamped from {n_components} to {model.n_components}")

    predicted = predict_many(model, X)
    calibration = regression_stats(y, predicted)

    predicted_cv = cross_validate_loo(X, y, model.n_components, fallback=predicted, config=config)
    secv = regression_stats(y, predicted_cv).rmse
    q2_value = q2(y, predicted_cv, ss_floor=config.q2_ss_floor)

    ids = [s.id for s in active]
    residual_values = y - predicted
    residuals = [
        ResidualRecord(id=sample_id, actual=float(a), predicted=float(p), residual=float(r))
        for sample_id, a, p, r in zip(ids, y, predicted, residual_values)
    ]
    if config.outlier_method == "mahalanobis":
        outliers = flag_outliers(ids, mahalanobis_distances(model.scores), config.outlier_threshold)
    else:
        outliers = detect_outliers(
            ids, residual_values, calibration.rmse, threshold=config.outlier_threshold
        )

    results = ModelResults(
        n_components=model.n_components,
        cv_components=cv_components(model.n_components, n_samples),
        r=calibration.r,
        r2=calibration.r2,
        q2=q2_value,
        sec=calibration.rmse,
        secv=secv,
        slope=calibration.slope,
        offset=calibration.offset,
        pls_intercept=model.intercept,
        correlation=Correlation(actual=y, predicted=predicted, predicted_cv=predicted_cv),
        residuals=residuals,
        coefficients=np.array(model.coefficients),
        processed_spectra=X,
        outliers=outliers,
        steps=tuple(resolved),
    )
    logger.success(
        f"Calibration done in {format_duration(time.monotonic() - start)}: {results.summary_string()}"
    )
    return results


def run_optimization_sweep(
    samples: Sequence[Sample],
    steps: StepsSpec,
    max_components: int | None = None,
    config: AnalysisConfig | None = None,
) -> list[OptimizationResult]:
    """Calibration and validation error for k = 1..min(max_components, N - 2, M).

    A component count that fails stops the sweep; the results computed so far
    are returned.

    Args:
        samples: Calibration samples.
        steps: Ordered preprocessing steps.
        max_components: Upper bound on k. Defaults to ``config.default_max_components``.
        config: Numerical settings.

    Returns:
        list: One OptimizationResult per evaluated k, in increasing order.
            Empty when fewer than ``config.min_samples`` samples are active.
    """
    config = config or DEFAULT_CONFIG
    if max_components is None:
        max_components = config.default_max_components
    active = active_samples(samples)
    n_samples = len(active)
    if n_samples < config.min_samples:
        logger.warning(
            f"Optimization sweep needs at least {config.min_samples} active samples, got {n_samples}"
        )
        return []

    n_features = active[0].n_features
    limit = min(int(max_components), n_samples - 2, n_features)
    logger.starting(f"Optimization sweep over 1..{limit} components")

    results: list[OptimizationResult] = []
    for k in range(1, limit + 1):
        try:
            analysis = run_analysis(active, steps, k, config)
        except CalibrationError as exc:
            logger.warning(f"Sweep stopped at {k} components: {exc}")
            break
        results.append(OptimizationResult(components=k, sec=analysis.sec, secv=analysis.secv))
        logger.debug(f"k={k}: SEC={analysis.sec:.4f}, SECV={analysis.secv:.4f}")

    if results:
        logger.success(f"Sweep done, lowest SECV at {best_components(results)} components")
    return results


def best_components(results: Sequence[OptimizationResult]) -> int | None:
    """Component count with the lowest SECV (first one on ties), or None."""
    if not results:
        return None
    return min(results, key=lambda r: r.secv).components
