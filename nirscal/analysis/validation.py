"""Leave-one-out cross-validation of SIMPLS calibrations."""

from __future__ import annotations

import numpy as np

from nirscal.config import DEFAULT_CONFIG, AnalysisConfig
from nirscal.core.exceptions import InsufficientSamplesError, NumericalInstabilityError
from nirscal.core.logging import get_logger
from nirscal.operators.models.simpls import predict, train
from nirscal.utils.linalg import as_matrix

logger = get_logger(__name__)

# Fold failures that fall back to the calibration prediction instead of aborting.
FOLD_ERRORS = (NumericalInstabilityError, InsufficientSamplesError, np.linalg.LinAlgError)


def cv_components(n_components: int, n_samples: int) -> int:
    """Latent components used in every leave-one-out fold.

    Each fold trains on N - 1 samples, so at most N - 2 components are
    supported. The calibration count is used whenever it fits, otherwise it is
    reduced to N - 2, never below 1.
    """
    return max(1, min(int(n_components), n_samples - 2))


def cross_validate_loo(
    X,
    y,
    components: int,
    *,
    fallback=None,
    config: AnalysisConfig | None = None,
) -> np.ndarray:
    """Out-of-fold predictions by leave-one-out retraining.

    For each sample i, a model is trained on all other samples with
    :func:`cv_components` latent components and used to predict sample i.

    Args:
        X: Preprocessed spectral matrix (N, M).
        y: Reference values (N,).
        components: Calibration component count.
        fallback: Optional (N,) predictions used for a fold whose training
            fails numerically (usually the full-calibration predictions).
            Without it, the fold error propagates.
        config: Numerical settings.

    Returns:
        numpy.ndarray: N out-of-fold predictions, in sample order.
    """
    config = config or DEFAULT_CONFIG
    X = as_matrix(X)
    y = np.asarray(y, dtype=np.float64).ravel()
    n_samples = X.shape[0]
    fold_components = cv_components(components, n_samples)
    if fallback is not None:
        fallback = np.asarray(fallback, dtype=np.float64).ravel()

    predictions = np.empty(n_samples)
    mask = np.ones(n_samples, dtype=bool)
    for i in range(n_samples):
        mask[i] = False
        try:
            fold_model = train(
                X[mask],
                y[mask],
                fold_components,
                ridge=config.ridge,
                norm_floor=config.norm_floor,
            )
            predictions[i] = predict(fold_model, X[i])
        except FOLD_ERRORS as exc:
            if fallback is None:
                raise
            logger.warning(
                f"Cross-validation fold {i} failed ({exc}); using the calibration prediction"
            )
            predictions[i] = fallback[i]
        finally:
            mask[i] = True

    logger.debug(f"Leave-one-out completed: {n_samples} folds, {fold_components} components")
    return predictions
