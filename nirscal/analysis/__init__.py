"""Validation, outlier screening and projections."""

from .outliers import (
    OutlierRecord,
    detect_outliers,
    flag_outliers,
    mahalanobis_distances,
    residual_distances,
)
from .projections import PcaScore, compute_pca_projection, pca_scores
from .validation import cross_validate_loo, cv_components

__all__ = [
    "OutlierRecord",
    "detect_outliers",
    "flag_outliers",
    "mahalanobis_distances",
    "residual_distances",
    "PcaScore",
    "compute_pca_projection",
    "pca_scores",
    "cross_validate_loo",
    "cv_components",
]
