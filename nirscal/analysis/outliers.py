"""Outlier screening for calibration samples.

Two deterministic statistics are available:

- residual distance: ``|residual| / SEC``, a z-score-like ratio of each
  calibration residual to the calibration error;
- Mahalanobis distance of each sample's latent scores from the score centroid.

Identical inputs always give identical verdicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from nirscal.data.types import SampleId


@dataclass(frozen=True)
class OutlierRecord:
    """Outlier verdict for one sample."""

    id: SampleId
    distance: float
    is_outlier: bool


def residual_distances(residuals, rmse: float) -> np.ndarray:
    """``|residual| / rmse``; rmse of 0 (or non-finite) is treated as 1.

    Non-finite distances are reported as 0.
    """
    residuals = np.asarray(residuals, dtype=np.float64).ravel()
    scale = rmse if (np.isfinite(rmse) and rmse != 0) else 1.0
    with np.errstate(all="ignore"):
        distances = np.abs(residuals) / scale
    return np.where(np.isfinite(distances), distances, 0.0)


def mahalanobis_distances(scores) -> np.ndarray:
    """Mahalanobis distance of each row of a score matrix from its centroid.

    Uses the pseudo-inverse of the sample covariance so rank-deficient score
    spaces (few samples) stay defined.

    Args:
        scores: Latent scores (N, A).

    Returns:
        numpy.ndarray: N distances (0 where undefined).
    """
    T = np.atleast_2d(np.asarray(scores, dtype=np.float64))
    if T.shape[0] < 2:
        return np.zeros(T.shape[0])
    centered = T - T.mean(axis=0)
    covariance = np.atleast_2d(np.cov(centered, rowvar=False))
    precision = np.linalg.pinv(covariance)
    with np.errstate(all="ignore"):
        squared = np.einsum("ij,jk,ik->i", centered, precision, centered)
        distances = np.sqrt(np.clip(squared, 0.0, None))
    return np.where(np.isfinite(distances), distances, 0.0)


def flag_outliers(
    ids: Sequence[SampleId],
    distances,
    threshold: float = 3.5,
) -> list[OutlierRecord]:
    """Pair ids with distances and flag those above ``threshold``."""
    distances = np.asarray(distances, dtype=np.float64).ravel()
    if len(ids) != len(distances):
        raise ValueError(f"Got {len(ids)} ids for {len(distances)} distances")
    return [
        OutlierRecord(id=sample_id, distance=float(d), is_outlier=bool(d > threshold))
        for sample_id, d in zip(ids, distances)
    ]


def detect_outliers(
    ids: Sequence[SampleId],
    residuals,
    rmse: float,
    *,
    threshold: float = 3.5,
) -> list[OutlierRecord]:
    """Flag samples whose calibration residual is extreme relative to SEC.

    Args:
        ids: Sample identifiers, in residual order.
        residuals: Calibration residuals (actual - predicted).
        rmse: Calibration error (SEC).
        threshold: Distance above which a sample is an outlier.

    Returns:
        list: One OutlierRecord per sample.
    """
    return flag_outliers(ids, residual_distances(residuals, rmse), threshold)
