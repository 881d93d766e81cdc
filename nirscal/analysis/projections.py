"""Projection utilities for exploratory views.

Low-dimensional projections of preprocessed spectra, used to inspect sample
grouping before calibration (not part of model training).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from nirscal.data.types import Sample, SampleId, active_samples, to_matrix
from nirscal.operators.transforms.steps import apply_preprocessing, resolve_references


@dataclass(frozen=True)
class PcaScore:
    """Position of one sample on the first two principal components."""

    id: SampleId
    x: float
    y: float
    color: str = ""


def compute_pca_projection(X: np.ndarray, max_components: int = 2) -> dict:
    """Compute a PCA projection.

    Args:
        X: 2D array (n_samples, n_features). Must have at least 2 samples.
        max_components: Upper limit on components. Capped by min(n_samples, n_features).

    Returns:
        Dict with keys:
            coordinates: numpy.ndarray (n_samples, n_components).
            explained_variance_ratio: list[float] per component.
            n_components: int actual number of components computed.

    Raises:
        ValueError: If X has fewer than 2 samples or 0 features.
    """
    from sklearn.decomposition import PCA

    n_samples, n_features = X.shape
    if n_samples < 2:
        raise ValueError(f"PCA requires at least 2 samples, got {n_samples}")
    if n_features == 0:
        raise ValueError("PCA requires at least 1 feature")

    n_comp = min(max_components, n_samples, n_features)
    pca = PCA(n_components=n_comp)
    coordinates = pca.fit_transform(X)

    return {
        "coordinates": coordinates,
        "explained_variance_ratio": pca.explained_variance_ratio_.tolist(),
        "n_components": n_comp,
    }


def pca_scores(samples: Sequence[Sample], steps=None, n_components: int = 2) -> list[PcaScore]:
    """PCA scores (PC1, PC2) of the preprocessed active spectra.

    When only one component can be computed the y coordinate is 0.
    """
    active = active_samples(samples)
    X_raw, _ = to_matrix(active)
    resolved = resolve_references(X_raw, steps)
    X = np.vstack([apply_preprocessing(row, resolved) for row in X_raw])
    projection = compute_pca_projection(X, max_components=max(1, n_components))
    coords = projection["coordinates"]
    return [
        PcaScore(
            id=s.id,
            x=float(coords[i, 0]),
            y=float(coords[i, 1]) if coords.shape[1] > 1 else 0.0,
            color=s.color,
        )
        for i, s in enumerate(active)
    ]
