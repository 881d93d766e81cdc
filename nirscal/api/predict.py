"""
Prediction with exported model snapshots.

Example:
    >>> snapshots = nirscal.load_snapshots(["protein.json", "moisture.yaml"])
    >>> for result in nirscal.predict_with_models(snapshots, [("s1", spectrum)]):
    ...     print(result.id, result.values)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from nirscal.core.exceptions import ConfigurationError
from nirscal.core.logging import get_logger
from nirscal.data.types import SampleId
from nirscal.pipeline.snapshot import ModelSnapshot

logger = get_logger(__name__)


@dataclass
class PredictionResult:
    """Predicted values of one spectrum, keyed by analytical property."""

    id: SampleId
    values: dict[str, float] = field(default_factory=dict)


def predict_from_snapshot(snapshot: ModelSnapshot, raw_spectrum: Sequence[float]) -> float:
    """intercept + dot(preprocessed spectrum, coefficients).

    Raises:
        ValueError: If the spectrum length differs from the model's.
    """
    return snapshot.predict(raw_spectrum)


def predict_with_models(
    snapshots: Sequence[ModelSnapshot],
    rows: Iterable[tuple[SampleId, Sequence[float]]],
) -> list[PredictionResult]:
    """Predict every snapshot's property for each ``(id, raw_spectrum)`` row.

    Spectra longer than a model's coefficient vector are truncated to it
    before preprocessing. A row whose spectrum is shorter than any model is
    skipped with a warning.

    Raises:
        ConfigurationError: If two snapshots predict the same property.
    """
    seen: set[str] = set()
    for snapshot in snapshots:
        if snapshot.analytical_property in seen:
            raise ConfigurationError(
                f"Several models predict '{snapshot.analytical_property}'"
            )
        seen.add(snapshot.analytical_property)

    results = []
    for sample_id, raw in rows:
        spectrum = np.asarray(raw, dtype=np.float64).ravel()
        too_short = [s.analytical_property for s in snapshots if spectrum.size < s.n_features]
        if too_short:
            logger.warning(
                f"Skipping {sample_id}: spectrum has {spectrum.size} points, "
                f"too short for {', '.join(too_short)}"
            )
            continue
        values = {
            s.analytical_property: s.predict(spectrum[: s.n_features]) for s in snapshots
        }
        results.append(PredictionResult(id=sample_id, values=values))

    logger.info(f"Predicted {len(results)} spectra with {len(snapshots)} models")
    return results
