"""
Sample records exchanged between the calibration engine and its callers.

Samples are created by the (external) data import, toggled active/inactive by
the caller, and discarded when a new dataset is loaded. The engine never
modifies them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence, Union

import numpy as np

from nirscal.core.exceptions import DataValidationError

SampleId = Union[str, int]


@dataclass(frozen=True)
class Sample:
    """One spectral sample with its laboratory reference value.

    Attributes:
        id: Identifier, unique within a dataset.
        values: Spectral intensities (M,), shared length within a dataset.
        analytical_value: Reference (laboratory) value of the property.
        active: Whether the sample takes part in training.
        color: Display color, carried through untouched.
    """

    id: SampleId
    values: np.ndarray
    analytical_value: float
    active: bool = True
    color: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=np.float64, copy=True).ravel()
        values.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "analytical_value", float(self.analytical_value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sample):
            return NotImplemented
        return (
            self.id == other.id
            and self.active == other.active
            and self.analytical_value == other.analytical_value
            and np.array_equal(self.values, other.values)
        )

    def __hash__(self) -> int:
        return hash((self.id, self.active, self.analytical_value))

    @property
    def n_features(self) -> int:
        return len(self.values)

    def with_active(self, active: bool) -> "Sample":
        """Return a copy with a different ``active`` flag."""
        return replace(self, active=bool(active))


def active_samples(samples: Iterable[Sample]) -> list[Sample]:
    """Samples whose ``active`` flag is set, in input order."""
    return [s for s in samples if s.active]


def deactivate(samples: Iterable[Sample], ids: Iterable[SampleId]) -> list[Sample]:
    """Return samples with the given ids marked inactive (e.g. flagged outliers)."""
    excluded = set(ids)
    return [s.with_active(False) if s.id in excluded else s for s in samples]


def to_matrix(samples: Sequence[Sample]) -> tuple[np.ndarray, np.ndarray]:
    """Stack spectra and reference values.

    Returns:
        tuple: (X of shape (N, M), y of shape (N,))

    Raises:
        DataValidationError: If spectra differ in length or contain non-finite values.
    """
    if not samples:
        return np.empty((0, 0)), np.empty(0)
    lengths = {s.n_features for s in samples}
    if len(lengths) != 1:
        raise DataValidationError(f"Spectra have inconsistent lengths: {sorted(lengths)}")
    X = np.vstack([s.values for s in samples])
    y = np.array([s.analytical_value for s in samples])
    if not (np.all(np.isfinite(X)) and np.all(np.isfinite(y))):
        raise DataValidationError("Spectra and reference values must be finite")
    return X, y
