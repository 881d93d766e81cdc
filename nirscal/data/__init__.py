"""Data records for nirscal."""

from .types import Sample, SampleId, active_samples, deactivate, to_matrix

__all__ = [
    "Sample",
    "SampleId",
    "active_samples",
    "deactivate",
    "to_matrix",
]
