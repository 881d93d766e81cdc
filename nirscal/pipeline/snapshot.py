"""Model snapshot export and loading.

A snapshot holds everything needed to predict a property from a raw
spectrum: the preprocessing steps used at training time, the intercept and
the coefficient vector. The on-disk layout is::

    {
      "date": "...",
      "modelType": "PLS",
      "nComponents": 3,
      "analyticalProperty": "Protein",
      "preprocessing": [{"method": "snv", "params": {}}, ...],
      "metrics": {"plsIntercept": ..., "coefficients": [...], "r2": ..., ...},
      "savgolConvention": "correlation"
    }

``savgolConvention`` records the order in which Savitzky-Golay kernels are
applied. Files without it come from exports that applied the kernel reversed
(convolution order), which negates odd derivatives; their Savitzky-Golay steps
are loaded with ``mirrored=True`` so predictions match the exporting model.

Files are written as JSON, or YAML when the suffix is ``.yaml``/``.yml``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import yaml

from nirscal.core.exceptions import ConfigurationError, SnapshotFormatError
from nirscal.core.logging import get_logger
from nirscal.operators.transforms.steps import (
    PreprocessingStep,
    SavitzkyGolayStep,
    apply_preprocessing,
    coerce_steps,
    step_from_dict,
    step_to_dict,
)

logger = get_logger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}

SAVGOL_CONVENTION = "correlation"
LEGACY_SAVGOL_CONVENTION = "convolution"


def _mirror(step: PreprocessingStep) -> PreprocessingStep:
    if not isinstance(step, SavitzkyGolayStep) or step.mirrored:
        return step
    if step.derivative is not None and step.derivative % 2 == 1:
        logger.debug(f"Loading legacy savgol step (derivative={step.derivative}) in convolution order")
    return replace(step, mirrored=True)


@dataclass(frozen=True)
class ModelSnapshot:
    """Exported calibration model.

    Attributes:
        analytical_property: Name of the predicted property.
        steps: Preprocessing steps applied to raw spectra before the model.
        intercept: PLS intercept (B0).
        coefficients: Regression coefficients, one per spectral point.
        n_components: Latent components of the calibration.
        model_type: Model family tag.
        metrics: Calibration statistics kept for reference (r, r2, sec, ...).
        created: ISO timestamp of the export.
    """

    analytical_property: str
    steps: tuple[PreprocessingStep, ...]
    intercept: float
    coefficients: np.ndarray
    n_components: int = 0
    model_type: str = "PLS"
    metrics: dict[str, float] = field(default_factory=dict)
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(coerce_steps(self.steps)))
        coefficients = np.array(self.coefficients, dtype=np.float64, copy=True).ravel()
        coefficients.setflags(write=False)
        object.__setattr__(self, "coefficients", coefficients)
        object.__setattr__(self, "intercept", float(self.intercept))

    @property
    def n_features(self) -> int:
        return len(self.coefficients)

    def predict(self, raw_spectrum) -> float:
        """Preprocess a raw spectrum with the stored steps and apply the model.

        Raises:
            ValueError: If the spectrum length differs from the coefficient vector.
        """
        processed = apply_preprocessing(raw_spectrum, self.steps)
        if processed.size != self.n_features:
            raise ValueError(
                f"Spectrum has {processed.size} points but model '{self.analytical_property}' "
                f"expects {self.n_features}"
            )
        with np.errstate(all="ignore"):
            value = self.intercept + float(processed @ self.coefficients)
        return value if np.isfinite(value) else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Converts the snapshot to a dictionary suitable for JSON serialization."""
        metrics = {k: float(v) for k, v in self.metrics.items()}
        metrics["plsIntercept"] = self.intercept
        metrics["coefficients"] = self.coefficients.tolist()
        return {
            "date": self.created,
            "modelType": self.model_type,
            "nComponents": self.n_components,
            "analyticalProperty": self.analytical_property,
            "preprocessing": [step_to_dict(s) for s in self.steps],
            "metrics": metrics,
            "savgolConvention": SAVGOL_CONVENTION,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelSnapshot":
        """Creates a snapshot from its dictionary form.

        Raises:
            SnapshotFormatError: If required fields are missing or malformed.
        """
        if not isinstance(data, dict):
            raise SnapshotFormatError("Snapshot must be a mapping")
        metrics = data.get("metrics")
        if not isinstance(metrics, dict) or "coefficients" not in metrics or metrics.get("plsIntercept") is None:
            raise SnapshotFormatError("Snapshot is missing metrics.coefficients or metrics.plsIntercept")

        try:
            coefficients = np.asarray(metrics["coefficients"], dtype=np.float64)
            intercept = float(metrics["plsIntercept"])
            steps = [step_from_dict(s) for s in data.get("preprocessing") or []]
        except (TypeError, ValueError, ConfigurationError) as exc:
            raise SnapshotFormatError(f"Malformed snapshot: {exc}") from exc
        if coefficients.ndim != 1 or coefficients.size == 0:
            raise SnapshotFormatError("metrics.coefficients must be a non-empty list of numbers")

        convention = data.get("savgolConvention") or LEGACY_SAVGOL_CONVENTION
        if convention not in (SAVGOL_CONVENTION, LEGACY_SAVGOL_CONVENTION):
            raise SnapshotFormatError(f"Unknown savgolConvention '{convention}'")
        if convention == LEGACY_SAVGOL_CONVENTION:
            steps = [_mirror(s) for s in steps]

        extra = {
            k: float(v)
            for k, v in metrics.items()
            if k not in ("coefficients", "plsIntercept") and isinstance(v, (int, float))
        }
        return cls(
            analytical_property=str(data.get("analyticalProperty", "")),
            steps=tuple(steps),
            intercept=intercept,
            coefficients=coefficients,
            n_components=int(data.get("nComponents") or 0),
            model_type=str(data.get("modelType", "PLS")),
            metrics=extra,
            created=str(data.get("date", "")),
        )

    def save(self, filepath: str | Path) -> Path:
        """Write the snapshot as JSON (or YAML for .yaml/.yml paths)."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved model snapshot for '{self.analytical_property}' to {path}")
        return path

    @classmethod
    def load(cls, filepath: str | Path) -> "ModelSnapshot":
        """Read a snapshot written by :meth:`save` or by an older export without ``savgolConvention``.

        Raises:
            SnapshotFormatError: If the file cannot be parsed as a snapshot.
        """
        path = Path(filepath)
        with open(path, "r", encoding="utf-8") as f:
            try:
                if path.suffix.lower() in YAML_SUFFIXES:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
            except (json.JSONDecodeError, yaml.YAMLError) as exc:
                raise SnapshotFormatError(f"Cannot parse {path.name}: {exc}") from exc
        return cls.from_dict(data)


def load_snapshots(paths: Sequence[str | Path]) -> list[ModelSnapshot]:
    """Load several snapshot files, skipping invalid ones with a warning."""
    snapshots = []
    for path in paths:
        try:
            snapshots.append(ModelSnapshot.load(path))
        except SnapshotFormatError as exc:
            logger.warning(f"{Path(path).name} is not a valid model: {exc}")
    return snapshots
