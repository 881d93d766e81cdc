"""
Result classes for the nirscal API.

These dataclasses wrap the outputs of calibration runs and optimization
sweeps, providing convenient accessor methods.

Classes:
    ModelResults: Result from run_analysis()
    OptimizationResult: One step of run_optimization_sweep()
    ResidualRecord: Calibration residual of one sample
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from nirscal.analysis.outliers import OutlierRecord
from nirscal.data.types import SampleId
from nirscal.operators.transforms.steps import PreprocessingStep

if TYPE_CHECKING:
    import pandas as pd

    from nirscal.pipeline.snapshot import ModelSnapshot


@dataclass(frozen=True)
class ResidualRecord:
    """Calibration residual of one sample (actual - predicted)."""

    id: SampleId
    actual: float
    predicted: float
    residual: float


@dataclass(frozen=True)
class Correlation:
    """Reference values with calibration and cross-validation predictions."""

    actual: np.ndarray
    predicted: np.ndarray
    predicted_cv: np.ndarray


@dataclass(frozen=True)
class OptimizationResult:
    """Calibration and validation error for one latent component count."""

    components: int
    sec: float
    secv: float


@dataclass(frozen=True)
class ModelResults:
    """Consolidated result of one calibration run.

    Attributes:
        n_components: Latent components used by the calibration model.
        cv_components: Latent components used in each cross-validation fold.
        r: Correlation between reference and calibration predictions.
        r2: Squared correlation.
        q2: Cross-validated predictive power, 1 - PRESS / SS.
        sec: Standard error of calibration.
        secv: Standard error of cross-validation.
        slope: Slope of predicted vs. actual (calibration).
        offset: Offset of predicted vs. actual (calibration).
        pls_intercept: Intercept (B0) of the PLS equation.
        correlation: Actual, calibration and cross-validation predictions.
        residuals: Per-sample calibration residuals.
        coefficients: PLS regression coefficients (M,).
        processed_spectra: Preprocessed spectral matrix (N, M).
        outliers: Per-sample outlier verdicts.
        steps: Preprocessing steps actually used (MSC references resolved).
        model_type: Model family tag.
    """

    n_components: int
    cv_components: int
    r: float
    r2: float
    q2: float
    sec: float
    secv: float
    slope: float
    offset: float
    pls_intercept: float
    correlation: Correlation
    residuals: list[ResidualRecord]
    coefficients: np.ndarray
    processed_spectra: np.ndarray
    outliers: list[OutlierRecord]
    steps: tuple[PreprocessingStep, ...] = ()
    model_type: str = "PLS"

    @property
    def outlier_ids(self) -> list[SampleId]:
        """Ids of the samples flagged as outliers."""
        return [o.id for o in self.outliers if o.is_outlier]

    @property
    def metrics(self) -> dict[str, float]:
        """Summary statistics as a flat dict."""
        return {
            "r": self.r,
            "r2": self.r2,
            "q2": self.q2,
            "sec": self.sec,
            "secv": self.secv,
            "slope": self.slope,
            "offset": self.offset,
        }

    def summary_string(self) -> str:
        """Generate summary string of key metrics."""
        return (
            f"LV={self.n_components}, R²={self.r2:.4f}, Q²={self.q2:.4f}, "
            f"SEC={self.sec:.4f}, SECV={self.secv:.4f}"
        )

    def __repr__(self) -> str:
        return f"ModelResults({self.summary_string()})"

    def to_dataframe(self) -> "pd.DataFrame":
        """Per-sample table: id, actual, predicted, predicted_cv, residual, distance, is_outlier."""
        import pandas as pd

        verdicts = {o.id: o for o in self.outliers}
        rows = []
        for i, record in enumerate(self.residuals):
            verdict: Optional[OutlierRecord] = verdicts.get(record.id)
            rows.append({
                "id": record.id,
                "actual": record.actual,
                "predicted": record.predicted,
                "predicted_cv": float(self.correlation.predicted_cv[i]),
                "residual": record.residual,
                "distance": verdict.distance if verdict else 0.0,
                "is_outlier": verdict.is_outlier if verdict else False,
            })
        return pd.DataFrame(rows)

    def to_snapshot(self, analytical_property: str) -> "ModelSnapshot":
        """Export the calibration model for prediction-only use."""
        from nirscal.pipeline.snapshot import ModelSnapshot

        return ModelSnapshot(
            analytical_property=analytical_property,
            steps=self.steps,
            intercept=self.pls_intercept,
            coefficients=self.coefficients,
            n_components=self.n_components,
            model_type=self.model_type,
            metrics=self.metrics,
        )
