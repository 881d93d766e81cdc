"""
nirscal - PLS calibration of near-infrared spectra.

This package provides spectral preprocessing (Savitzky-Golay, SNV, MSC,
detrend), SIMPLS calibration with leave-one-out validation, outlier screening
and model snapshot export for prediction.
"""

__version__ = "0.1.0"
__author__ = "nirscal Project"

from .analysis import OutlierRecord, PcaScore, pca_scores
from .api import (
    Correlation,
    ModelResults,
    OptimizationResult,
    PredictionResult,
    ResidualRecord,
    apply_preprocessing,
    best_components,
    predict_from_snapshot,
    predict_with_models,
    run_analysis,
    run_optimization_sweep,
    submit_analysis,
    submit_sweep,
)
from .config import AnalysisConfig
from .core.exceptions import (
    CalibrationError,
    ConfigurationError,
    DataValidationError,
    InsufficientSamplesError,
    NumericalInstabilityError,
    SnapshotFormatError,
)
from .data import Sample
from .operators.transforms import (
    DetrendStep,
    MSCStep,
    NoneStep,
    SavitzkyGolayStep,
    SNVStep,
)
from .pipeline import ModelSnapshot, load_snapshots

__all__ = [
    # Entry points
    "run_analysis",
    "run_optimization_sweep",
    "best_components",
    "apply_preprocessing",
    "predict_from_snapshot",
    "predict_with_models",
    "submit_analysis",
    "submit_sweep",
    "pca_scores",
    # Data and steps
    "Sample",
    "NoneStep",
    "SavitzkyGolayStep",
    "SNVStep",
    "MSCStep",
    "DetrendStep",
    # Results
    "ModelResults",
    "OptimizationResult",
    "ResidualRecord",
    "Correlation",
    "OutlierRecord",
    "PcaScore",
    "PredictionResult",
    "ModelSnapshot",
    "load_snapshots",
    # Configuration and errors
    "AnalysisConfig",
    "CalibrationError",
    "ConfigurationError",
    "DataValidationError",
    "InsufficientSamplesError",
    "NumericalInstabilityError",
    "SnapshotFormatError",
]
