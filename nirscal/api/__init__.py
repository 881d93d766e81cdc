"""
nirscal API module - calibration entry points.

Provides:
    run_analysis(): Calibrate and cross-validate a PLS model
    run_optimization_sweep(): SEC/SECV over increasing component counts
    predict_with_models(): Apply exported snapshots to new spectra
    submit_analysis() / submit_sweep(): Background execution

Example:
    >>> import nirscal
    >>> result = nirscal.run_analysis(samples, steps, n_components=3)
    >>> snapshot = result.to_snapshot("Protein")
    >>> snapshot.save("protein.json")
"""

from .background import default_executor, submit_analysis, submit_sweep
from .predict import PredictionResult, predict_from_snapshot, predict_with_models
from .result import Correlation, ModelResults, OptimizationResult, ResidualRecord
from .run import apply_preprocessing, best_components, run_analysis, run_optimization_sweep

__all__ = [
    # Entry points
    "apply_preprocessing",
    "run_analysis",
    "run_optimization_sweep",
    "best_components",
    # Prediction
    "predict_from_snapshot",
    "predict_with_models",
    "PredictionResult",
    # Background
    "default_executor",
    "submit_analysis",
    "submit_sweep",
    # Results
    "ModelResults",
    "OptimizationResult",
    "ResidualRecord",
    "Correlation",
]
