"""
Core module for the nirscal calibration engine.

Provides the error taxonomy, the statistics engine and the logging layer.
"""

from .exceptions import (
    CalibrationError,
    ConfigurationError,
    DataValidationError,
    InsufficientSamplesError,
    NumericalInstabilityError,
    SnapshotFormatError,
)
from .metrics import RegressionStats, ValidationReport, q2, regression_stats, rmse, validation_report

__all__ = [
    'CalibrationError',
    'ConfigurationError',
    'DataValidationError',
    'InsufficientSamplesError',
    'NumericalInstabilityError',
    'SnapshotFormatError',
    'RegressionStats',
    'ValidationReport',
    'q2',
    'regression_stats',
    'rmse',
    'validation_report',
]
