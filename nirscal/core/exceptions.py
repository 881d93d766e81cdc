"""
Custom exceptions for the nirscal calibration engine.
"""


class CalibrationError(Exception):
    """Base exception for calibration-related errors."""
    pass


class InsufficientSamplesError(CalibrationError):
    """Raised when too few active samples are available for a stable fit."""

    def __init__(self, n_samples: int, required: int):
        self.n_samples = n_samples
        self.required = required
        super().__init__(
            f"At least {required} active samples are required for a stable fit, got {n_samples}"
        )


class NumericalInstabilityError(CalibrationError):
    """Raised when a matrix solve or fit produces a singular or non-finite result."""
    pass


class DataValidationError(CalibrationError):
    """Raised when input samples are inconsistent (e.g. unequal spectrum lengths)."""
    pass


class ConfigurationError(CalibrationError):
    """Raised when configuration or step parameters are invalid."""
    pass


class SnapshotFormatError(CalibrationError):
    """Raised when a model snapshot cannot be read back."""
    pass
