"""Analysis configuration for nirscal.

Provides a single, typed entry point for the numerical settings of the
calibration engine. None of these are model hyperparameters; they exist so
thresholds and floors are reviewable instead of being literals in the code.

The config flows through run_analysis -> train / cross_validate_loo / detect_outliers.
"""

from __future__ import annotations

from dataclasses import dataclass

from nirscal.core.exceptions import ConfigurationError

OUTLIER_METHODS = ("residual", "mahalanobis")


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for calibration, validation and outlier screening.

    Attributes:
        ridge: Value added to the diagonal of TᵀT before solving the latent
            regression. Numerical stability only.
        norm_floor: Norms below this value are treated as 1 when normalizing
            score and basis vectors.
        outlier_threshold: Distance above which a sample is flagged.
        outlier_method: "residual" (|residual| / SEC) or "mahalanobis"
            (distance over the latent score space).
        min_samples: Minimum active samples accepted by run_analysis.
        q2_ss_floor: Total sum of squares below which Q² is reported as 0.
        default_max_components: Upper bound used by the optimization sweep
            when the caller does not give one.
    """

    ridge: float = 1e-8
    norm_floor: float = 1e-12
    outlier_threshold: float = 3.5
    outlier_method: str = "residual"
    min_samples: int = 3
    q2_ss_floor: float = 1e-9
    default_max_components: int = 15

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If a value is out of range.
        """
        if self.ridge < 0:
            raise ConfigurationError(f"ridge must be >= 0, got {self.ridge}")
        if self.norm_floor <= 0:
            raise ConfigurationError(f"norm_floor must be > 0, got {self.norm_floor}")
        if self.outlier_threshold <= 0:
            raise ConfigurationError(
                f"outlier_threshold must be > 0, got {self.outlier_threshold}"
            )
        if self.outlier_method not in OUTLIER_METHODS:
            raise ConfigurationError(
                f"outlier_method must be one of {OUTLIER_METHODS}, got '{self.outlier_method}'"
            )
        if self.min_samples < 3:
            raise ConfigurationError(f"min_samples must be at least 3, got {self.min_samples}")
        if self.default_max_components < 1:
            raise ConfigurationError(
                f"default_max_components must be >= 1, got {self.default_max_components}"
            )


DEFAULT_CONFIG = AnalysisConfig()
