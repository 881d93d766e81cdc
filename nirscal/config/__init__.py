"""
Configuration module for nirscal.

Provides the AnalysisConfig dataclass holding the numerical settings of the
calibration engine.
"""

from nirscal.config.analysis_config import DEFAULT_CONFIG, OUTLIER_METHODS, AnalysisConfig

__all__ = [
    'AnalysisConfig',
    'DEFAULT_CONFIG',
    'OUTLIER_METHODS',
]
