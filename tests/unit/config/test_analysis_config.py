"""Tests for AnalysisConfig."""

import dataclasses

import pytest

from nirscal.config import DEFAULT_CONFIG, AnalysisConfig
from nirscal.core.exceptions import ConfigurationError


class TestAnalysisConfig:
    """Defaults and validation of the engine configuration."""

    def test_defaults(self):
        config = AnalysisConfig()
        assert config.ridge == 1e-8
        assert config.norm_floor == 1e-12
        assert config.outlier_threshold == 3.5
        assert config.outlier_method == "residual"
        assert config.min_samples == 3
        assert config.default_max_components == 15
        assert config == DEFAULT_CONFIG

    @pytest.mark.parametrize(
        "overrides,fragment",
        [
            ({"ridge": -1.0}, "ridge"),
            ({"norm_floor": 0.0}, "norm_floor"),
            ({"outlier_threshold": 0.0}, "outlier_threshold"),
            ({"outlier_method": "random"}, "outlier_method"),
            ({"min_samples": 2}, "min_samples"),
            ({"default_max_components": 0}, "default_max_components"),
        ],
    )
    def test_invalid_values(self, overrides, fragment):
        with pytest.raises(ConfigurationError, match=fragment):
            AnalysisConfig(**overrides)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.ridge = 0.1

    def test_replace_validates(self):
        config = dataclasses.replace(DEFAULT_CONFIG, outlier_method="mahalanobis")
        assert config.outlier_method == "mahalanobis"
        with pytest.raises(ConfigurationError):
            dataclasses.replace(DEFAULT_CONFIG, outlier_threshold=-2.0)
