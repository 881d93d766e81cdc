"""
Pytest configuration for nirscal tests.

Provides synthetic spectral datasets shared across the unit and integration
suites, and resets the logging configuration between tests.
"""

import numpy as np
import pytest

from nirscal.core.logging import reset_logging
from nirscal.data.types import Sample


def _gaussian(axis: np.ndarray, center: float, width: float) -> np.ndarray:
    return np.exp(-0.5 * ((axis - center) / width) ** 2)


def make_spectra(n_samples: int = 24, n_features: int = 60, seed: int = 42, noise: float = 1e-3):
    """Two-band mixture spectra with additive and multiplicative scatter.

    Returns:
        tuple: (X of shape (n_samples, n_features), concentrations (n_samples,))
    """
    rng = np.random.RandomState(seed)
    axis = np.linspace(0.0, 1.0, n_features)
    band_a = _gaussian(axis, 0.3, 0.06)
    band_b = _gaussian(axis, 0.7, 0.1)
    concentration = rng.uniform(1.0, 10.0, n_samples)
    offset = rng.uniform(-0.05, 0.05, (n_samples, 1))
    scale = rng.uniform(0.9, 1.1, (n_samples, 1))
    pure = concentration[:, None] * band_a + (12.0 - concentration)[:, None] * band_b
    X = offset + scale * pure + noise * rng.randn(n_samples, n_features)
    return X, concentration


def make_samples(X, y, prefix: str = "S") -> list:
    return [
        Sample(id=f"{prefix}{i:03d}", values=row, analytical_value=value, color="#336699")
        for i, (row, value) in enumerate(zip(X, y))
    ]


@pytest.fixture(autouse=True)
def clean_logging():
    """Leave the nirscal logger unconfigured around every test."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def spectra():
    """(X, y) synthetic calibration matrix: 24 samples x 60 points."""
    return make_spectra()


@pytest.fixture
def samples(spectra):
    """Synthetic calibration samples built from the ``spectra`` fixture."""
    X, y = spectra
    return make_samples(X, y)


@pytest.fixture
def scaled_samples():
    """Five identical spectra scaled by their reference value (1..5), 10 points each."""
    base = np.linspace(0.5, 1.4, 10) + 0.2 * np.sin(np.arange(10))
    values = [1.0, 2.0, 3.0, 4.0, 5.0]
    return [Sample(id=i, values=base * v, analytical_value=v) for i, v in enumerate(values)]


@pytest.fixture
def dataset_factory():
    """Callable building synthetic samples: ``dataset_factory(n_samples, n_features, seed)``."""
    def _factory(n_samples: int = 24, n_features: int = 60, seed: int = 42):
        X, y = make_spectra(n_samples, n_features, seed)
        return make_samples(X, y)
    return _factory
