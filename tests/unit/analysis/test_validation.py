"""Tests for leave-one-out cross-validation."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from nirscal.analysis import validation
from nirscal.analysis.validation import cross_validate_loo, cv_components
from nirscal.core.exceptions import NumericalInstabilityError
from nirscal.operators.models.simpls import predict, train


class TestCvComponents:
    """Component count used by every fold."""

    @pytest.mark.parametrize(
        "requested,n_samples,expected",
        [(3, 20, 3), (10, 6, 4), (2, 3, 1), (5, 2, 1), (1, 10, 1)],
    )
    def test_rule(self, requested, n_samples, expected):
        assert cv_components(requested, n_samples) == expected


class TestCrossValidateLoo:
    """Tests for cross_validate_loo."""

    def test_one_prediction_per_sample(self, spectra):
        X, y = spectra
        predictions = cross_validate_loo(X, y, 3)
        assert predictions.shape == (len(y),)
        assert np.all(np.isfinite(predictions))

    def test_fold_excludes_its_sample(self, spectra):
        """Prediction i comes from a model trained without sample i."""
        X, y = spectra
        predictions = cross_validate_loo(X, y, 2)
        mask = np.arange(len(y)) != 5
        fold_model = train(X[mask], y[mask], 2)
        assert predictions[5] == pytest.approx(predict(fold_model, X[5]), rel=1e-12)

    def test_failed_fold_uses_fallback(self, spectra, monkeypatch, caplog):
        """A numerically failing fold takes the calibration prediction and logs a warning."""
        X, y = spectra
        fallback = np.arange(len(y), dtype=float)

        def failing_train(*args, **kwargs):
            raise NumericalInstabilityError("singular")

        monkeypatch.setattr(validation, "train", failing_train)
        with caplog.at_level("WARNING", logger="nirscal"):
            predictions = cross_validate_loo(X, y, 2, fallback=fallback)
        assert_allclose(predictions, fallback)
        assert "using the calibration prediction" in caplog.text

    def test_failed_fold_without_fallback_raises(self, spectra, monkeypatch):
        X, y = spectra

        def failing_train(*args, **kwargs):
            raise NumericalInstabilityError("singular")

        monkeypatch.setattr(validation, "train", failing_train)
        with pytest.raises(NumericalInstabilityError):
            cross_validate_loo(X, y, 2)

    def test_three_samples(self):
        """With 3 samples each fold trains on 2 samples with 1 component."""
        X = np.array([[1.0, 2.0, 3.0], [2.0, 2.5, 3.5], [3.0, 3.1, 4.2]])
        y = np.array([1.0, 2.0, 3.0])
        predictions = cross_validate_loo(X, y, 2)
        assert predictions.shape == (3,)
        assert np.all(np.isfinite(predictions))
