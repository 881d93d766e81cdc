"""Tests for snapshot-based prediction."""

import numpy as np
import pytest

from nirscal.api.predict import PredictionResult, predict_from_snapshot, predict_with_models
from nirscal.core.exceptions import ConfigurationError
from nirscal.operators.transforms.steps import SNVStep
from nirscal.pipeline.snapshot import ModelSnapshot


@pytest.fixture
def models():
    protein = ModelSnapshot("Protein", (), 1.0, [0.5, 0.5, 0.5, 0.5])
    moisture = ModelSnapshot("Moisture", (SNVStep(),), 10.0, [1.0, -1.0, 0.0])
    return [protein, moisture]


class TestPredictFromSnapshot:
    def test_linear_model(self, models):
        assert predict_from_snapshot(models[0], [1.0, 2.0, 3.0, 4.0]) == pytest.approx(6.0)

    def test_preprocessing_applied(self, models):
        raw = np.array([1.0, 2.0, 4.0])
        processed = SNVStep().transform(raw)
        expected = 10.0 + processed[0] - processed[1]
        assert predict_from_snapshot(models[1], raw) == pytest.approx(expected)


class TestPredictWithModels:
    """Tests for the multi-model prediction."""

    def test_every_property_predicted(self, models):
        results = predict_with_models(models, [("a", [1.0, 2.0, 3.0, 4.0]), ("b", [0.0, 0.0, 2.0, 2.0])])
        assert [r.id for r in results] == ["a", "b"]
        assert set(results[0].values) == {"Protein", "Moisture"}
        assert results[0].values["Protein"] == pytest.approx(6.0)
        assert isinstance(results[0], PredictionResult)

    def test_longer_spectrum_truncated(self, models):
        """The Moisture model uses only the first three points."""
        short = predict_with_models(models[1:], [("a", [1.0, 2.0, 4.0])])
        long = predict_with_models(models[1:], [("a", [1.0, 2.0, 4.0, 100.0])])
        assert long[0].values["Moisture"] == short[0].values["Moisture"]

    def test_short_spectrum_skipped(self, models, caplog):
        with caplog.at_level("WARNING", logger="nirscal"):
            results = predict_with_models(models, [("a", [1.0, 2.0, 3.0]), ("b", [1.0, 2.0, 3.0, 4.0])])
        assert [r.id for r in results] == ["b"]
        assert "Skipping a" in caplog.text
        assert "Protein" in caplog.text

    def test_duplicate_property_rejected(self, models):
        with pytest.raises(ConfigurationError, match="Protein"):
            predict_with_models([models[0], models[0]], [("a", [1.0, 2.0, 3.0, 4.0])])

    def test_no_rows(self, models):
        assert predict_with_models(models, []) == []
