"""Tests for model snapshot export and loading."""

import json

import numpy as np
import pytest
import yaml
from numpy.testing import assert_allclose

from nirscal.core.exceptions import SnapshotFormatError
from nirscal.operators.transforms.steps import MSCStep, SavitzkyGolayStep, SNVStep
from nirscal.pipeline.snapshot import ModelSnapshot, load_snapshots


@pytest.fixture
def snapshot():
    return ModelSnapshot(
        analytical_property="Protein",
        steps=(SNVStep(), SavitzkyGolayStep(window_size=7, polynomial_order=2, derivative=1)),
        intercept=1.25,
        coefficients=np.linspace(-0.5, 0.5, 12),
        n_components=3,
        metrics={"r2": 0.97, "sec": 0.12},
    )


class TestModelSnapshot:
    """Tests for the in-memory snapshot."""

    def test_to_dict_layout(self, snapshot):
        data = snapshot.to_dict()
        assert set(data) == {
            "date", "modelType", "nComponents", "analyticalProperty", "preprocessing", "metrics",
            "savgolConvention",
        }
        assert data["savgolConvention"] == "correlation"
        assert data["modelType"] == "PLS"
        assert data["nComponents"] == 3
        assert data["preprocessing"][0] == {"method": "snv", "params": {}}
        assert data["preprocessing"][1]["params"]["windowSize"] == 7
        assert data["metrics"]["plsIntercept"] == 1.25
        assert len(data["metrics"]["coefficients"]) == 12
        assert data["metrics"]["r2"] == 0.97

    def test_predict(self, snapshot):
        raw = np.sin(np.linspace(0, 2, 12)) + 2.0
        processed = SavitzkyGolayStep(7, 2, 1).transform(SNVStep().transform(raw))
        expected = 1.25 + processed @ snapshot.coefficients
        assert snapshot.predict(raw) == pytest.approx(expected)

    def test_predict_wrong_length(self, snapshot):
        with pytest.raises(ValueError, match="expects 12"):
            snapshot.predict(np.ones(10))

    def test_accepts_dict_steps(self):
        snapshot = ModelSnapshot("Fat", [{"method": "detrend"}], 0.0, [1.0, 2.0])
        assert snapshot.steps[0].method == "detrend"

    def test_from_dict_round_trip(self, snapshot):
        restored = ModelSnapshot.from_dict(snapshot.to_dict())
        assert restored.steps == snapshot.steps
        assert restored.intercept == snapshot.intercept
        assert np.array_equal(restored.coefficients, snapshot.coefficients)
        assert restored.metrics == snapshot.metrics
        assert restored.created == snapshot.created

    @pytest.mark.parametrize(
        "data",
        [
            {"metrics": {"plsIntercept": 1.0}},
            {"metrics": {"coefficients": [1.0, 2.0]}},
            {"metrics": {"coefficients": [], "plsIntercept": 1.0}},
            {"metrics": {"coefficients": ["a"], "plsIntercept": 1.0}},
            {"preprocessing": [{"method": "wavelet"}], "metrics": {"coefficients": [1.0], "plsIntercept": 0}},
            {},
            [],
        ],
    )
    def test_from_dict_invalid(self, data):
        with pytest.raises(SnapshotFormatError):
            ModelSnapshot.from_dict(data)


class TestSavgolConvention:
    """Savitzky-Golay kernel order stored in snapshots."""

    @staticmethod
    def _legacy_dict(derivative):
        return {
            "analyticalProperty": "Moisture",
            "preprocessing": [
                {"method": "savgol", "params": {"windowSize": 5, "polynomialOrder": 2, "derivative": derivative}},
            ],
            "metrics": {"plsIntercept": 0.0, "coefficients": [1.0] * 12},
        }

    def test_legacy_first_derivative_keeps_exported_sign(self):
        """A file without the marker reproduces the negated odd derivative it was trained on."""
        ramp = 2.0 * np.arange(12, dtype=float)
        snapshot = ModelSnapshot.from_dict(self._legacy_dict(1))
        assert snapshot.steps[0].mirrored
        # edges 0 + 2 + 20 + 22, eight interior points at -2
        assert snapshot.predict(ramp) == pytest.approx(28.0)

    def test_marked_file_uses_correlation_order(self):
        ramp = 2.0 * np.arange(12, dtype=float)
        data = self._legacy_dict(1)
        data["savgolConvention"] = "correlation"
        snapshot = ModelSnapshot.from_dict(data)
        assert not snapshot.steps[0].mirrored
        assert snapshot.predict(ramp) == pytest.approx(60.0)

    def test_legacy_even_derivative_is_unchanged(self):
        """Symmetric kernels give the same result in either order."""
        raw = np.sin(np.linspace(0, 3, 12)) + 1.0
        legacy = ModelSnapshot.from_dict(self._legacy_dict(2))
        current = ModelSnapshot.from_dict({**self._legacy_dict(2), "savgolConvention": "correlation"})
        assert legacy.predict(raw) == pytest.approx(current.predict(raw), abs=1e-12)

    def test_mirrored_step_survives_round_trip(self):
        legacy = ModelSnapshot.from_dict(self._legacy_dict(1))
        data = legacy.to_dict()
        assert data["preprocessing"][0]["params"]["mirrored"] is True
        assert ModelSnapshot.from_dict(data).steps == legacy.steps

    def test_unknown_convention(self):
        data = {**self._legacy_dict(1), "savgolConvention": "fft"}
        with pytest.raises(SnapshotFormatError, match="savgolConvention"):
            ModelSnapshot.from_dict(data)


class TestSnapshotFiles:
    """Tests for save / load."""

    @pytest.mark.parametrize("suffix", [".json", ".yaml", ".yml"])
    def test_save_load(self, snapshot, tmp_path, suffix):
        path = snapshot.save(tmp_path / "models" / f"protein{suffix}")
        restored = ModelSnapshot.load(path)
        raw = np.cos(np.linspace(0, 3, 12)) + 1.5
        assert restored.predict(raw) == snapshot.predict(raw)
        assert restored.analytical_property == "Protein"

    def test_json_is_plain(self, snapshot, tmp_path):
        path = snapshot.save(tmp_path / "protein.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["analyticalProperty"] == "Protein"

    def test_yaml_is_plain(self, snapshot, tmp_path):
        path = snapshot.save(tmp_path / "protein.yaml")
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["metrics"]["plsIntercept"] == 1.25

    def test_msc_reference_survives(self, tmp_path):
        reference = tuple(np.linspace(1.0, 2.0, 6))
        snapshot = ModelSnapshot("Moisture", (MSCStep(reference=reference),), 0.5, np.ones(6))
        restored = ModelSnapshot.load(snapshot.save(tmp_path / "moisture.json"))
        assert restored.steps[0].reference == reference
        raw = 0.3 + 1.2 * np.asarray(reference)
        assert_allclose(restored.predict(raw), 0.5 + np.sum(reference))

    def test_load_unparsable(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotFormatError, match="broken.json"):
            ModelSnapshot.load(path)

    def test_load_snapshots_skips_invalid(self, snapshot, tmp_path, caplog):
        good = snapshot.save(tmp_path / "good.json")
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"metrics": {}}), encoding="utf-8")
        with caplog.at_level("WARNING", logger="nirscal"):
            loaded = load_snapshots([good, bad])
        assert len(loaded) == 1
        assert "bad.json is not a valid model" in caplog.text
