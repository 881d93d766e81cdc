"""
End-to-end calibration workflow: sweep, calibrate, screen outliers, export,
reload and predict.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

import nirscal
from nirscal.core.metrics import validation_report


@pytest.mark.parametrize(
    "steps",
    [
        [],
        [nirscal.SNVStep()],
        [nirscal.SavitzkyGolayStep(window_size=9, polynomial_order=2, derivative=1)],
        [nirscal.MSCStep(), nirscal.SavitzkyGolayStep(window_size=7, polynomial_order=2, derivative=0)],
        [nirscal.DetrendStep(), nirscal.SNVStep()],
    ],
)
def test_snapshot_round_trip_reproduces_calibration(samples, tmp_path, steps):
    """Saving and reloading a model reproduces its calibration predictions."""
    result = nirscal.run_analysis(samples, steps, 3)
    path = result.to_snapshot("Concentration").save(tmp_path / "model.json")
    reloaded = nirscal.ModelSnapshot.load(path)

    predictions = [nirscal.predict_from_snapshot(reloaded, s.values) for s in samples]
    assert_allclose(predictions, result.correlation.predicted, rtol=1e-12)


def test_full_workflow(dataset_factory, tmp_path):
    calibration = dataset_factory(30, 60, seed=11)
    validation = dataset_factory(10, 60, seed=12)
    steps = [nirscal.SNVStep(), nirscal.SavitzkyGolayStep(window_size=7, polynomial_order=2, derivative=0)]

    sweep = nirscal.run_optimization_sweep(calibration, steps, 8)
    assert len(sweep) == 8
    best = nirscal.best_components(sweep)
    assert 1 <= best <= 8

    result = nirscal.run_analysis(calibration, steps, best)
    assert result.q2 > 0.8

    cleaned = nirscal.data.deactivate(calibration, result.outlier_ids)
    refit = nirscal.run_analysis(cleaned, steps, best)

    snapshot_path = refit.to_snapshot("Concentration").save(tmp_path / "concentration.yaml")
    snapshots = nirscal.load_snapshots([snapshot_path])
    rows = [(s.id, s.values) for s in validation]
    predictions = nirscal.predict_with_models(snapshots, rows)
    assert len(predictions) == len(validation)

    predicted = np.array([p.values["Concentration"] for p in predictions])
    reference = np.array([s.analytical_value for s in validation])
    report = validation_report(reference, predicted)
    assert report.r2 > 0.8
    assert report.rpd > 2.0
