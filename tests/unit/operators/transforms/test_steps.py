"""Tests for preprocessing steps and the preprocessing pipeline."""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from nirscal.core.exceptions import ConfigurationError
from nirscal.operators.transforms.nirs import savgol, snv
from nirscal.operators.transforms.steps import (
    DetrendStep,
    MSCStep,
    NoneStep,
    SavitzkyGolayStep,
    SNVStep,
    apply_preprocessing,
    apply_preprocessing_traced,
    coerce_steps,
    resolve_references,
    step_from_dict,
    step_to_dict,
)


class TestSavitzkyGolayStepValidation:
    """Parameter checks of the Savitzky-Golay step."""

    def test_defaults_are_valid(self):
        step = SavitzkyGolayStep()
        assert step.is_valid
        assert (step.window_size, step.polynomial_order, step.derivative) == (5, 2, 1)

    @pytest.mark.parametrize(
        "params,fragment",
        [
            ({"window_size": 4}, "odd"),
            ({"window_size": 1, "polynomial_order": 0, "derivative": 0}, ">= 3"),
            ({"window_size": 5, "polynomial_order": 5}, "lower than window_size"),
            ({"window_size": 5, "polynomial_order": 1, "derivative": 2}, "must not exceed"),
            ({"delta": 0.0}, "delta"),
            ({"window_size": "abc"}, "non-numeric"),
        ],
    )
    def test_invalid_parameters(self, params, fragment):
        step = SavitzkyGolayStep(**params)
        assert not step.is_valid
        assert fragment in step.invalid_reason

    def test_string_parameters_are_coerced(self):
        """Values read from text fields are accepted."""
        step = SavitzkyGolayStep(window_size="7", polynomial_order="3", derivative="2")
        assert step.is_valid
        assert step.window_size == 7


class TestApplyPreprocessing:
    """Tests for apply_preprocessing and its traced variant."""

    def test_empty_steps_is_identity(self):
        spectrum = np.random.RandomState(1).rand(30)
        assert_array_equal(apply_preprocessing(spectrum, []), spectrum)
        assert_array_equal(apply_preprocessing(spectrum, None), spectrum)

    def test_returns_new_array(self):
        spectrum = np.arange(10, dtype=float)
        result = apply_preprocessing(spectrum, [NoneStep()])
        result[0] = 99.0
        assert spectrum[0] == 0.0

    def test_steps_applied_in_order(self):
        spectrum = np.sin(np.linspace(0, 4, 40)) * 3 + 1
        steps = [SNVStep(), SavitzkyGolayStep(window_size=7, polynomial_order=2, derivative=1)]
        expected = savgol(snv(spectrum), 7, 2, 1)
        assert_allclose(apply_preprocessing(spectrum, steps), expected)

    def test_invalid_step_is_pass_through(self):
        """An invalid step is reported as skipped and leaves the spectrum unchanged."""
        spectrum = np.linspace(0, 1, 20) ** 2
        result, outcomes = apply_preprocessing_traced(spectrum, [SavitzkyGolayStep(window_size=4)])
        assert_array_equal(result, spectrum)
        assert len(outcomes) == 1
        assert not outcomes[0].applied
        assert "odd" in outcomes[0].reason

    def test_degenerate_input_is_skipped(self):
        """SNV on a constant spectrum is skipped, the following steps still run."""
        spectrum = np.full(15, 2.0)
        _, outcomes = apply_preprocessing_traced(spectrum, [SNVStep(), DetrendStep()])
        assert [o.applied for o in outcomes] == [False, True]

    def test_window_longer_than_spectrum_is_skipped(self):
        spectrum = np.arange(4, dtype=float)
        result, outcomes = apply_preprocessing_traced(spectrum, [SavitzkyGolayStep(window_size=7)])
        assert_array_equal(result, spectrum)
        assert not outcomes[0].applied

    def test_empty_spectrum(self):
        result, outcomes = apply_preprocessing_traced([], [SNVStep()])
        assert result.size == 0
        assert outcomes[0].reason == "empty spectrum"

    def test_accepts_dict_steps(self):
        spectrum = np.random.RandomState(2).rand(20)
        result = apply_preprocessing(spectrum, [{"method": "snv", "params": {}}])
        assert_allclose(result, snv(spectrum))

    def test_msc_without_reference_skipped_on_single_spectrum(self):
        spectrum = np.random.RandomState(3).rand(20)
        result, outcomes = apply_preprocessing_traced(spectrum, [MSCStep()])
        assert_array_equal(result, spectrum)
        assert outcomes[0].reason == "no reference spectrum"


class TestResolveReferences:
    """Tests for binding MSC references to training spectra."""

    def test_reference_is_mean_after_previous_steps(self, spectra):
        X, _ = spectra
        steps = resolve_references(X, [SNVStep(), MSCStep()])
        assert steps[0] == SNVStep()
        expected = np.vstack([snv(row) for row in X]).mean(axis=0)
        assert_allclose(np.asarray(steps[1].reference), expected)

    def test_explicit_reference_kept(self, spectra):
        X, _ = spectra
        reference = tuple(float(v) for v in X[0])
        steps = resolve_references(X, [MSCStep(reference=reference)])
        assert steps[0].reference == reference

    def test_without_msc_returns_same_steps(self, spectra):
        X, _ = spectra
        steps = [SNVStep(), DetrendStep()]
        assert resolve_references(X, steps) == steps


class TestSerialization:
    """Tests for the {"method", "params"} step form."""

    def test_savgol_params_use_export_names(self):
        data = step_to_dict(SavitzkyGolayStep(window_size=11, polynomial_order=3, derivative=2))
        assert data == {
            "method": "savgol",
            "params": {"derivative": 2, "windowSize": 11, "polynomialOrder": 3},
        }

    def test_from_dict(self):
        step = step_from_dict({"method": "savgol", "params": {"windowSize": 9, "derivative": 0}})
        assert step == SavitzkyGolayStep(window_size=9, polynomial_order=2, derivative=0)

    def test_method_is_case_insensitive(self):
        assert step_from_dict({"method": "SNV"}) == SNVStep()

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError, match="Unknown preprocessing method"):
            step_from_dict({"method": "fourier", "params": {}})

    @pytest.mark.parametrize(
        "step",
        [NoneStep(), SNVStep(), DetrendStep(), MSCStep(reference=(1.0, 2.0, 3.0)),
         SavitzkyGolayStep(window_size=7, polynomial_order=3, derivative=1, delta=0.5)],
    )
    def test_round_trip(self, step):
        assert step_from_dict(step_to_dict(step)) == step

    def test_coerce_steps_mixed(self):
        steps = coerce_steps([SNVStep(), {"method": "detrend"}])
        assert steps == [SNVStep(), DetrendStep()]
