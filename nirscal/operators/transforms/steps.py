"""Preprocessing steps and the spectral preprocessing pipeline.

A preprocessing pipeline is an ordered list of steps. Each step is one member
of a closed set of frozen dataclasses (``NoneStep``, ``SavitzkyGolayStep``,
``SNVStep``, ``MSCStep``, ``DetrendStep``), with typed parameters checked at
construction.

Invalid parameters are not an error: the step stays in the pipeline and acts
as a pass-through, so a half-edited pipeline can still be previewed. Every
application reports a :class:`StepOutcome` telling whether the step was
applied or skipped and why.

Steps serialize to ``{"method": ..., "params": {...}}`` using the parameter
names of the exported model files (``windowSize``, ``polynomialOrder``,
``derivative``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Sequence, Union

import numpy as np

from nirscal.core.exceptions import ConfigurationError
from nirscal.core.logging import get_logger
from nirscal.operators.transforms.nirs import SkipStep, detrend, msc, savgol, snv

logger = get_logger(__name__)


def _as_int(value: Any, name: str) -> int | None:
    """Coerce a parameter to int; None when it cannot be read as an integer."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Parameter {name}={value!r} is not numeric")
        return None
    if not np.isfinite(number):
        return None
    return int(number)


@dataclass(frozen=True)
class NoneStep:
    """Identity step (placeholder in an edited pipeline)."""

    method: ClassVar[str] = "none"

    @property
    def is_valid(self) -> bool:
        return True

    @property
    def invalid_reason(self) -> str | None:
        return None

    def transform(self, spectrum: np.ndarray) -> np.ndarray:
        return spectrum

    def params(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class SavitzkyGolayStep:
    """Savitzky-Golay smoothing (derivative=0) or derivative.

    Attributes:
        window_size: Odd window width, >= 3 and > polynomial_order.
        polynomial_order: Order of the local polynomial.
        derivative: Derivative order, <= polynomial_order.
        delta: Sampling distance; 1.0 differentiates against the index.
        mirrored: Apply the kernel reversed, as exports without a
            ``savgolConvention`` marker did. Flips the sign of odd derivatives.
    """

    window_size: Any = 5
    polynomial_order: Any = 2
    derivative: Any = 1
    delta: float = 1.0
    mirrored: bool = False

    method: ClassVar[str] = "savgol"

    def __post_init__(self) -> None:
        # Stored as given-then-coerced so parameters read from JSON/UI strings work.
        object.__setattr__(self, "window_size", _as_int(self.window_size, "windowSize"))
        object.__setattr__(self, "polynomial_order", _as_int(self.polynomial_order, "polynomialOrder"))
        object.__setattr__(self, "derivative", _as_int(self.derivative, "derivative"))
        try:
            delta = float(self.delta)
        except (TypeError, ValueError):
            delta = float("nan")
        object.__setattr__(self, "delta", delta)

    @property
    def invalid_reason(self) -> str | None:
        w, p, d = self.window_size, self.polynomial_order, self.derivative
        if w is None or p is None or d is None:
            return "non-numeric parameter"
        if w % 2 == 0:
            return f"window_size must be odd, got {w}"
        if w < 3:
            return f"window_size must be >= 3, got {w}"
        if p < 0 or d < 0:
            return "polynomial_order and derivative must be >= 0"
        if p >= w:
            return f"polynomial_order ({p}) must be lower than window_size ({w})"
        if d > p:
            return f"derivative ({d}) must not exceed polynomial_order ({p})"
        if not (np.isfinite(self.delta) and self.delta > 0):
            return f"delta must be > 0, got {self.delta}"
        return None

    @property
    def is_valid(self) -> bool:
        return self.invalid_reason is None

    def transform(self, spectrum: np.ndarray) -> np.ndarray:
        return savgol(
            spectrum,
            window_size=self.window_size,
            polynomial_order=self.polynomial_order,
            derivative=self.derivative,
            delta=self.delta,
            mirrored=self.mirrored,
        )

    def params(self) -> dict[str, Any]:
        params = {
            "derivative": self.derivative,
            "windowSize": self.window_size,
            "polynomialOrder": self.polynomial_order,
        }
        if self.delta != 1.0:
            params["delta"] = self.delta
        if self.mirrored:
            params["mirrored"] = True
        return params


@dataclass(frozen=True)
class SNVStep:
    """Standard Normal Variate on each spectrum."""

    method: ClassVar[str] = "snv"

    @property
    def is_valid(self) -> bool:
        return True

    @property
    def invalid_reason(self) -> str | None:
        return None

    def transform(self, spectrum: np.ndarray) -> np.ndarray:
        return snv(spectrum)

    def params(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class MSCStep:
    """Multiplicative scatter correction against a reference spectrum.

    A step without reference is skipped when applied to a lone spectrum;
    :func:`resolve_references` binds the mean training spectrum to it.
    """

    reference: tuple[float, ...] | None = field(default=None)

    method: ClassVar[str] = "msc"

    def __post_init__(self) -> None:
        if self.reference is not None:
            object.__setattr__(
                self, "reference", tuple(float(v) for v in np.ravel(self.reference))
            )

    @property
    def is_valid(self) -> bool:
        return True

    @property
    def invalid_reason(self) -> str | None:
        return None

    def transform(self, spectrum: np.ndarray) -> np.ndarray:
        reference = None if self.reference is None else np.asarray(self.reference)
        return msc(spectrum, reference)

    def params(self) -> dict[str, Any]:
        if self.reference is None:
            return {}
        return {"reference": list(self.reference)}


@dataclass(frozen=True)
class DetrendStep:
    """Subtract the least-squares line of intensity vs. index."""

    method: ClassVar[str] = "detrend"

    @property
    def is_valid(self) -> bool:
        return True

    @property
    def invalid_reason(self) -> str | None:
        return None

    def transform(self, spectrum: np.ndarray) -> np.ndarray:
        return detrend(spectrum)

    def params(self) -> dict[str, Any]:
        return {}


PreprocessingStep = Union[NoneStep, SavitzkyGolayStep, SNVStep, MSCStep, DetrendStep]

STEP_TYPES: dict[str, type] = {
    cls.method: cls for cls in (NoneStep, SavitzkyGolayStep, SNVStep, MSCStep, DetrendStep)
}


@dataclass(frozen=True)
class StepOutcome:
    """Result of applying one step.

    Attributes:
        step: The step that was applied.
        applied: False when the step acted as a pass-through.
        reason: Why the step was skipped (None when applied).
    """

    step: PreprocessingStep
    applied: bool
    reason: str | None = None


def step_from_dict(data: dict[str, Any]) -> PreprocessingStep:
    """Build a step from its ``{"method", "params"}`` form.

    Raises:
        ConfigurationError: If the method is unknown.
    """
    method = str(data.get("method", "none")).lower()
    params = dict(data.get("params") or {})
    if method not in STEP_TYPES:
        raise ConfigurationError(
            f"Unknown preprocessing method '{method}'. Expected one of {sorted(STEP_TYPES)}"
        )
    if method == "savgol":
        defaults = SavitzkyGolayStep()
        return SavitzkyGolayStep(
            window_size=params.get("windowSize", defaults.window_size),
            polynomial_order=params.get("polynomialOrder", defaults.polynomial_order),
            derivative=params.get("derivative", defaults.derivative),
            delta=params.get("delta", defaults.delta),
            mirrored=bool(params.get("mirrored", False)),
        )
    if method == "msc":
        return MSCStep(reference=params.get("reference"))
    return STEP_TYPES[method]()


def step_to_dict(step: PreprocessingStep) -> dict[str, Any]:
    """Serialize a step to ``{"method", "params"}``."""
    return {"method": step.method, "params": step.params()}


def coerce_steps(steps: Sequence[PreprocessingStep | dict[str, Any]] | None) -> list[PreprocessingStep]:
    """Accept steps as dataclasses or dicts and return dataclasses."""
    if not steps:
        return []
    return [step_from_dict(s) if isinstance(s, dict) else s for s in steps]


def apply_step(spectrum: np.ndarray, step: PreprocessingStep) -> tuple[np.ndarray, StepOutcome]:
    """Apply one step, substituting the identity when it cannot be applied."""
    reason = step.invalid_reason
    if reason is None:
        try:
            result = np.asarray(step.transform(spectrum), dtype=np.float64)
            return result, StepOutcome(step, applied=True)
        except SkipStep as skip:
            reason = skip.reason
    logger.trace(f"Skipping {step.method} step: {reason}")
    return spectrum, StepOutcome(step, applied=False, reason=reason)


def apply_preprocessing_traced(
    spectrum: Sequence[float],
    steps: Sequence[PreprocessingStep | dict[str, Any]] | None,
) -> tuple[np.ndarray, list[StepOutcome]]:
    """Apply steps in order, reporting what each step did.

    Args:
        spectrum: Raw spectrum.
        steps: Ordered steps (dataclasses or ``{"method", "params"}`` dicts).

    Returns:
        tuple: (processed spectrum, one StepOutcome per step)
    """
    processed = np.array(spectrum, dtype=np.float64, copy=True).ravel()
    outcomes: list[StepOutcome] = []
    for step in coerce_steps(steps):
        if processed.size == 0:
            outcomes.append(StepOutcome(step, applied=False, reason="empty spectrum"))
            continue
        processed, outcome = apply_step(processed, step)
        outcomes.append(outcome)
    return processed, outcomes


def apply_preprocessing(
    spectrum: Sequence[float],
    steps: Sequence[PreprocessingStep | dict[str, Any]] | None,
) -> np.ndarray:
    """Apply preprocessing steps in order to one spectrum.

    Never fails: steps with invalid parameters or degenerate input are skipped.

    Returns:
        numpy.ndarray: Processed spectrum, same length as the input.
    """
    processed, _ = apply_preprocessing_traced(spectrum, steps)
    return processed


def resolve_references(
    spectra: np.ndarray,
    steps: Sequence[PreprocessingStep | dict[str, Any]] | None,
) -> list[PreprocessingStep]:
    """Bind a reference spectrum to every MSC step that has none.

    The reference of an MSC step is the mean of the training spectra as they
    come out of the preceding steps. The returned list can be applied to any
    single spectrum, which keeps predictions reproducible from the steps alone.

    Args:
        spectra: Raw training spectra (n_samples, n_features).
        steps: Ordered steps.

    Returns:
        list: Steps with MSC references filled in.
    """
    steps = coerce_steps(steps)
    if not any(isinstance(s, MSCStep) and s.reference is None for s in steps):
        return steps

    current = np.array(spectra, dtype=np.float64, copy=True)
    resolved: list[PreprocessingStep] = []
    for step in steps:
        if isinstance(step, MSCStep) and step.reference is None:
            step = MSCStep(reference=current.mean(axis=0))
            logger.debug("Resolved MSC reference from the mean training spectrum")
        resolved.append(step)
        current = np.vstack([apply_step(row, step)[0] for row in current])
    return resolved
