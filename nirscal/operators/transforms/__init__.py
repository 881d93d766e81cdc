from .nirs import (
    Detrend,
    MultiplicativeScatterCorrection,
    SavitzkyGolay,
    StandardNormalVariate,
    detrend,
    msc,
    savgol,
    savgol_coefficients,
    snv,
)
from .steps import (
    STEP_TYPES,
    DetrendStep,
    MSCStep,
    NoneStep,
    PreprocessingStep,
    SavitzkyGolayStep,
    SNVStep,
    StepOutcome,
    apply_preprocessing,
    apply_preprocessing_traced,
    coerce_steps,
    resolve_references,
    step_from_dict,
    step_to_dict,
)

__all__ = [
    # sklearn transformers
    "SavitzkyGolay",
    "StandardNormalVariate",
    "MultiplicativeScatterCorrection",
    "Detrend",
    # spectrum kernels
    "savgol",
    "savgol_coefficients",
    "snv",
    "msc",
    "detrend",
    # pipeline steps
    "PreprocessingStep",
    "NoneStep",
    "SavitzkyGolayStep",
    "SNVStep",
    "MSCStep",
    "DetrendStep",
    "StepOutcome",
    "STEP_TYPES",
    "apply_preprocessing",
    "apply_preprocessing_traced",
    "coerce_steps",
    "resolve_references",
    "step_from_dict",
    "step_to_dict",
]
