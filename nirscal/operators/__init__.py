from .models import SIMPLS, TrainedModel, predict, predict_many, train
from .transforms import (
    Detrend,
    DetrendStep,
    MSCStep,
    MultiplicativeScatterCorrection,
    NoneStep,
    PreprocessingStep,
    SavitzkyGolay,
    SavitzkyGolayStep,
    SNVStep,
    StandardNormalVariate,
    StepOutcome,
    apply_preprocessing,
    apply_preprocessing_traced,
)

__all__ = [
    # Models
    "SIMPLS",
    "TrainedModel",
    "train",
    "predict",
    "predict_many",
    # Transformers
    "SavitzkyGolay",
    "StandardNormalVariate",
    "MultiplicativeScatterCorrection",
    "Detrend",
    # Pipeline steps
    "PreprocessingStep",
    "NoneStep",
    "SavitzkyGolayStep",
    "SNVStep",
    "MSCStep",
    "DetrendStep",
    "StepOutcome",
    "apply_preprocessing",
    "apply_preprocessing_traced",
]
