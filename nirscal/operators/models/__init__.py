"""PLS model operators for nirscal.

Classes
-------
SIMPLS
    SIMPLS algorithm for PLS regression (de Jong 1993), sklearn-compatible.
TrainedModel
    Immutable result of one training run.
"""

from .simpls import SIMPLS, TrainedModel, max_components, predict, predict_many, train

__all__ = [
    "SIMPLS",
    "TrainedModel",
    "max_components",
    "predict",
    "predict_many",
    "train",
]
