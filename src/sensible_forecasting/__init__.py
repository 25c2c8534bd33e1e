"""sensible_forecasting public API."""
from .batch import ModelList
from .combination import (
    CombinationSpec,
    ModelCombination,
    combination_model,
    new_model_combination,
    train_combination,
)
from .distributions import Band, Degenerate, Forecast, Normal
from .ensemble import combination_ensemble, inverse_variance_weights
from .errors import (
    DegenerateWeightWarning,
    InvalidCombinationError,
    MultivariateCombinationError,
    RecyclingLengthWarning,
    UnsupportedOperationError,
    UnsupportedOperatorWarning,
)
from .evaluate import fitted_combination, forecast_combination
from .expr import BinaryOp, Leaf, UnaryNeg
from .model import ModelSpec, TrainedModel, estimate
from . import models

__all__ = [
    "ModelSpec",
    "TrainedModel",
    "estimate",
    "ModelList",
    "CombinationSpec",
    "ModelCombination",
    "combination_model",
    "combination_ensemble",
    "inverse_variance_weights",
    "new_model_combination",
    "train_combination",
    "forecast_combination",
    "fitted_combination",
    "Forecast",
    "Normal",
    "Degenerate",
    "Band",
    "Leaf",
    "BinaryOp",
    "UnaryNeg",
    "InvalidCombinationError",
    "UnsupportedOperationError",
    "MultivariateCombinationError",
    "DegenerateWeightWarning",
    "RecyclingLengthWarning",
    "UnsupportedOperatorWarning",
    "models",
]
