"""Built-in model families."""
from .benchmarks import (
    DriftModel,
    DriftSpec,
    MeanModel,
    MeanSpec,
    SeasonalNaiveModel,
    SeasonalNaiveSpec,
    drift,
    mean,
    naive,
    snaive,
)
from .trend import ParameterSpec, TrendModel, TrendSpec, linear_trend, linear_trend_func, trend

__all__ = [
    "mean",
    "naive",
    "snaive",
    "drift",
    "trend",
    "linear_trend",
    "linear_trend_func",
    "MeanSpec",
    "MeanModel",
    "SeasonalNaiveSpec",
    "SeasonalNaiveModel",
    "DriftSpec",
    "DriftModel",
    "TrendSpec",
    "TrendModel",
    "ParameterSpec",
]
