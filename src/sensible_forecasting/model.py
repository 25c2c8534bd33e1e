from __future__ import annotations

from typing import Any, Hashable, Optional, Tuple

import numpy as np
import pandas as pd

from .distributions import Forecast, Normal
from .ops import Combinable, normalize_binary
from .operands import is_model_list, is_spec
from .util import future_index, is_vector

__all__ = ["ModelSpec", "TrainedModel", "estimate", "response_values"]


class ModelSpec(Combinable):
    """An un-estimated model description.

    Concrete specifications are frozen dataclasses carrying a `response`
    column name plus whatever the family needs; `fit(data)` returns a
    TrainedModel and never mutates the specification.
    """

    family = "MODEL"

    def __repr__(self) -> str:
        return f"<{self.family} spec: {getattr(self, 'response', '?')}>"

    def fit(self, data: pd.DataFrame) -> "TrainedModel":
        raise NotImplementedError

    def _combine(self, op: str, e1: Any, e2: Any) -> Any:
        from .combination import combination_model

        if is_vector(e1) or is_vector(e2) or is_model_list(e1) or is_model_list(e2):
            raise TypeError(
                "Specifications can only be combined with single models or numbers; "
                "estimate them first to combine with a batch."
            )
        return combination_model(e1, e2, combination_fn=op)


class TrainedModel(Combinable):
    """An estimated model.

    Subclasses provide `response`, `data`, `fitted()` and `_forecast(h)`;
    everything else (residuals, forecast assembly, arithmetic) is shared.
    """

    dist = "normal"
    family = "MODEL"

    response: Any
    data: pd.DataFrame

    def fitted(self) -> pd.Series:
        raise NotImplementedError

    def _forecast(self, h: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return (point, sd) arrays for steps 1..h."""
        raise NotImplementedError

    def model_sum(self) -> str:
        return self.family

    def __repr__(self) -> str:
        return f"<{self.model_sum()}: {self.response}>"

    def residuals(self, type: str = "response") -> pd.Series:
        """Response-scale residuals y - fitted, aligned to the training index."""
        if type not in ("response", "innovation"):
            raise ValueError(f"Unknown residual type {type!r}.")
        y = response_values(self.data, self.response)
        return (y - self.fitted()).rename(".resid")

    def forecast_index(
        self, new_data: Optional[pd.DataFrame] = None, h: Optional[int] = None
    ) -> pd.Index:
        if new_data is not None:
            if h is not None and int(h) != len(new_data):
                raise ValueError(
                    f"h={h} conflicts with new_data of length {len(new_data)}."
                )
            if len(new_data) == 0:
                raise ValueError("new_data is empty.")
            return new_data.index
        if h is None:
            raise ValueError("forecast() needs either new_data= or h=.")
        return future_index(self.data.index, int(h))

    def forecast(
        self, new_data: Optional[pd.DataFrame] = None, h: Optional[int] = None
    ) -> Forecast:
        index = self.forecast_index(new_data, h)
        point, sd = self._forecast(len(index))
        return Forecast(
            index=index,
            response=self.response,
            point=point,
            dist=Normal(mean=point, sd=sd),
        )

    def _combine(self, op: str, e1: Any, e2: Any) -> Any:
        from .batch import map_binary
        from .combination import combination_model, new_model_combination

        if is_spec(e1) or is_spec(e2):
            return combination_model(e1, e2, combination_fn=op)
        if is_vector(e1) or is_vector(e2) or is_model_list(e1) or is_model_list(e2):
            return map_binary(op, e1, e2)
        operands, expr = normalize_binary(op, e1, e2)
        return new_model_combination(operands, expr)


def response_values(data: pd.DataFrame, response: str) -> pd.Series:
    """Return the response column as a float Series."""
    if response not in data.columns:
        raise KeyError(
            f"Response {response!r} not found in data columns {list(data.columns)}."
        )
    return data[response].astype(float)


def estimate(
    data: pd.DataFrame, spec: ModelSpec, key: Optional[Hashable] = None
) -> Any:
    """Estimate `spec` on `data`.

    With `key`, one model is fitted per distinct key value (in order of first
    appearance) and a ModelList is returned.
    """
    from .batch import ModelList

    if not is_spec(spec):
        raise TypeError(f"estimate() needs a model specification, got {type(spec).__name__}.")
    if not isinstance(data, pd.DataFrame):
        raise TypeError("estimate() needs a pandas DataFrame of observations.")
    if key is None:
        return spec.fit(data)
    if key not in data.columns:
        raise KeyError(f"Key column {key!r} not found in data.")

    models = []
    keys = []
    for k, group in data.groupby(key, sort=False):
        models.append(spec.fit(group.drop(columns=[key])))
        keys.append(k)
    return ModelList(models=tuple(models), keys=tuple(keys))
