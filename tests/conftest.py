from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
import pandas as pd
import pytest

from sensible_forecasting import Degenerate, Forecast, TrainedModel


@dataclass(frozen=True, eq=False, repr=False)
class StubModel(TrainedModel):
    """Trained model with residuals, point forecasts and sds set by hand.

    The response column holds the residuals and fitted values are zero, so
    `residuals()` returns exactly `resid`.
    """

    response: Any
    data: pd.DataFrame
    mean: np.ndarray
    sd: np.ndarray

    family = "STUB"

    def fitted(self) -> pd.Series:
        return pd.Series(0.0, index=self.data.index, name=".fitted")

    def _forecast(self, h: int):
        return self.mean[:h], self.sd[:h]


@dataclass(frozen=True, eq=False, repr=False)
class PointStubModel(StubModel):
    """Stub whose forecasts are point masses rather than normal."""

    def forecast(self, new_data: Optional[pd.DataFrame] = None, h: Optional[int] = None):
        index = self.forecast_index(new_data, h)
        point = self.mean[: len(index)]
        return Forecast(index=index, response=self.response, point=point, dist=Degenerate(point))


def _make(cls, resid, mean, sd, response="y"):
    resid = np.asarray(resid, dtype=float)
    mean = np.asarray(mean, dtype=float)
    sd = np.broadcast_to(np.asarray(sd, dtype=float), mean.shape).copy()
    column = response if isinstance(response, str) else "y"
    data = pd.DataFrame({column: resid}, index=pd.RangeIndex(resid.size))
    return cls(response=response, data=data, mean=mean, sd=sd)


@pytest.fixture
def stub_model():
    def factory(resid, mean, sd, response="y"):
        return _make(StubModel, resid, mean, sd, response=response)

    return factory


@pytest.fixture
def point_stub_model():
    def factory(resid, mean):
        return _make(PointStubModel, resid, mean, 0.0)

    return factory
