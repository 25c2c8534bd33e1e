"""Benchmark forecasting methods: MEAN, NAIVE, SNAIVE and DRIFT.

Forecast standard deviations follow the usual closed forms with sigma the
residual standard error:

    MEAN    sigma * sqrt(1 + 1/T)
    NAIVE   sigma * sqrt(h)
    SNAIVE  sigma * sqrt(floor((h - 1) / m) + 1)
    DRIFT   sigma * sqrt(h * (1 + h / (T - 1)))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd

from ..model import ModelSpec, TrainedModel, response_values
from ..util import residual_sigma


def _observed(data: pd.DataFrame, response: str, minimum: int) -> pd.Series:
    y = response_values(data, response)
    obs = y.dropna()
    if len(obs) < minimum:
        raise ValueError(
            f"Need at least {minimum} non-missing observations of {response!r}, got {len(obs)}."
        )
    return y


# ---- MEAN ----


@dataclass(frozen=True, eq=False, repr=False)
class MeanSpec(ModelSpec):
    response: str

    family = "MEAN"

    def fit(self, data: pd.DataFrame) -> "MeanModel":
        y = _observed(data, self.response, 2)
        mu = float(y.mean())
        return MeanModel(
            response=self.response,
            data=data[[self.response]].copy(),
            spec=self,
            mu=mu,
            sigma=residual_sigma(y - mu, n_params=1),
            nobs=int(y.count()),
        )


@dataclass(frozen=True, eq=False, repr=False)
class MeanModel(TrainedModel):
    response: str
    data: pd.DataFrame
    spec: MeanSpec
    mu: float
    sigma: float
    nobs: int

    family = "MEAN"

    def fitted(self) -> pd.Series:
        return pd.Series(self.mu, index=self.data.index, name=".fitted", dtype=float)

    def _forecast(self, h: int) -> Tuple[np.ndarray, np.ndarray]:
        point = np.full(h, self.mu)
        sd = np.full(h, self.sigma * np.sqrt(1.0 + 1.0 / self.nobs))
        return point, sd


# ---- NAIVE / SNAIVE ----


@dataclass(frozen=True, eq=False, repr=False)
class SeasonalNaiveSpec(ModelSpec):
    response: str
    period: int = 1

    @property
    def family(self) -> str:  # type: ignore[override]
        return "NAIVE" if self.period == 1 else "SNAIVE"

    def fit(self, data: pd.DataFrame) -> "SeasonalNaiveModel":
        m = int(self.period)
        if m < 1:
            raise ValueError(f"period must be >= 1, got {self.period!r}.")
        y = _observed(data, self.response, m + 1)
        fits = y.shift(m)
        return SeasonalNaiveModel(
            response=self.response,
            data=data[[self.response]].copy(),
            spec=self,
            period=m,
            sigma=residual_sigma(y - fits),
        )


@dataclass(frozen=True, eq=False, repr=False)
class SeasonalNaiveModel(TrainedModel):
    response: str
    data: pd.DataFrame
    spec: SeasonalNaiveSpec
    period: int
    sigma: float

    @property
    def family(self) -> str:  # type: ignore[override]
        return "NAIVE" if self.period == 1 else "SNAIVE"

    def fitted(self) -> pd.Series:
        y = response_values(self.data, self.response)
        return y.shift(self.period).rename(".fitted")

    def _forecast(self, h: int) -> Tuple[np.ndarray, np.ndarray]:
        m = self.period
        last = response_values(self.data, self.response).to_numpy()[-m:]
        steps = np.arange(h)
        point = last[steps % m]
        sd = self.sigma * np.sqrt(np.floor(steps / m) + 1.0)
        return point, sd


# ---- DRIFT ----


@dataclass(frozen=True, eq=False, repr=False)
class DriftSpec(ModelSpec):
    response: str

    family = "DRIFT"

    def fit(self, data: pd.DataFrame) -> "DriftModel":
        y = _observed(data, self.response, 2)
        obs = y.dropna()
        slope = float((obs.iloc[-1] - obs.iloc[0]) / (len(obs) - 1))
        fits = y.shift(1) + slope
        return DriftModel(
            response=self.response,
            data=data[[self.response]].copy(),
            spec=self,
            slope=slope,
            sigma=residual_sigma(y - fits, n_params=1),
            nobs=len(obs),
        )


@dataclass(frozen=True, eq=False, repr=False)
class DriftModel(TrainedModel):
    response: str
    data: pd.DataFrame
    spec: DriftSpec
    slope: float
    sigma: float
    nobs: int

    family = "DRIFT"

    def fitted(self) -> pd.Series:
        y = response_values(self.data, self.response)
        return (y.shift(1) + self.slope).rename(".fitted")

    def _forecast(self, h: int) -> Tuple[np.ndarray, np.ndarray]:
        steps = np.arange(1, h + 1, dtype=float)
        last = float(response_values(self.data, self.response).dropna().iloc[-1])
        point = last + self.slope * steps
        sd = self.sigma * np.sqrt(steps * (1.0 + steps / (self.nobs - 1)))
        return point, sd


# ---- factories ----


def mean(response: str) -> MeanSpec:
    """Return a MEAN specification: forecasts are the historical mean."""
    return MeanSpec(response=response)


def naive(response: str) -> SeasonalNaiveSpec:
    """Return a NAIVE specification: forecasts repeat the last observation."""
    return SeasonalNaiveSpec(response=response, period=1)


def snaive(response: str, period: int) -> SeasonalNaiveSpec:
    """Return an SNAIVE specification repeating the last seasonal cycle."""
    return SeasonalNaiveSpec(response=response, period=period)


def drift(response: str) -> DriftSpec:
    """Return a DRIFT specification: the naive method plus average change."""
    return DriftSpec(response=response)
