from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

import numpy as np
import pandas as pd

from .util import level_to_conf_int, normal_quantile

__all__ = ["Band", "Normal", "Degenerate", "Forecast", "is_dist_normal"]


@dataclass(frozen=True)
class Band:
    low: np.ndarray
    high: np.ndarray
    median: Optional[np.ndarray] = None


@dataclass(frozen=True)
class Normal:
    """Per-horizon normal forecast distributions."""

    mean: np.ndarray
    sd: np.ndarray

    family = "normal"

    def __post_init__(self) -> None:
        mean = np.asarray(self.mean, dtype=float)
        sd = np.broadcast_to(np.asarray(self.sd, dtype=float), mean.shape).copy()
        if np.any(sd < 0):
            raise ValueError("Normal sd must be non-negative.")
        object.__setattr__(self, "mean", mean)
        object.__setattr__(self, "sd", sd)

    def __len__(self) -> int:
        return int(self.mean.shape[0])

    @property
    def variance(self) -> np.ndarray:
        return self.sd**2

    def quantile(self, p: float) -> np.ndarray:
        return normal_quantile(p, self.mean, self.sd)

    def interval(self, level: float = 95.0) -> Band:
        qlo, qhi = level_to_conf_int(level)
        return Band(low=self.quantile(qlo), high=self.quantile(qhi), median=self.mean)


@dataclass(frozen=True)
class Degenerate:
    """Point masses: used when spread cannot be propagated."""

    value: np.ndarray

    family = "degenerate"

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", np.asarray(self.value, dtype=float))

    def __len__(self) -> int:
        return int(self.value.shape[0])

    @property
    def mean(self) -> np.ndarray:
        return self.value

    @property
    def sd(self) -> np.ndarray:
        return np.zeros_like(self.value)

    @property
    def variance(self) -> np.ndarray:
        return np.zeros_like(self.value)

    def quantile(self, p: float) -> np.ndarray:
        return self.value.copy()

    def interval(self, level: float = 95.0) -> Band:
        level_to_conf_int(level)
        return Band(low=self.value.copy(), high=self.value.copy(), median=self.value)


Distribution = Union[Normal, Degenerate]


def is_dist_normal(dist: Any) -> bool:
    return getattr(dist, "family", None) == "normal"


@dataclass(frozen=True)
class Forecast:
    """A forecast over a future index: point values plus distribution."""

    index: pd.Index
    response: str
    point: np.ndarray
    dist: Distribution

    def __post_init__(self) -> None:
        point = np.asarray(self.point, dtype=float)
        if point.shape != (len(self.index),):
            raise ValueError(
                f"Forecast point has shape {point.shape}, expected ({len(self.index)},)."
            )
        object.__setattr__(self, "point", point)

    def __len__(self) -> int:
        return len(self.index)

    @property
    def sd(self) -> np.ndarray:
        return self.dist.sd

    def hilo(self, level: float = 95.0) -> Band:
        return self.dist.interval(level)

    def to_frame(self, level: Optional[float] = None) -> pd.DataFrame:
        """Tabulate the forecast; with `level`, add lower/upper interval columns."""
        out = pd.DataFrame(
            {".mean": self.point, ".sd": self.dist.sd},
            index=self.index,
        )
        if level is not None:
            band = self.hilo(level)
            out[f"{level:g}%_lower"] = band.low
            out[f"{level:g}%_upper"] = band.high
        out.attrs["response"] = self.response
        out.attrs["dist"] = self.dist.family
        return out
