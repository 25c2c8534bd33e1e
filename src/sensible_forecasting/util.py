from __future__ import annotations

import inspect
from typing import Any, Callable, Optional, Tuple, Type

import numpy as np
import pandas as pd
from scipy.stats import norm
from warnings import warn


def level_to_conf_int(level: float) -> Tuple[float, float]:
    """Central interval probabilities for a percentage level (95 -> 2.5%, 97.5%)."""
    level = float(level)
    if not 0.0 < level < 100.0:
        raise ValueError(f"level must be a percentage in (0, 100), got {level!r}.")
    tail = 0.5 * (1.0 - level / 100.0)
    return (tail, 1.0 - tail)


def normal_quantile(p: float, mean: np.ndarray, sd: np.ndarray) -> np.ndarray:
    """Normal quantiles that collapse to the mean where sd == 0."""
    mean = np.asarray(mean, dtype=float)
    sd = np.asarray(sd, dtype=float)
    z = float(norm.ppf(p))
    return mean + z * sd


def infer_param_names(func: Callable[..., Any]) -> Tuple[str, ...]:
    """Infer curve parameter names from a function signature.

    Conventions:
    - first arg is the time position t
    - remaining positional/keyword parameters are estimated
    - no *args/**kwargs
    """
    sig = inspect.signature(func)
    params = list(sig.parameters.values())

    if len(params) < 2:
        raise TypeError("Trend function must have at least (t, p1, ...).")

    bad_kinds = {inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD}
    for p in params:
        if p.kind in bad_kinds:
            raise TypeError("*args/**kwargs are not supported in trend functions.")

    names = [p.name for p in params[1:]]
    if len(set(names)) != len(names):
        raise TypeError("Duplicate parameter names in function signature.")
    return tuple(names)


def is_scalar(x: Any) -> bool:
    """True for real numbers (python or numpy), excluding bools."""
    if isinstance(x, (bool, np.bool_)):
        return False
    if isinstance(x, np.ndarray):
        return x.shape == () and np.issubdtype(x.dtype, np.number)
    return isinstance(x, (int, float, np.number))


def is_vector(x: Any) -> bool:
    """True for list/tuple/1-d array inputs (candidates for recycling)."""
    if isinstance(x, np.ndarray):
        return x.ndim >= 1
    return isinstance(x, (list, tuple))


def safe_float(x: Any) -> float:
    """Convert numpy scalar / 0-d array to python float."""
    if isinstance(x, np.ndarray) and x.shape == ():
        return float(x.item())
    return float(x)


def warn_or_raise(
    strict: bool, message: str, category: Type[Warning] = UserWarning
) -> None:
    """Warn or raise based on strict mode."""
    if strict:
        raise ValueError(message)
    warn(message, category, stacklevel=3)


def residual_sigma(resid: Any, n_params: int = 0) -> float:
    """Residual standard error sqrt(sum(e^2) / (n - k)), ignoring missing values."""
    e = np.asarray(resid, dtype=float)
    e = e[np.isfinite(e)]
    dof = e.size - int(n_params)
    if dof <= 0:
        return float("nan")
    return float(np.sqrt(np.sum(e**2) / dof))


def cov2cor(cov: np.ndarray) -> np.ndarray:
    """Scale a covariance matrix into a correlation matrix.

    Entries that come out non-finite (a zero-variance residual series) are set
    to 0.
    """
    cov = np.asarray(cov, dtype=float)
    sd = np.sqrt(np.diag(cov))
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = cov / np.outer(sd, sd)
    corr[~np.isfinite(corr)] = 0.0
    return corr


def future_index(index: pd.Index, h: int) -> pd.Index:
    """Extend a training index `h` steps into the future."""
    h = int(h)
    if h < 1:
        raise ValueError(f"Forecast horizon must be >= 1, got {h}.")
    if len(index) == 0:
        raise ValueError("Cannot extend an empty index.")

    if isinstance(index, pd.PeriodIndex):
        return pd.period_range(index[-1] + 1, periods=h, freq=index.freq)

    if isinstance(index, pd.DatetimeIndex):
        freq: Optional[Any] = index.freq
        if freq is None and len(index) >= 3:
            freq = pd.infer_freq(index)
        if freq is None:
            raise ValueError(
                "Cannot infer the frequency of the training index; pass new_data= "
                "with the future index instead."
            )
        return pd.date_range(index[-1], periods=h + 1, freq=freq)[1:]

    if pd.api.types.is_integer_dtype(index.dtype):
        last = int(index[-1])
        step = int(index[-1] - index[-2]) if len(index) > 1 else 1
        if step == 0:
            step = 1
        return pd.RangeIndex(last + step, last + step * (h + 1), step)

    raise TypeError(
        f"Unsupported index type {type(index).__name__}; use an integer, "
        "DatetimeIndex or PeriodIndex."
    )
