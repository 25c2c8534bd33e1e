"""Parametric trend curves y_t = f(t, p1, p2, ...) fitted by least squares.

`t` is the 0-based time position of each observation (so forecasts continue
at t = T, T+1, ...). Specifications are immutable builders: `.guess()`,
`.weak_guess()`, `.bound()` and `.fix()` return new specifications.

Seed precedence per free parameter:

  1) strong guess via spec.guess(...)
  2) weak guess via spec.weak_guess(...) (and numeric function defaults)
  3) midpoint of finite bounds (with a warning)
  4) else: raise ValueError
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import inspect
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.optimize import curve_fit
from warnings import warn

from ..model import ModelSpec, TrainedModel, response_values
from ..util import infer_param_names, residual_sigma


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    fixed: bool = False
    fixed_value: Optional[float] = None
    bounds: Optional[Tuple[Optional[float], Optional[float]]] = None
    # Strong guess: always used as the seed
    guess: Optional[float] = None
    # Weak guess: used only without a strong guess
    weak_guess: Optional[float] = None


@dataclass(frozen=True, eq=False, repr=False)
class TrendSpec(ModelSpec):
    response: str
    func: Callable[..., Any]
    param_names: Tuple[str, ...]
    params: Tuple[ParameterSpec, ...]
    name: str = "trend"
    maxfev: Optional[int] = None

    family = "TREND"

    # ---- constructor ----
    @staticmethod
    def from_function(
        response: str, func: Callable[..., Any], *, name: Optional[str] = None
    ) -> "TrendSpec":
        """Construct a TrendSpec from a plain function signature."""
        names = infer_param_names(func)

        # Numeric defaults in the signature become weak guesses.
        sig = inspect.signature(func)
        specs = []
        for n in names:
            p = sig.parameters[n]
            g = None
            if p.default is not inspect.Parameter.empty:
                d = p.default
                if isinstance(d, (int, float, np.number)) and not isinstance(d, bool):
                    g = float(d)
            specs.append(ParameterSpec(name=n, weak_guess=g))
        return TrendSpec(
            response=response,
            func=func,
            param_names=names,
            params=tuple(specs),
            name=name or getattr(func, "__name__", "trend"),
        )

    # ---- builders (pure; return new spec) ----
    def _update(self, **changes: Dict[str, Any]) -> "TrendSpec":
        m = {p.name: p for p in self.params}
        for k, kw in changes.items():
            if k not in m:
                raise KeyError(k)
            m[k] = replace(m[k], **kw)
        return replace(self, params=tuple(m[n] for n in self.param_names))

    def fix(self, **fixed: float) -> "TrendSpec":
        """Return a new spec with parameters fixed to values."""
        return self._update(
            **{k: {"fixed": True, "fixed_value": float(v)} for k, v in fixed.items()}
        )

    def bound(self, **bounds: Tuple[Optional[float], Optional[float]]) -> "TrendSpec":
        """Return a new spec with parameter bounds applied."""
        return self._update(**{k: {"bounds": (b[0], b[1])} for k, b in bounds.items()})

    def guess(self, **guesses: float) -> "TrendSpec":
        """Return a new spec with strong parameter guesses."""
        return self._update(**{k: {"guess": float(g)} for k, g in guesses.items()})

    def weak_guess(self, **guesses: float) -> "TrendSpec":
        """Return a new spec with weak (low-precedence) guesses."""
        return self._update(**{k: {"weak_guess": float(g)} for k, g in guesses.items()})

    def eval(self, t: Any, **values: float) -> np.ndarray:
        """Evaluate the curve at positions `t`."""
        missing = [n for n in self.param_names if n not in values]
        if missing:
            raise TypeError(f"Missing parameter values for: {missing}")
        return np.asarray(self.func(t, *[values[n] for n in self.param_names]), dtype=float)

    # ---- estimation ----
    def fit(self, data: pd.DataFrame) -> "TrendModel":
        y = response_values(data, self.response)
        t = np.arange(len(y), dtype=float)
        ok = np.isfinite(y.to_numpy())

        free = [p.name for p in self.params if not p.fixed]
        fixed_map = {p.name: float(p.fixed_value) for p in self.params if p.fixed}
        if ok.sum() <= len(free):
            raise ValueError(
                f"Need more than {len(free)} observations of {self.response!r} to fit {self.name}."
            )

        values = dict(fixed_map)
        cov = None
        success = True
        message = "ok"
        if free:
            p0 = _seed(self, free)
            lo, hi = _bounds_for_free(self, free)

            def f_wrapped(ti, *theta_free):
                kw = dict(fixed_map)
                kw.update(zip(free, (float(v) for v in theta_free)))
                return self.eval(ti, **kw)

            kwargs: Dict[str, Any] = {}
            if self.maxfev is not None:
                kwargs["maxfev"] = int(self.maxfev)
            try:
                popt, pcov = curve_fit(
                    f_wrapped,
                    t[ok],
                    y.to_numpy()[ok],
                    p0=p0,
                    bounds=(lo, hi),
                    **kwargs,
                )
                theta = np.asarray(popt, dtype=float)
                cov = None if pcov is None else np.asarray(pcov, dtype=float)
            except (RuntimeError, ValueError) as e:
                # Soft fail: keep the seed point.
                theta = p0
                success = False
                message = str(e)
                warn(f"Trend fit for {self.response!r} failed: {e}", UserWarning)
            values.update(zip(free, (float(v) for v in theta)))

        fits = self.eval(t, **values)
        return TrendModel(
            response=self.response,
            data=data[[self.response]].copy(),
            spec=self,
            values=values,
            cov=cov,
            sigma=residual_sigma(y.to_numpy() - fits, n_params=len(free)),
            success=success,
            message=message,
        )


@dataclass(frozen=True, eq=False, repr=False)
class TrendModel(TrainedModel):
    response: str
    data: pd.DataFrame
    spec: TrendSpec
    values: Dict[str, float]
    cov: Optional[np.ndarray]
    sigma: float
    success: bool = True
    message: str = ""
    # free-parameter order of `cov`
    free_names: Tuple[str, ...] = field(init=False, default=())

    family = "TREND"

    def __post_init__(self) -> None:
        free = tuple(p.name for p in self.spec.params if not p.fixed)
        object.__setattr__(self, "free_names", free)

    @property
    def stderr(self) -> Dict[str, Optional[float]]:
        """Standard errors of the curve parameters (None for fixed ones)."""
        out: Dict[str, Optional[float]] = {n: None for n in self.spec.param_names}
        if self.cov is not None:
            perr = np.sqrt(np.clip(np.diag(self.cov), 0.0, np.inf))
            out.update(zip(self.free_names, (float(e) for e in perr)))
        return out

    def fitted(self) -> pd.Series:
        t = np.arange(len(self.data), dtype=float)
        return pd.Series(self.spec.eval(t, **self.values), index=self.data.index, name=".fitted")

    def _forecast(self, h: int) -> Tuple[np.ndarray, np.ndarray]:
        t = len(self.data) + np.arange(h, dtype=float)
        point = np.broadcast_to(self.spec.eval(t, **self.values), (h,)).copy()
        return point, np.full(h, self.sigma)


def _bounds_for_free(spec: TrendSpec, free: List[str]) -> Tuple[np.ndarray, np.ndarray]:
    """Return (lo, hi) arrays of bounds for free parameters."""
    pmap = {p.name: p for p in spec.params}
    lo: List[float] = []
    hi: List[float] = []
    for n in free:
        b = pmap[n].bounds
        if b is None:
            lo.append(-np.inf)
            hi.append(np.inf)
        else:
            lo.append(-np.inf if b[0] is None else float(b[0]))
            hi.append(np.inf if b[1] is None else float(b[1]))
    return (np.array(lo, dtype=float), np.array(hi, dtype=float))


def _seed(spec: TrendSpec, free: List[str]) -> np.ndarray:
    """Initial values for the free parameters, clipped into their bounds."""
    pmap = {p.name: p for p in spec.params}
    seeds: Dict[str, float] = {}
    filled_from_bounds: List[str] = []

    for n in free:
        p = pmap[n]
        if p.guess is not None:
            seeds[n] = float(p.guess)
        elif p.weak_guess is not None:
            seeds[n] = float(p.weak_guess)
        elif p.bounds is not None:
            lo, hi = p.bounds
            if lo is not None and hi is not None and np.isfinite(lo) and np.isfinite(hi):
                seeds[n] = float(0.5 * (float(lo) + float(hi)))
                filled_from_bounds.append(n)

    if filled_from_bounds:
        warn(
            "Using mid-point of bounds as seed for parameters: "
            + ", ".join(filled_from_bounds),
            UserWarning,
        )

    missing = [n for n in free if n not in seeds]
    if missing:
        raise ValueError(
            "Could not determine initial seeds for parameters: "
            + ", ".join(missing)
            + ". Provide spec.guess(...), function defaults, or finite bounds."
        )

    lo, hi = _bounds_for_free(spec, free)
    p0 = np.array([seeds[n] for n in free], dtype=float)
    return np.clip(p0, lo, hi)


def linear_trend_func(t, intercept=0.0, slope=0.0):
    """Module-level straight line y = intercept + slope * t."""
    return intercept + slope * t


def trend(
    response: str, func: Callable[..., Any], *, name: Optional[str] = None
) -> TrendSpec:
    """Return a TrendSpec for `func(t, p1, ...)`.

    Use a module-level function if the fitted model needs to be pickled.
    """
    return TrendSpec.from_function(response, func, name=name)


def linear_trend(response: str) -> TrendSpec:
    """Return a straight-line trend specification."""
    return TrendSpec.from_function(response, linear_trend_func, name="linear trend")
