"""Evaluation of captured combinations over forecasts and fitted values.

Forecast variance propagation
-----------------------------
When every operand is a model, the covariance of their historical residuals
is estimated once and turned into a correlation matrix. That correlation is
held fixed across the horizon and rescaled at each step with the operands'
own forecast standard deviations::

    cov_h = sd1_h * sd2_h * corr

Each step is then evaluated through the captured expression with correlated
``uncertainties`` variables, which gives exactly

    var(aX + bY) = a^2 var(X) + b^2 var(Y) + 2ab cov_h(X, Y)

for the '+'/'*'/negation structure captured in ``expr.py``. Operands that are
numbers contribute no variance. If any model's forecast is not normal the
spread is not propagated and a point-mass distribution is returned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional, Sequence

import numpy as np
import pandas as pd
from uncertainties import correlated_values, ufloat

from .distributions import Degenerate, Forecast, Normal, is_dist_normal
from .expr import Expr, evaluate
from .util import cov2cor

if TYPE_CHECKING:  # pragma: no cover
    from .combination import ModelCombination

__all__ = ["forecast_combination", "fitted_combination", "residual_covariance"]


def residual_covariance(models: Sequence[Any]) -> np.ndarray:
    """Covariance of response residuals, pairwise over non-missing values."""
    resid = pd.concat(
        [m.residuals(type="response").rename(i) for i, m in enumerate(models)],
        axis=1,
    )
    return resid.cov().to_numpy(dtype=float)


def fitted_combination(comb: "ModelCombination") -> pd.Series:
    """Evaluate the combination over the operands' fitted values."""
    mask = comb.is_model_mask
    values = [op.fitted() if m else op for op, m in zip(comb.operands, mask)]
    out = evaluate(comb.combination, values)
    return pd.Series(out).reindex(comb.data.index).astype(float).rename(".fitted")


def forecast_combination(
    comb: "ModelCombination",
    new_data: Optional[pd.DataFrame] = None,
    h: Optional[int] = None,
) -> Forecast:
    """Forecast every model operand and combine point forecasts and spread."""
    mask = comb.is_model_mask
    expr = comb.combination

    corr = None
    if all(mask) and len(mask) >= 2:
        corr = np.clip(cov2cor(residual_covariance(comb.operands)), -1.0, 1.0)

    fcs = [
        op.forecast(new_data=new_data, h=h) if m else op
        for op, m in zip(comb.operands, mask)
    ]
    model_fcs: List[Forecast] = [fc for fc, m in zip(fcs, mask) if m]
    first = model_fcs[0]
    for fc in model_fcs[1:]:
        if len(fc) != len(first):
            raise ValueError(
                f"Operand forecasts disagree on horizon length ({len(first)} vs {len(fc)})."
            )

    point = evaluate(expr, [fc.point if m else fc for fc, m in zip(fcs, mask)])
    point = np.broadcast_to(np.asarray(point, dtype=float), (len(first),)).copy()

    if all(is_dist_normal(fc.dist) for fc in model_fcs):
        sd = _propagate_sd(expr, fcs, mask, corr)
        dist = Normal(mean=point, sd=sd)
    else:
        dist = Degenerate(value=point)

    return Forecast(index=first.index, response=comb.response, point=point, dist=dist)


def _propagate_sd(
    expr: Expr,
    fcs: Sequence[Any],
    mask: Sequence[bool],
    corr: Optional[np.ndarray],
) -> np.ndarray:
    idx = [i for i, m in enumerate(mask) if m]
    horizon = len(fcs[idx[0]])
    sd = np.empty(horizon, dtype=float)

    for t in range(horizon):
        means = [float(fcs[i].dist.mean[t]) for i in idx]
        sds = np.array([float(fcs[i].dist.sd[t]) for i in idx])
        if not np.all(np.isfinite(sds)):
            sd[t] = np.nan
            continue
        if corr is not None:
            cov_t = np.outer(sds, sds) * corr
            np.fill_diagonal(cov_t, sds**2)
            variables = correlated_values(means, cov_t)
        else:
            variables = [ufloat(m, s) for m, s in zip(means, sds)]

        values = list(fcs)
        for j, i in enumerate(idx):
            values[i] = variables[j]
        out = evaluate(expr, values)
        sd[t] = float(getattr(out, "std_dev", 0.0))

    return sd
