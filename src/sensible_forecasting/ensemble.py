from __future__ import annotations

from functools import reduce
import operator
from typing import Any, List, Literal, Sequence

import numpy as np

from .batch import ModelList, as_items, transpose
from .combination import ModelCombination, combination_model
from .errors import DegenerateWeightWarning, InvalidCombinationError
from .operands import is_model, is_spec
from .util import warn_or_raise

__all__ = ["combination_ensemble", "inverse_variance_weights"]

WEIGHTS = ("equal", "inv_var")


def inverse_variance_weights(
    models: Sequence[Any], *, tol: float = 1e-12, strict: bool = False
) -> np.ndarray:
    """Normalised 1/var(residuals) weights.

    A residual variance <= tol (or non-finite) would dominate or break the
    weights; such ensembles warn with DegenerateWeightWarning and fall back
    to equal weights (strict=True raises ValueError instead).
    """
    variances = []
    for m in models:
        e = np.asarray(m.residuals(type="response"), dtype=float)
        e = e[np.isfinite(e)]
        variances.append(float(np.var(e, ddof=1)) if e.size > 1 else float("nan"))
    variances = np.asarray(variances, dtype=float)

    bad = ~np.isfinite(variances) | (variances <= tol)
    if np.any(bad):
        names = ", ".join(repr(models[i]) for i in np.flatnonzero(bad))
        warn_or_raise(
            strict,
            f"Residual variance is zero or undefined for {names}; "
            "using equal weights instead of inverse-variance weights.",
            DegenerateWeightWarning,
        )
        return np.full(len(models), 1.0 / len(models))

    inv_var = 1.0 / variances
    return inv_var / np.sum(inv_var)


def _weighted_sum(models: Sequence[Any], weights: np.ndarray) -> Any:
    return reduce(operator.add, [float(w) * m for w, m in zip(weights, models)])


def combination_ensemble(
    *models: Any,
    weights: Literal["equal", "inv_var"] = "equal",
    tol: float = 1e-12,
    strict: bool = False,
) -> Any:
    """Ensemble combination of estimated models.

    weights="equal"   -> (m1 + m2 + ... + mk) / k
    weights="inv_var" -> sum_i w_i * m_i with w_i proportional to 1/var(resid_i)

    Batches (ModelList operands) are combined series by series. If any operand
    is still a specification, the ensemble is deferred by returning a
    combination specification instead.
    """
    if not models:
        raise InvalidCombinationError("combination_ensemble() needs at least one model.")
    if weights not in WEIGHTS:
        raise ValueError(f"weights must be one of {WEIGHTS}, got {weights!r}.")

    if any(is_spec(m) for m in models):
        return combination_model(
            *models,
            combination_args={"weights": weights, "tol": tol, "strict": strict},
        )
    for i, m in enumerate(models):
        if not (is_model(m) or isinstance(m, ModelList)):
            raise InvalidCombinationError(
                f"combination_ensemble() operand {i} is not a model ({type(m).__name__})."
            )

    batch = any(isinstance(m, ModelList) for m in models)

    if weights == "equal":
        out = reduce(operator.add, models) / len(models)
    else:
        rows, keys = transpose(models) if batch else ([tuple(models)], None)
        combined: List[Any] = [
            _weighted_sum(row, inverse_variance_weights(row, tol=tol, strict=strict))
            for row in rows
        ]
        out = ModelList(models=tuple(combined), keys=keys) if batch else combined[0]

    if isinstance(out, ModelCombination):
        return out.with_response(models[0].response)
    if isinstance(out, ModelList):
        first = as_items(models[0])
        renamed = [
            m.with_response(first[i % len(first)].response)
            if isinstance(m, ModelCombination)
            else m
            for i, m in enumerate(out.models)
        ]
        return ModelList(models=tuple(renamed), keys=out.keys)
    return out
