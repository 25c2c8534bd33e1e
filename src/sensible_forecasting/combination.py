from __future__ import annotations

from dataclasses import dataclass, field, replace
import re
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .batch import ModelList, transpose
from .distributions import Forecast
from .errors import InvalidCombinationError, MultivariateCombinationError
from .expr import BinaryOp, Expr, evaluate, render, slots
from .model import ModelSpec, TrainedModel, estimate, response_values
from .ops import SUPPORTED_OPERATORS, apply_operator
from .operands import is_model, is_spec, model_mask, require_model_like

__all__ = [
    "CombinationSpec",
    "ModelCombination",
    "combination_model",
    "new_model_combination",
    "train_combination",
]

CombinationFn = Union[str, Callable[..., Any]]


# ---------------------------------------------------------------------------
# Deferred (specification-level) combinations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False, repr=False)
class CombinationSpec(ModelSpec):
    """A combination of specifications whose estimation is deferred.

    `combination_fn` is either an operator symbol ('+', '-', '*', '/') or a
    callable receiving the estimated operands plus `combination_args`.
    """

    operands: Tuple[Any, ...]
    combination_fn: CombinationFn
    combination_args: Mapping[str, Any] = field(default_factory=dict)

    family = "COMBINATION"

    @property
    def response(self) -> Any:
        for op in self.operands:
            if is_spec(op) or is_model(op):
                return op.response
        raise InvalidCombinationError("No valid model in combination.")

    def __repr__(self) -> str:
        fn = self.combination_fn
        label = fn if isinstance(fn, str) else getattr(fn, "__name__", repr(fn))
        return f"<COMBINATION spec {label}: {', '.join(repr(o) for o in self.operands)}>"

    def fit(self, data: pd.DataFrame) -> Any:
        return train_combination(
            data,
            self.operands,
            combination_fn=self.combination_fn,
            combination_args=self.combination_args,
        )


def combination_model(
    *operands: Any,
    combination_fn: Optional[CombinationFn] = None,
    combination_args: Optional[Mapping[str, Any]] = None,
) -> CombinationSpec:
    """Combine model specifications into a deferred combination.

    The default `combination_fn` is `combination_ensemble`, so
    ``combination_model(a, b)`` is the equally weighted mean of `a` and `b`.
    Pass ``combination_args={"weights": "inv_var"}`` for inverse-variance
    weights, or an operator symbol to combine two operands arithmetically.
    """
    if not any(is_spec(op) for op in operands):
        raise InvalidCombinationError(
            "combination_model() must contain at least one valid model specification."
        )
    model_mask(operands)  # type-check every operand
    if combination_fn is None:
        from .ensemble import combination_ensemble

        combination_fn = combination_ensemble
    if isinstance(combination_fn, str):
        if combination_fn not in SUPPORTED_OPERATORS:
            raise ValueError(
                f"Unknown combination operator {combination_fn!r}; "
                f"expected one of {tuple(SUPPORTED_OPERATORS)}."
            )
        if len(operands) != 2:
            raise ValueError("Operator combinations take exactly two operands.")
    elif not callable(combination_fn):
        raise TypeError("combination_fn must be an operator symbol or a callable.")
    return CombinationSpec(
        operands=tuple(operands),
        combination_fn=combination_fn,
        combination_args=dict(combination_args or {}),
    )


def train_combination(
    data: pd.DataFrame,
    operands: Sequence[Any],
    *,
    combination_fn: CombinationFn,
    combination_args: Optional[Mapping[str, Any]] = None,
) -> Any:
    """Estimate every specification operand, then combine.

    Already-trained operands and numbers pass through unchanged. If any
    estimated operand is a ModelList, operands are transposed into per-series
    tuples, each tuple is combined independently and the first operand's
    per-series response name is re-attached.
    """
    args = dict(combination_args or {})
    estimated = [estimate(data, op) if is_spec(op) else op for op in operands]

    if isinstance(combination_fn, str):
        symbol = combination_fn

        def fn(*xs: Any, **_: Any) -> Any:
            return apply_operator(symbol, *xs)

    else:
        fn = combination_fn

    if not any(isinstance(x, ModelList) for x in estimated):
        return fn(*estimated, **args)

    rows, keys = transpose(estimated)
    out = []
    for row in rows:
        combined = fn(*row, **args)
        first = next((x for x in row if is_model(x)), None)
        if isinstance(combined, ModelCombination) and first is not None:
            combined = combined.with_response(first.response)
        out.append(combined)
    return ModelList(models=tuple(out), keys=keys)


# ---------------------------------------------------------------------------
# Trained combinations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False, repr=False)
class ModelCombination(TrainedModel):
    """A trained composite model.

    `operands` holds trained models and numbers; `combination` is the captured
    expression over their positions. Operands are never mutated, so the same
    trained model can sit inside several combinations.
    """

    operands: Tuple[Any, ...]
    response: str
    data: pd.DataFrame
    model_family: str
    combination: Expr = field(repr=False, compare=False, default=None)

    dist = "identity"
    family = "COMBINATION"
    transformation = "identity"

    def __post_init__(self) -> None:
        if self.combination is None:
            raise ValueError("ModelCombination needs a captured combination expression.")
        used = slots(self.combination)
        if used != frozenset(range(len(self.operands))):
            raise ValueError(
                f"Combination references operands {sorted(used)} but "
                f"{len(self.operands)} operands are stored."
            )

    @property
    def is_model_mask(self) -> Tuple[bool, ...]:
        return model_mask(self.operands)

    def fitted(self) -> pd.Series:
        from .evaluate import fitted_combination

        return fitted_combination(self)

    def forecast(
        self, new_data: Optional[pd.DataFrame] = None, h: Optional[int] = None
    ) -> Forecast:
        from .evaluate import forecast_combination

        return forecast_combination(self, new_data=new_data, h=h)

    def with_response(self, response: str) -> "ModelCombination":
        """Copy with the response identifier (and data column) renamed."""
        if response == self.response:
            return self
        return replace(
            self,
            response=response,
            data=self.data.rename(columns={self.response: response}),
        )

    def summary(self) -> str:
        names = [
            op.model_sum() if is_model(op) else f"{op:g}" for op in self.operands
        ]
        lines = [
            f"Model: {self.model_sum()}",
            f"  response: {self.response}",
            f"  combination: {render(self.combination, names)}",
        ]
        for i, op in enumerate(self.operands):
            label = repr(op) if is_model(op) else f"{op:g}"
            lines.append(f"  [{i}] {label}")
        return "\n".join(lines)


def _response_text(x: Any) -> List[str]:
    if is_model(x):
        r = x.response
        return [r] if isinstance(r, str) else [str(v) for v in r]
    return [f"{float(x):g}"]


_NAME_TOKENS = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*|[+*/-]")


def _simplify_response(
    x: Sequence[Any], mask: Sequence[bool], combination: Expr
) -> Optional[str]:
    """Collapse e.g. '(y + y) * 0.5' back to 'y'.

    Only applies to a single model scaled by 1/k where the model's own
    response is a sum of k copies of one identifier.
    """
    if all(mask) or not isinstance(combination, BinaryOp) or combination.op != "*":
        return None
    if sum(mask) != 1:
        return None
    num = x[mask.index(False)]
    if num == 0:
        return None
    k = 1.0 / float(num)
    if not np.isclose(k, round(k)) or round(k) < 1:
        return None
    tokens = _NAME_TOKENS.findall(str(x[mask.index(True)].response))
    if len(set(tokens)) == 2 and tokens.count("+") + 1 == round(k):
        names = [t for t in tokens if t != "+"]
        if names:
            return names[0]
    return None


def new_model_combination(x: Sequence[Any], combination: Expr) -> ModelCombination:
    """Build a ModelCombination from trained operands and a captured expression."""
    x = tuple(x)
    mask = require_model_like(x, "combination")
    if not all(is_model(op) for op, m in zip(x, mask) if m):
        raise TypeError("Only trained models and numbers can be combined directly.")

    responses = [_response_text(op) for op in x]
    if any(len(r) > 1 for r in responses):
        raise MultivariateCombinationError(
            "Combining multivariate models is not yet supported "
            f"(responses: {[r for r in responses if len(r) > 1]})."
        )
    response = _simplify_response(x, list(mask), combination)
    if response is None:
        response = render(combination, [r[0] for r in responses])

    first = x[mask.index(True)]
    values = evaluate(
        combination,
        [response_values(op.data, op.response) if m else op for op, m in zip(x, mask)],
    )
    values = pd.Series(values).reindex(first.data.index).astype(float)
    data = pd.DataFrame({response: values.to_numpy()}, index=first.data.index)

    return ModelCombination(
        operands=x,
        response=response,
        data=data,
        model_family=first.model_family if isinstance(first, ModelCombination) else first.family,
        combination=combination,
    )
