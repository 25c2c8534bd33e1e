from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from .distributions import Forecast
from .ops import Combinable, apply_operator
from .operands import recycle
from .util import is_vector, safe_float

__all__ = ["ModelList", "align_keys", "map_binary", "as_items", "transpose"]


@dataclass(frozen=True, eq=False)
class ModelList(Combinable):
    """Per-series trained models from a batch fit.

    Arithmetic maps elementwise over the series, recycling the shorter side.
    """

    models: Tuple[Any, ...]
    keys: Optional[Tuple[Any, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "models", tuple(self.models))
        if not self.models:
            raise ValueError("ModelList needs at least one model.")
        if self.keys is not None:
            keys = tuple(self.keys)
            if len(keys) != len(self.models):
                raise ValueError(
                    f"ModelList has {len(self.models)} models but {len(keys)} keys."
                )
            object.__setattr__(self, "keys", keys)

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.models)

    def __getitem__(self, i: int) -> Any:
        return self.models[i]

    def __repr__(self) -> str:
        return f"<lst_mdl[{len(self)}]: {', '.join(repr(m) for m in self.models)}>"

    @property
    def response(self) -> Any:
        return self.models[0].response

    def get(self, key: Any) -> Any:
        """Return the model fitted for series `key`."""
        if self.keys is None:
            raise KeyError("This ModelList has no series keys.")
        try:
            return self.models[self.keys.index(key)]
        except ValueError as e:
            raise KeyError(key) from e

    def fitted(self) -> List[pd.Series]:
        return [m.fitted() for m in self.models]

    def residuals(self, type: str = "response") -> List[pd.Series]:
        return [m.residuals(type=type) for m in self.models]

    def forecast(
        self, new_data: Optional[pd.DataFrame] = None, h: Optional[int] = None
    ) -> List[Forecast]:
        return [m.forecast(new_data=new_data, h=h) for m in self.models]

    def _combine(self, op: str, e1: Any, e2: Any) -> "ModelList":
        return map_binary(op, e1, e2)


def as_items(x: Any) -> List[Any]:
    """View an operand as a list of per-series items."""
    if isinstance(x, ModelList):
        return list(x.models)
    if is_vector(x):
        return [safe_float(v) for v in list(x)]
    return [x]


def _keys_for(n: int, *operands: Any) -> Optional[Tuple[Any, ...]]:
    for x in operands:
        if isinstance(x, ModelList) and x.keys is not None and len(x) == n:
            return x.keys
    return None


def align_keys(operands: Sequence[Any]) -> List[Any]:
    """Reorder keyed ModelLists to the key order of the first keyed one.

    Raises ValueError when keyed lists do not carry the same series keys.
    Unkeyed lists and other operands pass through and pair by position.
    """
    ref = next(
        (x.keys for x in operands if isinstance(x, ModelList) and x.keys is not None),
        None,
    )
    out = list(operands)
    if ref is None:
        return out
    for i, x in enumerate(out):
        if not isinstance(x, ModelList) or x.keys is None or x.keys == ref:
            continue
        if len(set(ref)) != len(ref) or set(x.keys) != set(ref) or len(x.keys) != len(ref):
            raise ValueError(
                f"Cannot combine model lists with different series keys: {ref} vs {x.keys}."
            )
        out[i] = ModelList(models=tuple(x.get(k) for k in ref), keys=ref)
    return out


def map_binary(op: str, e1: Any, e2: Any) -> ModelList:
    """Apply `op` elementwise over recycled operands, matching series keys."""
    e1, e2 = align_keys((e1, e2))
    left, right = recycle(as_items(e1), as_items(e2))
    out = [apply_operator(op, a, b) for a, b in zip(left, right)]
    return ModelList(models=tuple(out), keys=_keys_for(len(out), e1, e2))


def transpose(operands: Sequence[Any]) -> Tuple[List[Tuple[Any, ...]], Optional[Tuple[Any, ...]]]:
    """Turn per-operand lists into per-series tuples (recycling as needed)."""
    operands = align_keys(operands)
    columns = [as_items(x) for x in operands]
    n = max(len(c) for c in columns)
    for i, c in enumerate(columns):
        if len(c) != n:
            _, columns[i] = recycle(range(n), c)
    return list(zip(*columns)), _keys_for(n, *operands)
