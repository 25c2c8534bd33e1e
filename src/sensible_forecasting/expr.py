"""Captured combination expressions.

A combination never stores a closure: it stores a small tree over operand
slots (``Leaf(0)`` is the first operand, ``Leaf(1)`` the second, ...) so the
same structure can be walked over response columns, fitted values, point
forecasts or ``uncertainties`` variables.

Only ``+`` and ``*`` appear in captured trees; subtraction and division are
normalised away before capture (see ``ops.py``).
"""

from __future__ import annotations

from dataclasses import dataclass
import operator
from typing import Any, Callable, Dict, FrozenSet, Sequence, Union

__all__ = ["Leaf", "BinaryOp", "UnaryNeg", "Expr", "evaluate", "render", "slots"]

_OPS: Dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "*": operator.mul,
}


@dataclass(frozen=True)
class Leaf:
    index: int


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Expr"
    right: "Expr"

    def __post_init__(self) -> None:
        if self.op not in _OPS:
            raise ValueError(
                f"Captured expressions only hold '+' or '*', got {self.op!r}."
            )


@dataclass(frozen=True)
class UnaryNeg:
    child: "Expr"


Expr = Union[Leaf, BinaryOp, UnaryNeg]


def evaluate(expr: Expr, values: Sequence[Any]) -> Any:
    """Evaluate `expr` with `Leaf(i)` bound to `values[i]`.

    Values only need to support ``+``, ``*`` and unary ``-``; numpy arrays,
    pandas Series and ``uncertainties`` variables all work.
    """
    if isinstance(expr, Leaf):
        return values[expr.index]
    if isinstance(expr, UnaryNeg):
        return -evaluate(expr.child, values)
    if isinstance(expr, BinaryOp):
        return _OPS[expr.op](evaluate(expr.left, values), evaluate(expr.right, values))
    raise TypeError(f"Not a captured expression: {expr!r}")


def slots(expr: Expr) -> FrozenSet[int]:
    """Return the operand indices referenced by `expr`."""
    if isinstance(expr, Leaf):
        return frozenset((expr.index,))
    if isinstance(expr, UnaryNeg):
        return slots(expr.child)
    return slots(expr.left) | slots(expr.right)


def render(expr: Expr, names: Sequence[str]) -> str:
    """Render `expr` as text, substituting `names[i]` for `Leaf(i)`."""
    if isinstance(expr, Leaf):
        return names[expr.index]
    if isinstance(expr, UnaryNeg):
        return "-" + _wrap(render(expr.child, names))
    left = render(expr.left, names)
    right = render(expr.right, names)
    if expr.op == "*":
        return f"{_wrap(left)} * {_wrap(right)}"
    return f"{left} + {right}"


def _wrap(text: str) -> str:
    if " " in text or text.startswith("-"):
        return f"({text})"
    return text
