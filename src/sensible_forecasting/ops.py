"""Arithmetic on model-like values.

Specifications, trained models and model lists all share the ``Combinable``
mixin. The mixin only validates operands and hands ``(op, e1, e2)`` to the
concrete class's ``_combine``; trained models then normalise the operation
with ``normalize_binary`` before capturing it.

Normalisation rules:
- unary ``+x`` / ``-x``   -> ``1 * x`` / ``-1 * x``
- ``a - b``               -> ``a + (-b)`` (scalar b is negated in place)
- ``a / c``               -> ``a * (1 / c)``
"""

from __future__ import annotations

import operator
from typing import Any, Callable, Dict, Optional, Tuple
from warnings import warn

import numpy as np

from .errors import UnsupportedOperationError, UnsupportedOperatorWarning
from .expr import BinaryOp, Expr, Leaf, UnaryNeg
from .operands import is_model_like
from .util import is_scalar, is_vector, safe_float

__all__ = ["Combinable", "SUPPORTED_OPERATORS", "apply_operator", "normalize_binary"]

SUPPORTED_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}


def apply_operator(op: str, e1: Any, e2: Any) -> Any:
    """Apply one of `+ - * /` through Python's numeric protocol."""
    return SUPPORTED_OPERATORS[op](e1, e2)


def check_operands(op: str, e1: Any, e2: Any) -> None:
    """Reject arithmetic that has no meaning for models."""
    if op == "/" and is_model_like(e2):
        raise UnsupportedOperationError(
            f"Cannot divide by a model (right operand is {type(e2).__name__})."
        )
    if op == "*" and is_model_like(e1) and is_model_like(e2):
        raise UnsupportedOperationError(
            "Multiplying two models is not supported "
            f"({type(e1).__name__} * {type(e2).__name__})."
        )


def normalize_binary(op: str, e1: Any, e2: Any) -> Tuple[Tuple[Any, Any], Expr]:
    """Rewrite `e1 op e2` to an operand pair and a '+'/'*' expression.

    Operands are assumed already checked by `check_operands`.
    """
    e1 = e1 if is_model_like(e1) else safe_float(e1)
    e2 = e2 if is_model_like(e2) else safe_float(e2)
    left, right = Leaf(0), Leaf(1)

    if op == "+":
        return (e1, e2), BinaryOp("+", left, right)
    if op == "-":
        if is_model_like(e2):
            return (e1, e2), BinaryOp("+", left, UnaryNeg(right))
        return (e1, -e2), BinaryOp("+", left, right)
    if op == "*":
        return (e1, e2), BinaryOp("*", left, right)
    # "/"
    if e2 == 0.0:
        raise ZeroDivisionError("Cannot divide a model by zero.")
    return (e1, 1.0 / e2), BinaryOp("*", left, right)


def _length(x: Any) -> int:
    if x is None:
        return 0
    if is_vector(x) or hasattr(x, "models"):
        return len(x)
    return 1


def unsupported_operator(name: str, e1: Any, e2: Optional[Any] = None) -> np.ndarray:
    """Warn and return an all-missing result for operators outside + - * /."""
    warn(
        f"`{name}` not meaningful for models",
        UnsupportedOperatorWarning,
        stacklevel=3,
    )
    return np.full(max(_length(e1), _length(e2)), np.nan)


class Combinable:
    """Operator overloading shared by specifications, models and model lists."""

    # Make numpy scalars/arrays on the left defer to our reflected operators.
    __array_ufunc__ = None

    def _combine(self, op: str, e1: Any, e2: Any) -> Any:
        raise NotImplementedError

    def _binary(self, op: str, other: Any, reflected: bool) -> Any:
        if not (is_model_like(other) or is_scalar(other) or is_vector(other)):
            return NotImplemented
        e1, e2 = (other, self) if reflected else (self, other)
        check_operands(op, e1, e2)
        return self._combine(op, e1, e2)

    def __add__(self, other):
        return self._binary("+", other, False)

    def __radd__(self, other):
        return self._binary("+", other, True)

    def __sub__(self, other):
        return self._binary("-", other, False)

    def __rsub__(self, other):
        return self._binary("-", other, True)

    def __mul__(self, other):
        return self._binary("*", other, False)

    def __rmul__(self, other):
        return self._binary("*", other, True)

    def __truediv__(self, other):
        return self._binary("/", other, False)

    def __rtruediv__(self, other):
        return self._binary("/", other, True)

    def __neg__(self):
        return self._combine("*", -1.0, self)

    def __pos__(self):
        return self._combine("*", 1.0, self)

    # ---- operators without a meaning for models ----
    def __pow__(self, other):
        return unsupported_operator("**", self, other)

    def __rpow__(self, other):
        return unsupported_operator("**", other, self)

    def __floordiv__(self, other):
        return unsupported_operator("//", self, other)

    def __rfloordiv__(self, other):
        return unsupported_operator("//", other, self)

    def __mod__(self, other):
        return unsupported_operator("%", self, other)

    def __rmod__(self, other):
        return unsupported_operator("%", other, self)

    def __abs__(self):
        return unsupported_operator("abs", self)
