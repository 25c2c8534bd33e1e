"""Classification of the heterogeneous operands of a combination."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Sequence, Tuple
from warnings import warn

from .errors import InvalidCombinationError, RecyclingLengthWarning
from .util import is_scalar

__all__ = [
    "OperandKind",
    "classify",
    "is_model",
    "is_spec",
    "is_model_like",
    "model_mask",
    "require_model_like",
    "recycle",
]


class OperandKind(Enum):
    SPEC = "spec"
    MODEL = "model"
    SCALAR = "scalar"


def is_spec(x: Any) -> bool:
    """True for untrained model specifications (including combination specs)."""
    from .model import ModelSpec

    return isinstance(x, ModelSpec)


def is_model(x: Any) -> bool:
    """True for trained models (including model combinations)."""
    from .model import TrainedModel

    return isinstance(x, TrainedModel)


def is_model_list(x: Any) -> bool:
    from .batch import ModelList

    return isinstance(x, ModelList)


def is_model_like(x: Any) -> bool:
    return is_spec(x) or is_model(x) or is_model_list(x)


def classify(args: Sequence[Any]) -> Tuple[OperandKind, ...]:
    """Tag each argument as a specification, a trained model or a scalar."""
    kinds: List[OperandKind] = []
    for i, a in enumerate(args):
        if is_spec(a):
            kinds.append(OperandKind.SPEC)
        elif is_model(a) or is_model_list(a):
            kinds.append(OperandKind.MODEL)
        elif is_scalar(a):
            kinds.append(OperandKind.SCALAR)
        else:
            raise TypeError(
                f"Operand {i} of type {type(a).__name__} is neither a model nor a number."
            )
    return tuple(kinds)


def model_mask(args: Sequence[Any]) -> Tuple[bool, ...]:
    """Boolean mask marking model-like arguments."""
    return tuple(k is not OperandKind.SCALAR for k in classify(args))


def require_model_like(args: Sequence[Any], caller: str = "combination") -> Tuple[bool, ...]:
    mask = model_mask(args)
    if not any(mask):
        raise InvalidCombinationError(
            f"No valid model in {caller}: every operand is a number."
        )
    return mask


def recycle(a: Sequence[Any], b: Sequence[Any]) -> Tuple[List[Any], List[Any]]:
    """Cyclically repeat the shorter sequence to the length of the longer.

    Warns with RecyclingLengthWarning when the longer length is not an exact
    multiple of the shorter.
    """
    la, lb = len(a), len(b)
    if la == 0 or lb == 0:
        raise ValueError("Cannot combine zero-length operands.")
    n = max(la, lb)
    if n % min(la, lb) != 0:
        warn(
            "longer object length is not a multiple of shorter object length",
            RecyclingLengthWarning,
            stacklevel=3,
        )
    return [a[i % la] for i in range(n)], [b[i % lb] for i in range(n)]
