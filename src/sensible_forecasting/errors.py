"""Exceptions and warning categories raised by model combinations."""

from __future__ import annotations

__all__ = [
    "InvalidCombinationError",
    "UnsupportedOperationError",
    "MultivariateCombinationError",
    "DegenerateWeightWarning",
    "RecyclingLengthWarning",
    "UnsupportedOperatorWarning",
]


class InvalidCombinationError(ValueError):
    """A combination was requested without any model-like operand."""


class UnsupportedOperationError(TypeError):
    """Arithmetic that has no meaning for models (model * model, x / model)."""


class MultivariateCombinationError(ValueError):
    """The combined response resolves to more than one variable."""


class DegenerateWeightWarning(UserWarning):
    """Inverse-variance weighting hit a zero or non-finite residual variance."""


class RecyclingLengthWarning(UserWarning):
    """Longer operand length is not a multiple of the shorter one."""


class UnsupportedOperatorWarning(UserWarning):
    """An operator outside {+, -, *, /} was applied to a model."""
