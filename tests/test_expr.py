import numpy as np
import pytest

from sensible_forecasting import BinaryOp, Leaf, UnaryNeg
from sensible_forecasting.expr import evaluate, render, slots

uncertainties = pytest.importorskip("uncertainties")


def test_evaluate_binds_leaves_by_position():
    expr = BinaryOp("+", Leaf(0), BinaryOp("*", Leaf(1), UnaryNeg(Leaf(2))))
    assert evaluate(expr, [1.0, 2.0, 3.0]) == pytest.approx(1.0 - 6.0)

    out = evaluate(expr, [np.array([1.0, 2.0]), 2.0, np.array([1.0, 0.5])])
    np.testing.assert_allclose(out, [-1.0, 1.0])


def test_evaluate_propagates_uncertainties():
    a = uncertainties.ufloat(1.0, 3.0)
    b = uncertainties.ufloat(2.0, 4.0)
    out = evaluate(BinaryOp("+", Leaf(0), Leaf(1)), [a, b])
    assert out.nominal_value == pytest.approx(3.0)
    assert out.std_dev == pytest.approx(5.0)


def test_only_add_and_mul_are_captured():
    with pytest.raises(ValueError, match="only hold"):
        BinaryOp("-", Leaf(0), Leaf(1))


def test_slots_and_render():
    expr = BinaryOp("*", BinaryOp("+", Leaf(0), UnaryNeg(Leaf(1))), Leaf(2))
    assert slots(expr) == frozenset({0, 1, 2})
    assert render(expr, ["a", "b", "0.5"]) == "(a + -b) * 0.5"
    assert render(BinaryOp("*", Leaf(0), Leaf(1)), ["-1", "y"]) == "(-1) * y"
