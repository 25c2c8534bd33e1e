import numpy as np
import pandas as pd
import pytest

from sensible_forecasting import (
    CombinationSpec,
    DegenerateWeightWarning,
    InvalidCombinationError,
    ModelCombination,
    ModelList,
    combination_ensemble,
    estimate,
    inverse_variance_weights,
    models,
)


def test_equal_weights_average_the_forecasts(stub_model):
    a = stub_model([1.0, -1.0, 1.0, -1.0], [2.0, 4.0], 1.0)
    b = stub_model([1.0, 1.0, -1.0, -1.0], [6.0, 8.0], 1.0)

    ens = combination_ensemble(a, b)
    assert isinstance(ens, ModelCombination)
    assert ens.response == "y"
    fc = ens.forecast(h=2)
    np.testing.assert_allclose(fc.point, [4.0, 6.0])
    np.testing.assert_allclose(fc.sd, [np.sqrt(2.0) / 2, np.sqrt(2.0) / 2])


def test_ensemble_takes_first_models_response(stub_model):
    a = stub_model([1.0, -1.0], [2.0], 1.0, response="sales")
    b = stub_model([1.0, 1.0], [6.0], 1.0, response="other")
    ens = combination_ensemble(a, b)
    assert ens.response == "sales"
    assert list(ens.data.columns) == ["sales"]


def test_inverse_variance_weights(stub_model):
    a = stub_model([1.0, -1.0, 1.0, -1.0], [10.0], 1.0)
    b = stub_model([2.0, 2.0, -2.0, -2.0], [20.0], 1.0)

    np.testing.assert_allclose(inverse_variance_weights([a, b]), [0.8, 0.2])

    ens = combination_ensemble(a, b, weights="inv_var")
    assert ens.response == "y"
    assert ens.forecast(h=1).point == pytest.approx([0.8 * 10.0 + 0.2 * 20.0])


def test_zero_residual_variance_falls_back_to_equal_weights(stub_model):
    a = stub_model([0.0, 0.0, 0.0], [10.0], 1.0)
    b = stub_model([1.0, -1.0, 1.0], [20.0], 1.0)

    with pytest.warns(DegenerateWeightWarning, match="equal weights"):
        ens = combination_ensemble(a, b, weights="inv_var")
    assert ens.forecast(h=1).point == pytest.approx([15.0])

    with pytest.raises(ValueError, match="zero or undefined"):
        combination_ensemble(a, b, weights="inv_var", strict=True)


def test_ensemble_argument_validation(stub_model):
    a = stub_model([1.0, -1.0], [2.0], 1.0)
    with pytest.raises(InvalidCombinationError):
        combination_ensemble()
    with pytest.raises(InvalidCombinationError, match="not a model"):
        combination_ensemble(a, 3.0)
    with pytest.raises(ValueError, match="weights must be one of"):
        combination_ensemble(a, a, weights="median")


def test_ensemble_with_a_specification_is_deferred(stub_model):
    a = stub_model([1.0, -1.0], [2.0], 1.0)
    deferred = combination_ensemble(models.naive("y"), a, weights="inv_var")
    assert isinstance(deferred, CombinationSpec)
    assert deferred.combination_fn is combination_ensemble
    assert deferred.combination_args["weights"] == "inv_var"
    assert deferred.response == "y"


def test_batch_ensembles_combine_series_by_series(stub_model):
    a1 = stub_model([1.0, -1.0, 1.0, -1.0], [1.0], 1.0)
    a2 = stub_model([1.0, -1.0, 1.0, -1.0], [2.0], 1.0)
    b1 = stub_model([2.0, 2.0, -2.0, -2.0], [11.0], 1.0)
    b2 = stub_model([2.0, 2.0, -2.0, -2.0], [12.0], 1.0)
    left = ModelList(models=(a1, a2), keys=("p", "q"))
    right = ModelList(models=(b1, b2), keys=("p", "q"))

    equal = combination_ensemble(left, right)
    assert isinstance(equal, ModelList)
    assert equal.keys == ("p", "q")
    assert [m.response for m in equal] == ["y", "y"]
    assert [fc.point[0] for fc in equal.forecast(h=1)] == pytest.approx([6.0, 7.0])

    weighted = combination_ensemble(left, right, weights="inv_var")
    assert [m.response for m in weighted] == ["y", "y"]
    assert [fc.point[0] for fc in weighted.forecast(h=1)] == pytest.approx(
        [0.8 * 1.0 + 0.2 * 11.0, 0.8 * 2.0 + 0.2 * 12.0]
    )


def test_ensemble_of_benchmark_models():
    rng = np.random.default_rng(3)
    y = 20 + np.cumsum(rng.normal(0.1, 1.0, size=40))
    data = pd.DataFrame({"y": y})
    fits = [estimate(data, spec) for spec in (models.mean("y"), models.naive("y"), models.drift("y"))]

    ens = combination_ensemble(*fits)
    expected = np.mean([f.forecast(h=4).point for f in fits], axis=0)
    fc = ens.forecast(h=4)
    np.testing.assert_allclose(fc.point, expected)
    assert ens.response == "y"
    assert np.all(np.isfinite(fc.sd))


def test_batch_ensembles_match_series_keys(stub_model):
    a_p = stub_model([1.0, -1.0, 1.0, -1.0], [1.0], 1.0)
    a_q = stub_model([1.0, -1.0, 1.0, -1.0], [100.0], 1.0)
    b_p = stub_model([2.0, 2.0, -2.0, -2.0], [3.0], 1.0)
    b_q = stub_model([2.0, 2.0, -2.0, -2.0], [300.0], 1.0)
    left = ModelList(models=(a_p, a_q), keys=("p", "q"))
    right = ModelList(models=(b_q, b_p), keys=("q", "p"))

    for weights, expected in (("equal", [2.0, 200.0]), ("inv_var", [1.4, 140.0])):
        ens = combination_ensemble(left, right, weights=weights)
        assert ens.keys == ("p", "q")
        assert [ens.get(k).forecast(h=1).point[0] for k in ("p", "q")] == pytest.approx(expected)


def test_mean_of_copies_matches_equal_ensemble(stub_model):
    a = stub_model([1.0, -2.0, 0.5, 3.0], [4.0, 5.0], [1.0, 2.0])

    by_hand = ((a + a + a) / 3).forecast(h=2)
    ens = combination_ensemble(a, a, a).forecast(h=2)
    np.testing.assert_allclose(by_hand.point, ens.point)
    np.testing.assert_allclose(by_hand.dist.variance, ens.dist.variance)
    np.testing.assert_allclose(ens.sd, [1.0, 2.0], rtol=1e-6)
