import numpy as np
import pandas as pd
import pytest
from scipy.stats import norm

from sensible_forecasting import Degenerate, Forecast, Normal, models, estimate
from sensible_forecasting.evaluate import residual_covariance
from sensible_forecasting.util import cov2cor, future_index


def test_uncorrelated_models_add_variances(stub_model):
    a = stub_model([1.0, -1.0, 1.0, -1.0], [1.0, 2.0], [1.0, 2.0])
    b = stub_model([1.0, 1.0, -1.0, -1.0], [10.0, 20.0], [2.0, 1.0])

    np.testing.assert_allclose(residual_covariance([a, b])[0, 1], 0.0, atol=1e-12)

    fc = (a + b).forecast(h=2)
    np.testing.assert_allclose(fc.point, [11.0, 22.0])
    np.testing.assert_allclose(fc.sd, [np.sqrt(5.0), np.sqrt(5.0)])
    assert fc.dist.family == "normal"
    assert fc.response == "y + y"


def test_perfectly_correlated_models_add_sds(stub_model):
    resid = [1.0, -2.0, 0.5, 3.0]
    a = stub_model(resid, [1.0, 1.0], [1.0, 3.0])
    b = stub_model(resid, [2.0, 2.0], [2.0, 1.0])

    fc = (a + b).forecast(h=2)
    np.testing.assert_allclose(fc.sd, [3.0, 4.0], rtol=1e-6)

    diff = (a - b).forecast(h=2)
    np.testing.assert_allclose(diff.point, [-1.0, -1.0])
    np.testing.assert_allclose(diff.sd, [1.0, 2.0], rtol=1e-6, atol=1e-6)


def test_anticorrelated_models_cancel(stub_model):
    resid = np.array([1.0, -2.0, 0.5, 3.0])
    a = stub_model(resid, [1.0], [2.0])
    b = stub_model(-resid, [1.0], [2.0])

    fc = ((a + b) / 2).forecast(h=1)
    np.testing.assert_allclose(fc.sd, [0.0], atol=1e-6)


def test_scalars_shift_and_scale_spread(stub_model):
    a = stub_model([1.0, -1.0, 2.0], [5.0, 6.0], [1.5, 2.5])

    shifted = (a + 5).forecast(h=2)
    np.testing.assert_allclose(shifted.point, [10.0, 11.0])
    np.testing.assert_allclose(shifted.sd, [1.5, 2.5])

    scaled = (a / 4).forecast(h=2)
    np.testing.assert_allclose(scaled.point, [1.25, 1.5])
    np.testing.assert_allclose(scaled.sd, [1.5 / 4, 2.5 / 4])

    flipped = (-a).forecast(h=2)
    np.testing.assert_allclose(flipped.sd, [1.5, 2.5])


def test_weighted_sum_matches_closed_form(stub_model):
    ra = np.array([1.0, -1.0, 2.0, 0.0, -2.0])
    rb = np.array([0.5, -1.5, 1.0, 1.0, -1.0])
    a = stub_model(ra, [3.0], [2.0])
    b = stub_model(rb, [7.0], [1.0])
    rho = np.corrcoef(ra, rb)[0, 1]

    fc = (0.3 * a + 0.7 * b).forecast(h=1)
    expected = np.sqrt(0.3**2 * 4.0 + 0.7**2 * 1.0 + 2 * 0.3 * 0.7 * rho * 2.0 * 1.0)
    assert fc.point[0] == pytest.approx(0.3 * 3.0 + 0.7 * 7.0)
    assert fc.sd[0] == pytest.approx(expected, rel=1e-6)


def test_non_normal_operand_gives_point_masses(stub_model, point_stub_model):
    a = stub_model([1.0, -1.0], [1.0, 2.0], 1.0)
    p = point_stub_model([1.0, 1.0], [3.0, 4.0])

    fc = (a + p).forecast(h=2)
    assert isinstance(fc.dist, Degenerate)
    np.testing.assert_allclose(fc.point, [4.0, 6.0])
    np.testing.assert_allclose(fc.sd, [0.0, 0.0])


def test_new_data_sets_the_forecast_index(stub_model):
    a = stub_model([1.0, -1.0], [1.0, 2.0, 3.0], 1.0)
    future = pd.DataFrame(index=pd.RangeIndex(10, 13))
    fc = (a * 2).forecast(new_data=future)
    assert list(fc.index) == [10, 11, 12]
    np.testing.assert_allclose(fc.point, [2.0, 4.0, 6.0])

    with pytest.raises(ValueError, match="conflicts"):
        a.forecast(new_data=future, h=2)
    with pytest.raises(ValueError, match="either new_data"):
        a.forecast()


def test_cov2cor_zeroes_undefined_entries():
    cov = np.array([[4.0, 2.0, 0.0], [2.0, 1.0, 0.0], [0.0, 0.0, 0.0]])
    corr = cov2cor(cov)
    np.testing.assert_allclose(corr[:2, :2], [[1.0, 1.0], [1.0, 1.0]])
    np.testing.assert_allclose(corr[2], [0.0, 0.0, 0.0])


def test_normal_interval_and_frame():
    dist = Normal(mean=[1.0, 2.0], sd=[1.0, 0.0])
    band = dist.interval(95)
    z = norm.ppf(0.975)
    np.testing.assert_allclose(band.low, [1.0 - z, 2.0])
    np.testing.assert_allclose(band.high, [1.0 + z, 2.0])

    fc = Forecast(index=pd.RangeIndex(2), response="y", point=[1.0, 2.0], dist=dist)
    frame = fc.to_frame(level=95)
    assert list(frame.columns) == [".mean", ".sd", "95%_lower", "95%_upper"]
    assert frame.attrs == {"response": "y", "dist": "normal"}

    with pytest.raises(ValueError):
        Normal(mean=[0.0], sd=[-1.0])
    with pytest.raises(ValueError):
        dist.interval(100)
    with pytest.raises(ValueError, match="shape"):
        Forecast(index=pd.RangeIndex(3), response="y", point=[1.0], dist=dist)


def test_future_index_continues_the_training_index():
    periods = pd.period_range("2020-01", periods=4, freq="M")
    assert list(future_index(periods, 2)) == list(pd.period_range("2020-05", periods=2, freq="M"))

    days = pd.date_range("2021-03-01", periods=5, freq="D")
    out = future_index(pd.DatetimeIndex(list(days)), 2)
    assert list(out) == [pd.Timestamp("2021-03-06"), pd.Timestamp("2021-03-07")]

    assert list(future_index(pd.Index([0, 2, 4]), 3)) == [6, 8, 10]

    with pytest.raises(ValueError):
        future_index(pd.RangeIndex(3), 0)
    with pytest.raises(TypeError):
        future_index(pd.Index(["a", "b"]), 1)


def test_real_models_forecast_on_period_index():
    idx = pd.period_range("2019-01", periods=24, freq="M")
    y = 100 + np.arange(24, dtype=float) + 5 * np.sin(np.arange(24))
    data = pd.DataFrame({"y": y}, index=idx)

    combo = estimate(data, models.drift("y")) * 0.5 + estimate(data, models.mean("y")) * 0.5
    fc = combo.forecast(h=3)
    assert fc.index[0] == pd.Period("2021-01", freq="M")
    assert np.all(fc.sd > 0)


def test_forecast_and_fitted_are_repeatable(stub_model):
    a = stub_model([1.0, -1.0, 2.0, 0.5], [1.0, 2.0], [1.0, 2.0])
    b = stub_model([0.5, -1.5, 1.0, 1.0], [3.0, 4.0], [2.0, 1.0])
    combo = 0.4 * a + 0.6 * b

    first, second = combo.forecast(h=2), combo.forecast(h=2)
    assert np.array_equal(first.point, second.point)
    assert np.array_equal(first.sd, second.sd)
    assert np.array_equal(combo.fitted().to_numpy(), combo.fitted().to_numpy())


def test_sum_is_commutative(stub_model):
    a = stub_model([1.0, -1.0, 2.0, 0.5], [1.0, 2.0], [1.0, 2.0])
    b = stub_model([0.5, -1.5, 1.0, 1.0], [3.0, 4.0], [2.0, 1.0])

    ab = (a + b).forecast(h=2)
    ba = (b + a).forecast(h=2)
    np.testing.assert_allclose(ab.point, ba.point)
    np.testing.assert_allclose(ab.sd, ba.sd, rtol=1e-9)
