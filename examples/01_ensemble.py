import numpy as np
import pandas as pd
from sensible_forecasting import combination_model, estimate, models

rng = np.random.default_rng(0)
idx = pd.period_range("2015-01", periods=48, freq="M")
season = 3.0 * np.sin(2 * np.pi * np.arange(48) / 12)
sales = 50 + 0.4 * np.arange(48) + season + rng.normal(0, 1.0, size=48)
data = pd.DataFrame({"sales": sales}, index=idx)

# Specifications combine before estimation; the default combination is the
# equally weighted mean.
spec = combination_model(models.snaive("sales", period=12), models.drift("sales"))
print(spec)

fit = estimate(data, spec)
print(fit)
print(fit.summary())

fc = fit.forecast(h=6)
print(fc.to_frame(level=80).round(3))

# The same ensemble written with arithmetic on trained models.
snaive_fit = estimate(data, models.snaive("sales", period=12))
drift_fit = estimate(data, models.drift("sales"))
by_hand = (snaive_fit + drift_fit) / 2
print(by_hand.response)
np.testing.assert_allclose(by_hand.forecast(h=6).point, fc.point)
