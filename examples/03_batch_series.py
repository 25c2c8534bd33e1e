import numpy as np
import pandas as pd
from sensible_forecasting import combination_model, estimate, models

rng = np.random.default_rng(2)
N = 30
frames = []
for store, level in [("north", 20.0), ("south", 35.0), ("east", 12.0)]:
    y = level + np.cumsum(rng.normal(0.2, 1.0, size=N))
    frames.append(pd.DataFrame({"store": store, "units": y}, index=pd.RangeIndex(N)))
data = pd.concat(frames)

# One model per store.
means = estimate(data, models.mean("units"), key="store")
naives = estimate(data, models.naive("units"), key="store")
print(means)

# Arithmetic on batches is elementwise over the series.
blend = 0.25 * means + 0.75 * naives
for key, m in zip(blend.keys, blend):
    fc = m.forecast(h=3)
    print(key, m.response, np.round(fc.point, 3), np.round(fc.sd, 3))

# Deferred combinations estimate per series and keep the response name.
spec = combination_model(models.mean("units"), models.naive("units"), models.drift("units"))
fits = estimate(data, spec, key="store")
for m in fits:
    assert m.response == "units"
print(fits.get("south").summary())
