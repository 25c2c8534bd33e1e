"""
Example: inverse-variance weights and correlated forecast errors.

Two trained models are combined with weights proportional to
1 / var(residuals). The combined forecast sd accounts for the correlation
between the models' historical residuals.
"""

import numpy as np
import pandas as pd

from sensible_forecasting import combination_ensemble, estimate, models


def main() -> None:
    rng = np.random.default_rng(1)
    t = np.arange(60)
    y = 10.0 + 0.3 * t + rng.normal(0, 2.0, size=t.size)
    data = pd.DataFrame({"y": y}, index=pd.RangeIndex(60))

    trend_fit = estimate(data, models.linear_trend("y"))
    naive_fit = estimate(data, models.naive("y"))
    print(trend_fit.values, trend_fit.stderr)

    equal = combination_ensemble(trend_fit, naive_fit)
    weighted = combination_ensemble(trend_fit, naive_fit, weights="inv_var")

    print("equal:   ", equal.response)
    print("inv_var: ", weighted.response)

    fc_equal = equal.forecast(h=5)
    fc_weighted = weighted.forecast(h=5)
    print(fc_equal.to_frame(level=95).round(3))
    print(fc_weighted.to_frame(level=95).round(3))

    # The better-fitting trend gets the larger weight, so the weighted
    # ensemble sits closer to it than the equal-weight one.
    fc_trend = trend_fit.forecast(h=5).point
    assert np.all(
        np.abs(fc_weighted.point - fc_trend) <= np.abs(fc_equal.point - fc_trend) + 1e-9
    )


if __name__ == "__main__":
    main()
