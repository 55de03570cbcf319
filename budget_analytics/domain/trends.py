"""Trend analysis - least-squares fit over a short monthly series"""

import numpy as np

from budget_analytics.domain.models import MonthlySeries, TrendResult

# Changes within ±5% of the first value are reported as "stable"
TREND_DEAD_BAND_PERCENT = 5.0


def analyze_trend(series: MonthlySeries, dead_band: float = TREND_DEAD_BAND_PERCENT) -> TrendResult:
    """
    Fit y = a + b·x over x = 0..n-1 and describe the trend.

    - predicted_next_value: a + b·n, clamped to >= 0
    - confidence: R² of the fit, 0 for a flat series
    - percentage_change: (last - first) / first * 100, 0 when first is 0
    - direction: "up"/"down" outside the dead-band, otherwise "stable"

    Series shorter than two points are a defined case, not an error: they
    report a stable trend with zero confidence.
    """
    y = np.asarray(series.values, dtype=float)
    n = len(y)

    if n < 2:
        return TrendResult(
            direction="stable",
            percentage_change=0.0,
            predicted_next_value=float(y[0]),
            confidence=0.0,
        )

    x = np.arange(n)
    slope, intercept = np.polyfit(x, y, 1)
    prediction = float(intercept + slope * n)

    ss_total = float(np.sum((y - y.mean()) ** 2))
    ss_residual = float(np.sum((y - (intercept + slope * x)) ** 2))

    first, last = float(y[0]), float(y[-1])
    percentage = (last - first) / first * 100 if first > 0 else 0.0

    if ss_total == 0:
        # Flat line: nothing to explain
        confidence = 0.0
        direction = "stable"
    else:
        confidence = float(np.clip(1 - ss_residual / ss_total, 0.0, 1.0))
        if percentage > dead_band:
            direction = "up"
        elif percentage < -dead_band:
            direction = "down"
        else:
            direction = "stable"

    return TrendResult(
        direction=direction,
        percentage_change=round(percentage, 2),
        predicted_next_value=max(0.0, round(prediction, 2)),
        confidence=confidence,
    )
