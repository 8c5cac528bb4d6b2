"""
Feature engineering sub-package.

- `IndicatorCalculator`  — SMA(5/10/20), EMA(12/26), RSI(14), MACD, volatility(20)
- `FeatureVectorBuilder` — 8-value normalized vectors, window sequences,
                           sliding-window training examples
"""

from forecast.features.technical import IndicatorCalculator
from forecast.features.vectors import FeatureVectorBuilder, WindowBounds

__all__ = [
    "IndicatorCalculator",
    "FeatureVectorBuilder",
    "WindowBounds",
]
