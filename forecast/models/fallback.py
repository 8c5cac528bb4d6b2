"""
Statistical fallback predictor.

Closed-form trend + momentum extrapolation nudged by RSI and MACD.
Needs no trained state, so it is always available when the sequence
model is not: too little history, model not ready, flat window, or
an inference failure.
"""

import logging
from typing import Sequence

import numpy as np

from forecast.config import FallbackConfig
from forecast.entities import Direction, Method, PredictionResult
from forecast.features.technical import IndicatorCalculator
from forecast.utils.numeric import clamp

logger = logging.getLogger(__name__)


class StatisticalFallbackPredictor:
    """Deterministic next-price estimate from the recent trend."""

    def __init__(
        self,
        cfg: FallbackConfig | None = None,
        calculator: IndicatorCalculator | None = None,
    ) -> None:
        self._cfg = cfg or FallbackConfig()
        self._calculator = calculator or IndicatorCalculator()

    def predict(self, series: Sequence[float]) -> PredictionResult | None:
        """Forecast the next price of ``series``.

        Returns None only for an empty series.
        """
        prices = [float(p) for p in series]
        if not prices:
            return None

        cfg = self._cfg
        current = prices[-1]
        indicators = self._calculator.compute(prices)

        if len(prices) < cfg.min_points:
            return PredictionResult(
                predicted_price=current,
                confidence=cfg.minimal_confidence,
                direction=Direction.FLAT,
                volatility=0.0,
                indicators=indicators,
                method=Method.STATISTICAL_MINIMAL,
            )

        recent = prices[-cfg.recent_window:]
        trend = recent[-1] - recent[0]
        momentum = float(
            np.mean(recent[-cfg.momentum_span:]) - np.mean(recent[: cfg.momentum_span])
        )

        prediction = current + trend * cfg.trend_weight + momentum * cfg.momentum_weight

        # Overbought / oversold correction
        if indicators.rsi > cfg.rsi_overbought:
            prediction -= current * cfg.rsi_correction
        elif indicators.rsi < cfg.rsi_oversold:
            prediction += current * cfg.rsi_correction
        prediction += indicators.macd * cfg.macd_weight

        volatility = indicators.volatility
        vol_ratio = volatility / current if current else 0.0
        lo, hi = cfg.confidence_bounds
        confidence = clamp(cfg.confidence_base - vol_ratio * cfg.confidence_scale, lo, hi)
        logger.debug(
            "Fallback: trend=%.4f momentum=%.4f rsi=%.1f -> %.4f",
            trend, momentum, indicators.rsi, prediction,
        )

        return PredictionResult(
            predicted_price=prediction,
            confidence=round(confidence, 1),
            direction=Direction.between(current, prediction),
            volatility=volatility,
            indicators=indicators,
            method=Method.STATISTICAL,
        )
