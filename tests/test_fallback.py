"""
Tests for the statistical fallback predictor.

Covers:
- Empty and very short series
- Trend + momentum extrapolation
- RSI overbought correction
- Confidence clamping
"""

import pytest


class TestShortSeries:
    def test_empty_series_returns_none(self):
        from forecast.models.fallback import StatisticalFallbackPredictor

        assert StatisticalFallbackPredictor().predict([]) is None

    def test_fewer_than_five_points_is_minimal(self):
        from forecast.entities import Direction, Method
        from forecast.models.fallback import StatisticalFallbackPredictor

        result = StatisticalFallbackPredictor().predict([100, 100, 100, 100])
        assert result.method is Method.STATISTICAL_MINIMAL
        assert result.predicted_price == 100
        assert result.confidence == 50
        assert result.direction is Direction.FLAT
        assert result.volatility == 0

    def test_single_point(self):
        from forecast.entities import Method
        from forecast.models.fallback import StatisticalFallbackPredictor

        result = StatisticalFallbackPredictor().predict([42.0])
        assert result.method is Method.STATISTICAL_MINIMAL
        assert result.predicted_price == 42.0
        assert result.indicators.sma5 == 42.0


class TestExtrapolation:
    def test_rising_five_points(self):
        from forecast.entities import Direction, Method
        from forecast.models.fallback import StatisticalFallbackPredictor

        result = StatisticalFallbackPredictor().predict([10, 11, 12, 13, 14])
        # trend 4 * 0.3 + momentum 2 * 0.2; RSI and MACD are neutral this short
        assert result.predicted_price == pytest.approx(15.6)
        assert result.direction is Direction.UP
        assert result.method is Method.STATISTICAL
        # volatility sqrt(2), ratio 0.101 -> 70 - 10.1
        assert result.confidence == pytest.approx(59.9)

    def test_flat_series(self):
        from forecast.entities import Direction
        from forecast.models.fallback import StatisticalFallbackPredictor

        result = StatisticalFallbackPredictor().predict([50.0] * 10)
        assert result.predicted_price == pytest.approx(50.0)
        assert result.direction is Direction.FLAT
        assert result.confidence == 70.0

    def test_overbought_correction(self):
        from forecast.features.technical import IndicatorCalculator
        from forecast.models.fallback import StatisticalFallbackPredictor

        prices = [float(p) for p in range(100, 120)]
        result = StatisticalFallbackPredictor().predict(prices)
        assert result.indicators.rsi == 100.0

        current = prices[-1]
        trend = prices[-1] - prices[-10]
        momentum = sum(prices[-3:]) / 3 - sum(prices[-10:-7]) / 3
        expected = (
            current + trend * 0.3 + momentum * 0.2
            - current * 0.02
            + IndicatorCalculator.macd(prices) * 0.1
        )
        assert result.predicted_price == pytest.approx(expected)

    def test_high_volatility_floors_confidence(self):
        from forecast.models.fallback import StatisticalFallbackPredictor

        result = StatisticalFallbackPredictor().predict([10.0, 100.0] * 5)
        assert result.confidence == 50.0

    def test_confidence_within_bounds(self, walk_200):
        from forecast.models.fallback import StatisticalFallbackPredictor

        predictor = StatisticalFallbackPredictor()
        for end in range(5, len(walk_200), 13):
            assert 50.0 <= predictor.predict(walk_200[:end]).confidence <= 85.0
