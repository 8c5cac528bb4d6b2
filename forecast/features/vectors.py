"""
Feature vector construction.

Turns a price and its indicators into the 8-value vector the sequence
model consumes, and slides a fixed-length window over a series to build
training examples. Price-scale values are normalized against the
window's own min/max, so every vector in a window shares one scale.
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from forecast.config import FeatureConfig
from forecast.entities import (
    FEATURE_COUNT,
    FeatureVector,
    IndicatorSet,
    TrainingExample,
)
from forecast.features.technical import IndicatorCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowBounds:
    """Normalization bounds of one price window."""

    min_price: float
    max_price: float
    max_volatility_ref: float

    @property
    def price_range(self) -> float:
        return self.max_price - self.min_price

    def denormalize(self, value: float) -> float:
        """Map a normalized model output back to price space."""
        return value * self.price_range + self.min_price


class FeatureVectorBuilder:
    """Builds normalized feature vectors and sequences.

    Vector layout (fixed order):
        price, sma5, sma10, rsi, macd, ema12, ema26, volatility
    """

    def __init__(
        self,
        cfg: FeatureConfig | None = None,
        calculator: IndicatorCalculator | None = None,
    ) -> None:
        self._cfg = cfg or FeatureConfig()
        self._calculator = calculator or IndicatorCalculator()

    def normalize(self, value: float, lo: float, hi: float) -> float:
        """Scale ``value`` into [0, 1] relative to ``[lo, hi]``.

        Returns 0.5 for a degenerate range: equal or non-finite bounds, or
        a span below ``min_normalize_range``.
        """
        if hi == lo or not math.isfinite(lo) or not math.isfinite(hi):
            return 0.5
        span = hi - lo
        if span < self._cfg.min_normalize_range:
            return 0.5
        return (value - lo) / span

    def bounds(self, window: Sequence[float]) -> WindowBounds:
        values = np.asarray(window, dtype=np.float64)
        max_price = float(values.max())
        return WindowBounds(
            min_price=float(values.min()),
            max_price=max_price,
            max_volatility_ref=max_price * self._cfg.volatility_ref_ratio,
        )

    def is_degenerate(self, bounds: WindowBounds) -> bool:
        """A window too flat to normalize meaningfully."""
        return bounds.price_range < self._cfg.min_window_range

    def build_feature_vector(
        self,
        price: float,
        indicators: IndicatorSet,
        min_price: float,
        max_price: float,
        max_volatility_ref: float,
    ) -> FeatureVector:
        rsi_lo, rsi_hi = self._cfg.rsi_bounds
        macd_lo, macd_hi = self._cfg.macd_bounds
        return (
            self.normalize(price, min_price, max_price),
            self.normalize(indicators.sma5, min_price, max_price),
            self.normalize(indicators.sma10, min_price, max_price),
            self.normalize(indicators.rsi, rsi_lo, rsi_hi),
            self.normalize(indicators.macd, macd_lo, macd_hi),
            self.normalize(indicators.ema12, min_price, max_price),
            self.normalize(indicators.ema26, min_price, max_price),
            self.normalize(indicators.volatility, 0.0, max_volatility_ref),
        )

    def build_sequence(
        self, window: Sequence[float], bounds: WindowBounds | None = None
    ) -> tuple[FeatureVector, ...]:
        """One feature vector per step of ``window``.

        Indicators for step k are computed over ``window[:k + 1]`` only.
        """
        bounds = bounds or self.bounds(window)
        prefixes = self._calculator.compute_prefixes(window)
        return tuple(
            self.build_feature_vector(
                float(price),
                indicators,
                bounds.min_price,
                bounds.max_price,
                bounds.max_volatility_ref,
            )
            for price, indicators in zip(window, prefixes)
        )

    def build_training_examples(
        self, series: Sequence[float], sequence_length: int
    ) -> list[TrainingExample]:
        """Slide a window over ``series`` and pair it with the next price.

        Flat windows (range below ``min_window_range``) are skipped.
        """
        prices = [float(p) for p in series]
        examples: list[TrainingExample] = []
        skipped = 0

        for i in range(sequence_length, len(prices)):
            window = prices[i - sequence_length : i]
            bounds = self.bounds(window)
            if self.is_degenerate(bounds):
                skipped += 1
                continue

            sequence = self.build_sequence(window, bounds)
            target = self.normalize(prices[i], bounds.min_price, bounds.max_price)
            examples.append(TrainingExample(sequence=sequence, target=target))

        if skipped:
            logger.debug("Skipped %d flat windows.", skipped)
        return examples

    @staticmethod
    def to_arrays(
        examples: Sequence[TrainingExample],
    ) -> tuple[np.ndarray, np.ndarray]:
        """Stack examples into ``(n, L, 8)`` inputs and ``(n,)`` targets."""
        if not examples:
            return (
                np.empty((0, 0, FEATURE_COUNT), dtype=np.float32),
                np.empty((0,), dtype=np.float32),
            )
        X = np.array([ex.sequence for ex in examples], dtype=np.float32)
        y = np.array([ex.target for ex in examples], dtype=np.float32)
        return X, y
