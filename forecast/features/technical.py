"""
Technical indicator features.

Computes the fixed indicator set the sequence model and the statistical
fallback both consume:
- Simple moving averages (5, 10, 20)
- Exponential moving averages (12, 26)
- RSI (14), MACD (EMA12 - EMA26)
- Volatility (population std of the last 20 prices)

Every function accepts a possibly empty price sequence and never fails.
When there is too little history the indicator is anchored to the last
price (moving averages) or to its neutral value (RSI), so an IndicatorSet
is always fully populated.
"""

import logging
from typing import Sequence

import numpy as np

from forecast.config import IndicatorConfig
from forecast.entities import IndicatorSet

logger = logging.getLogger(__name__)


class IndicatorCalculator:
    """Computes an IndicatorSet from a chronological price series."""

    def __init__(self, cfg: IndicatorConfig | None = None) -> None:
        self._cfg = cfg or IndicatorConfig()

    def compute(self, prices: Sequence[float]) -> IndicatorSet:
        """Compute every indicator over the full series.

        Args:
            prices: Closing prices, oldest first. May be empty.

        Returns:
            A complete IndicatorSet; the neutral defaults for an empty series.
        """
        values = _as_array(prices)
        if values.size == 0:
            return IndicatorSet.empty()

        short, mid, long_ = self._cfg.sma_windows
        return IndicatorSet(
            sma5=self.sma(values, short),
            sma10=self.sma(values, mid),
            sma20=self.sma(values, long_),
            ema12=self.ema(values, self._cfg.ema_fast),
            ema26=self.ema(values, self._cfg.ema_slow),
            rsi=self.rsi(values, self._cfg.rsi_window),
            macd=self.macd(values, self._cfg.ema_fast, self._cfg.ema_slow),
            volatility=self.volatility(values, self._cfg.volatility_window),
        )

    def compute_prefixes(self, window: Sequence[float]) -> list[IndicatorSet]:
        """Indicators over each growing prefix ``window[:k + 1]``.

        Step k of a feature sequence only sees prices up to and including k.
        """
        values = _as_array(window)
        return [self.compute(values[: k + 1]) for k in range(values.size)]

    # ------------------------------------------------------------------
    # Individual indicators
    # ------------------------------------------------------------------

    @staticmethod
    def sma(prices: Sequence[float], period: int) -> float:
        """Mean of the last ``period`` prices, or the last price if fewer."""
        values = _as_array(prices)
        if values.size == 0:
            return 0.0
        if values.size < period:
            return float(values[-1])
        return float(np.mean(values[-period:]))

    @staticmethod
    def ema(prices: Sequence[float], period: int) -> float:
        """Exponential moving average seeded with the SMA of the first ``period``."""
        values = _as_array(prices)
        if values.size == 0:
            return 0.0
        if values.size < period:
            return float(values[-1])

        multiplier = 2.0 / (period + 1)
        ema = float(np.mean(values[:period]))
        for price in values[period:]:
            ema = (float(price) - ema) * multiplier + ema
        return ema

    @staticmethod
    def rsi(prices: Sequence[float], period: int = 14) -> float:
        """Relative Strength Index over the last ``period`` deltas."""
        values = _as_array(prices)
        if values.size < period + 1:
            return 50.0

        deltas = np.diff(values[-(period + 1):])
        gains = float(deltas[deltas > 0].sum())
        losses = float(-deltas[deltas < 0].sum())

        avg_gain = gains / period
        avg_loss = losses / period
        if avg_loss == 0:
            return 100.0
        rs = avg_gain / avg_loss
        return 100.0 - (100.0 / (1.0 + rs))

    @classmethod
    def macd(cls, prices: Sequence[float], fast: int = 12, slow: int = 26) -> float:
        values = _as_array(prices)
        if values.size == 0:
            return 0.0
        return cls.ema(values, fast) - cls.ema(values, slow)

    @staticmethod
    def volatility(prices: Sequence[float], period: int = 20) -> float:
        """Population standard deviation of the last ``min(period, len)`` prices."""
        values = _as_array(prices)
        if values.size < 2:
            return 0.0
        window = values[-period:] if values.size >= period else values
        return float(np.std(window))


def _as_array(prices: Sequence[float]) -> np.ndarray:
    return np.asarray(prices, dtype=np.float64).ravel()
