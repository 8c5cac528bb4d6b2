"""
Port interfaces (ABCs) for the forecast engine.

Ports define what the engine needs from the outside world: a source of
closing prices and a durable blob store for the trained model.
Adapters live in forecast.providers and forecast.storage.
The engine never depends on a concrete implementation.
"""

from abc import ABC, abstractmethod


class PriceHistoryProvider(ABC):
    """Port for retrieving historical closing prices."""

    @abstractmethod
    def get_closes(self, ticker: str, lookback: int | None = None) -> list[float]:
        """Return closing prices for a ticker, oldest first.

        Args:
            ticker: Equity ticker symbol.
            lookback: Keep only the most recent N closes (None for all).

        Returns:
            Closing prices in ascending time order.

        Raises:
            TickerNotFoundError: If the provider has no history for the ticker.
        """
        raise NotImplementedError


class ModelStore(ABC):
    """Port for persisting opaque model blobs.

    Implementations must never raise: failures are logged and reported
    through the return value.
    """

    @abstractmethod
    def save(self, name: str, blob: bytes) -> bool:
        """Persist ``blob`` under ``name``. Returns True on success."""
        raise NotImplementedError

    @abstractmethod
    def load(self, name: str) -> bytes | None:
        """Return the blob stored under ``name``, or None if absent or unreadable."""
        raise NotImplementedError
