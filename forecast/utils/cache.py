"""
Per-ticker prediction cache.

Holds at most one PredictionResult per ticker. An entry is fresh for
``ttl_seconds`` after it was written, then treated as a miss and
evicted on the next read. Invalidation is explicit and used whenever
upstream price data changes, so a forecast computed before a refresh
is never served after it.

The clock is injected so tests can move time without sleeping.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from forecast.entities import PredictionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached prediction and the clock reading when it was written."""

    ticker: str
    result: PredictionResult
    created_at: float


class PredictionCache:
    """In-memory TTL cache keyed by ticker.

    Owned by one orchestrator instance; there is no module-level state.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, ticker: str) -> PredictionResult | None:
        """Return the cached result for ``ticker`` if it is still fresh."""
        with self._lock:
            entry = self._entries.get(ticker)
            if entry is None:
                logger.debug("[Cache MISS] %s", ticker)
                return None
            if self._clock() - entry.created_at >= self._ttl:
                del self._entries[ticker]
                logger.debug("[Cache EXPIRED] %s", ticker)
                return None
        logger.debug("[Cache HIT] %s", ticker)
        return entry.result

    def set(self, ticker: str, result: PredictionResult) -> None:
        """Store ``result``, replacing any previous entry for ``ticker``."""
        with self._lock:
            self._entries[ticker] = CacheEntry(
                ticker=ticker, result=result, created_at=self._clock()
            )

    def invalidate(self, ticker: str) -> bool:
        """Drop the entry for ``ticker``.

        Returns:
            True if an entry was removed.
        """
        with self._lock:
            removed = self._entries.pop(ticker, None) is not None
        if removed:
            logger.info("Cleared prediction cache for %s", ticker)
        return removed

    def clear(self) -> int:
        """Drop every entry. Returns the number removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, ticker: str) -> bool:
        return self.get(ticker) is not None
