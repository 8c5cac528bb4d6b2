"""
Price-history providers.

Implements the PriceHistoryProvider port:
- InMemoryPriceHistoryProvider — closes held in a dict (tests, inline data)
- FilePriceHistoryProvider     — ``<TICKER>.parquet`` or ``<TICKER>.csv`` files

File data is cleaned the way the engine expects it: rows sorted by date
ascending, missing and non-positive closes dropped.
"""

import logging
from pathlib import Path
from typing import Mapping, Sequence

import pandas as pd

from forecast.errors import TickerNotFoundError
from forecast.ports import PriceHistoryProvider

logger = logging.getLogger(__name__)


def _tail(closes: list[float], lookback: int | None) -> list[float]:
    if lookback is not None and lookback > 0:
        return closes[-lookback:]
    return closes


class InMemoryPriceHistoryProvider(PriceHistoryProvider):
    """Serves closes from a ticker → prices mapping."""

    def __init__(self, history: Mapping[str, Sequence[float]] | None = None) -> None:
        self._history: dict[str, list[float]] = {
            ticker.upper(): [float(p) for p in prices]
            for ticker, prices in (history or {}).items()
        }

    def put(self, ticker: str, prices: Sequence[float]) -> None:
        self._history[ticker.upper()] = [float(p) for p in prices]

    def get_closes(self, ticker: str, lookback: int | None = None) -> list[float]:
        try:
            closes = self._history[ticker.upper()]
        except KeyError:
            raise TickerNotFoundError(ticker) from None
        return _tail(list(closes), lookback)


class FilePriceHistoryProvider(PriceHistoryProvider):
    """Reads daily closes from Parquet or CSV files, one file per ticker.

    Expected columns: an optional date column (``date``, ``timestamp`` or
    ``seance``) and a close column (``close``, ``cloture`` or ``adj_close``).
    """

    DATE_COLUMNS = ("date", "timestamp", "seance")
    CLOSE_COLUMNS = ("close", "cloture", "adj_close")

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir)

    def get_closes(self, ticker: str, lookback: int | None = None) -> list[float]:
        df = self._read(ticker)
        closes = self._clean(df, ticker)
        logger.debug("Loaded %d closes for %s.", len(closes), ticker)
        return _tail(closes, lookback)

    def _read(self, ticker: str) -> pd.DataFrame:
        symbol = ticker.upper()
        parquet_path = self._base_dir / f"{symbol}.parquet"
        csv_path = self._base_dir / f"{symbol}.csv"
        if parquet_path.exists():
            return pd.read_parquet(parquet_path, engine="pyarrow")
        if csv_path.exists():
            return pd.read_csv(csv_path)
        raise TickerNotFoundError(ticker)

    def _clean(self, df: pd.DataFrame, ticker: str) -> list[float]:
        columns = {c.lower(): c for c in df.columns}
        close_col = next((columns[c] for c in self.CLOSE_COLUMNS if c in columns), None)
        if close_col is None:
            logger.warning("No close column for %s (columns=%s).", ticker, list(df.columns))
            raise TickerNotFoundError(ticker)

        date_col = next((columns[c] for c in self.DATE_COLUMNS if c in columns), None)
        if date_col is not None:
            df = df.assign(**{date_col: pd.to_datetime(df[date_col])})
            df = df.sort_values(date_col, kind="mergesort")

        closes = pd.to_numeric(df[close_col], errors="coerce")
        dropped = int((closes.isna() | (closes <= 0)).sum())
        closes = closes[closes > 0].dropna()
        if dropped:
            logger.warning("Dropped %d invalid closes for %s.", dropped, ticker)
        return closes.astype(float).tolist()
