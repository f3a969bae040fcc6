"""
store.py
--------
SeriesStore: the keyed in-memory collection that ingestion populates.

The store is created once per batch and owned by the caller. Series are
added or overwritten with ``put``; there is no per-key removal, only a
full ``rebuild``.
"""

from collections.abc import Mapping
from typing import Dict, Iterator

import pandas as pd

from marketwalk.series import TimeSeries


class SeriesStore(Mapping):
    """Mapping of ticker symbol -> TimeSeries, preserving insertion order."""

    def __init__(self):
        self._data: Dict[str, TimeSeries] = {}

    def put(self, symbol: str, series: TimeSeries) -> None:
        """Insert or overwrite the series stored under ``symbol``."""
        if not isinstance(symbol, str) or not symbol:
            raise ValueError("symbol must be a non-empty string")
        if not isinstance(series, TimeSeries):
            raise TypeError(f"expected TimeSeries, got {type(series).__name__}")
        self._data[symbol] = series

    def rebuild(self) -> None:
        """Drop every stored series so the batch can be re-run from scratch."""
        self._data.clear()

    def __getitem__(self, symbol: str) -> TimeSeries:
        return self._data[symbol]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SeriesStore({list(self._data)})"

    @property
    def symbols(self):
        return list(self._data)

    def summary(self) -> pd.DataFrame:
        """One row per stored symbol: observation count and date range."""
        rows = [
            {
                "symbol":       sym,
                "observations": len(ts),
                "first":        ts.first_timestamp,
                "last":         ts.last_timestamp,
            }
            for sym, ts in self._data.items()
        ]
        return pd.DataFrame(rows, columns=["symbol", "observations", "first", "last"])
