"""
fetcher.py
----------
Price-series acquisition for a single symbol.

Providers
---------
yahoo     : Yahoo Finance daily OHLCV via yfinance.
csv       : One ``<SYMBOL>.csv`` file per symbol in a local directory
            (Date, Open, High, Low, Close, Adj Close, Volume).
synthetic : Seeded geometric-Brownian-motion OHLCV on business days, for
            offline demos and tests.

Every failure surfaces as FetchFailure with a human-readable reason.
"""

from __future__ import annotations

import os
import zlib
import warnings
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional, Union

import numpy as np
import pandas as pd
import yfinance as yf

from marketwalk.errors import FetchFailure
from marketwalk.series import TimeSeries
from marketwalk.utils import get_logger

warnings.filterwarnings("ignore", category=FutureWarning)

log = get_logger(__name__)

DateLike = Union[str, date, pd.Timestamp, None]


@dataclass
class SourceSpec:
    """
    Where and over which date range to fetch.

    Parameters
    ----------
    provider    : "yahoo" | "csv" | "synthetic".
    start       : First date requested (inclusive).
    end         : Last date requested (inclusive); None means up to today.
    csv_dir     : Directory holding per-symbol CSV files (csv provider).
    auto_adjust : Ask yfinance for split/dividend adjusted OHLC.
    """
    provider:    str       = "yahoo"
    start:       DateLike  = None
    end:         DateLike  = None
    csv_dir:     Optional[str] = None
    auto_adjust: bool      = False

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise ValueError(
                f"unknown provider '{self.provider}'; choose from {sorted(PROVIDERS)}"
            )
        self.start = pd.Timestamp(self.start) if self.start is not None else None
        self.end   = pd.Timestamp(self.end)   if self.end   is not None else None
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(f"start {self.start.date()} is after end {self.end.date()}")


# =============================================================================
# Providers
# =============================================================================

def _flatten_columns(raw: pd.DataFrame) -> pd.DataFrame:
    """yfinance returns (Price, Ticker) MultiIndex columns for recent versions."""
    if isinstance(raw.columns, pd.MultiIndex):
        raw = raw.copy()
        raw.columns = raw.columns.get_level_values(0)
    return raw


def _fetch_yahoo(symbol: str, source: SourceSpec) -> pd.DataFrame:
    # yfinance treats `end` as exclusive
    end = source.end + pd.Timedelta(days=1) if source.end is not None else None
    try:
        raw = yf.download(
            symbol,
            start       = source.start.strftime("%Y-%m-%d") if source.start is not None else None,
            end         = end.strftime("%Y-%m-%d") if end is not None else None,
            auto_adjust = source.auto_adjust,
            actions     = False,
            progress    = False,
        )
    except Exception as exc:
        raise FetchFailure(symbol, f"provider error: {exc}") from exc

    if raw is None or raw.empty:
        raise FetchFailure(symbol, "no data returned by yahoo")
    frame = _flatten_columns(raw).dropna(how="all")
    if frame.empty:
        raise FetchFailure(symbol, "no data returned by yahoo")
    return frame


def _fetch_csv(symbol: str, source: SourceSpec) -> pd.DataFrame:
    if not source.csv_dir:
        raise FetchFailure(symbol, "csv provider needs csv_dir")
    path = os.path.join(source.csv_dir, f"{symbol.lstrip('^')}.csv")
    if not os.path.exists(path):
        raise FetchFailure(symbol, f"file not found: {path}")
    try:
        df = pd.read_csv(path, index_col=0, parse_dates=True)
    except (ValueError, pd.errors.ParserError) as exc:
        raise FetchFailure(symbol, f"unreadable csv: {exc}") from exc
    df = df.sort_index(kind="mergesort")
    df = df.loc[source.start:source.end]
    if df.empty:
        raise FetchFailure(symbol, "no rows in requested date range")
    return df


def _fetch_synthetic(symbol: str, source: SourceSpec) -> pd.DataFrame:
    start = source.start if source.start is not None else pd.Timestamp("2000-01-03")
    end   = source.end   if source.end   is not None else pd.Timestamp.today().normalize()
    dates = pd.bdate_range(start, end)
    n     = len(dates)
    if n == 0:
        raise FetchFailure(symbol, "no business days in requested range")

    rng    = np.random.default_rng(zlib.crc32(symbol.encode("utf-8")))
    price0 = rng.uniform(20.0, 400.0)
    ret    = rng.normal(0.0003, 0.015, n)
    close  = price0 * np.exp(np.cumsum(ret))
    opn    = close * np.exp(rng.normal(0.0, 0.004, n))
    high   = np.maximum(opn, close) * rng.uniform(1.000, 1.012, n)
    low    = np.minimum(opn, close) * rng.uniform(0.988, 1.000, n)
    return pd.DataFrame({
        "Open":      opn,
        "High":      high,
        "Low":       low,
        "Close":     close,
        "Adj Close": close,
        "Volume":    rng.integers(100_000, 5_000_000, n).astype(float),
    }, index=dates)


PROVIDERS: Dict[str, Callable[[str, SourceSpec], pd.DataFrame]] = {
    "yahoo":     _fetch_yahoo,
    "csv":       _fetch_csv,
    "synthetic": _fetch_synthetic,
}


# =============================================================================
# Public API
# =============================================================================

def fetch_series(symbol: str, source: SourceSpec) -> TimeSeries:
    """
    Fetch one symbol's OHLCV history.

    Parameters
    ----------
    symbol : Ticker symbol (e.g. "^GSPC", "AAPL").
    source : Provider and date range.

    Returns
    -------
    TimeSeries with canonical fields (open, high, low, close, volume,
    adjusted where the provider supplies it).

    Raises
    ------
    FetchFailure when the provider has nothing usable for the symbol.
    """
    log.debug("fetch %s from %s [%s .. %s]", symbol, source.provider,
              source.start, source.end)
    frame = PROVIDERS[source.provider](symbol, source)
    try:
        return TimeSeries.from_frame(frame, symbol=symbol)
    except (ValueError, TypeError) as exc:
        raise FetchFailure(symbol, f"malformed series: {exc}") from exc
