"""
series.py
---------
TimeSeries: an ordered sequence of observations keyed by timestamp.

A price series carries the fields ``open, high, low, close, volume,
adjusted``; derived series usually carry a single field. Timestamps are
strictly increasing with no duplicates, which every constructor enforces.

Windowing follows ISO-8601 style expressions:

    "1970-03"         all observations in March 1970
    "/1960-01-06"     everything up to and including 6 Jan 1960
    "2008-12-25/"     everything from 25 Dec 2008 onwards
    "2008-01/2008-06" inclusive range
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np
import pandas as pd

from marketwalk.errors import FieldNotFoundError

PRICE_FIELDS = ("open", "high", "low", "close", "volume", "adjusted")
OHLC_FIELDS  = ("open", "high", "low", "close")

# provider column spellings -> canonical field names
_FIELD_ALIASES = {
    "adj close"     : "adjusted",
    "adj_close"     : "adjusted",
    "adjclose"      : "adjusted",
    "adjusted_close": "adjusted",
    "adjusted close": "adjusted",
}


def _canonical_field(name) -> str:
    key = str(name).strip().lower()
    return _FIELD_ALIASES.get(key, key)


class TimeSeries:
    """
    Timestamp-indexed numeric observations.

    Parameters
    ----------
    frame  : DataFrame whose index is (or converts to) a DatetimeIndex.
    symbol : Optional ticker label carried through derived series.

    Raises
    ------
    ValueError if timestamps are duplicated or not strictly increasing.
    """

    def __init__(self, frame: pd.DataFrame, symbol: Optional[str] = None):
        idx = frame.index
        if not isinstance(idx, pd.DatetimeIndex):
            idx = pd.DatetimeIndex(pd.to_datetime(idx))
        if idx.has_duplicates:
            dupes = idx[idx.duplicated()].unique()
            raise ValueError(f"duplicate timestamps: {list(dupes[:3])}")
        if not idx.is_monotonic_increasing:
            raise ValueError("timestamps must be strictly increasing")

        data = frame.astype(float).copy()
        data.index = idx.rename("date")
        self._frame = data
        self.symbol = symbol

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, symbol: Optional[str] = None) -> "TimeSeries":
        """
        Build a series from provider output.

        Column names are canonicalised (``Adj Close`` -> ``adjusted``,
        lower case), the index is sorted and duplicated timestamps keep
        their last observation.
        """
        df = frame.copy()
        df.columns = [_canonical_field(c) for c in df.columns]
        df.index = pd.to_datetime(df.index)
        df = df[~df.index.duplicated(keep="last")]
        df = df.sort_index()
        return cls(df, symbol=symbol)

    @classmethod
    def from_values(
        cls,
        index,
        values,
        name: str = "value",
        symbol: Optional[str] = None,
    ) -> "TimeSeries":
        """Single-field series from parallel timestamp / value sequences."""
        frame = pd.DataFrame({name: np.asarray(values, dtype=float)},
                             index=pd.DatetimeIndex(index))
        return cls(frame, symbol=symbol)

    @classmethod
    def empty(cls, fields, symbol: Optional[str] = None) -> "TimeSeries":
        frame = pd.DataFrame(columns=list(fields), index=pd.DatetimeIndex([]), dtype=float)
        return cls(frame, symbol=symbol)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def fields(self) -> List[str]:
        return list(self._frame.columns)

    @property
    def index(self) -> pd.DatetimeIndex:
        return self._frame.index

    @property
    def is_ohlc(self) -> bool:
        return all(f in self._frame.columns for f in OHLC_FIELDS)

    @property
    def first_timestamp(self) -> Optional[pd.Timestamp]:
        return self.index[0] if len(self) else None

    @property
    def last_timestamp(self) -> Optional[pd.Timestamp]:
        return self.index[-1] if len(self) else None

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        label = self.symbol or "TimeSeries"
        if not len(self):
            return f"<{label}: empty, fields={self.fields}>"
        return (f"<{label}: {len(self)} obs {self.index[0].date()}.."
                f"{self.index[-1].date()}, fields={self.fields}>")

    def require(self, *names: str) -> None:
        """Raise FieldNotFoundError unless every named field is present."""
        missing = [n for n in names if n not in self._frame.columns]
        if missing:
            raise FieldNotFoundError(
                f"{self.symbol or 'series'} has no field(s) {missing}; "
                f"available: {self.fields}"
            )

    def column(self, name: str) -> pd.Series:
        """Copy of one field as a pandas Series."""
        self.require(name)
        return self._frame[name].copy()

    def values(self, name: str) -> np.ndarray:
        self.require(name)
        return self._frame[name].to_numpy(copy=True)

    def to_frame(self) -> pd.DataFrame:
        return self._frame.copy()

    def head(self, n: int = 6) -> "TimeSeries":
        return TimeSeries(self._frame.head(n), symbol=self.symbol)

    def tail(self, n: int = 6) -> "TimeSeries":
        return TimeSeries(self._frame.tail(n), symbol=self.symbol)

    def window(self, expr: str) -> "TimeSeries":
        """
        Subset by ISO-8601 expression (see module docstring).

        Bounds are inclusive and may be partial dates ("1970", "1970-03").
        """
        expr = expr.strip()
        if "/" in expr:
            lo, hi = (part.strip() or None for part in expr.split("/", 1))
        else:
            lo = hi = expr
        # slicing keeps partial-string semantics and always yields a frame
        sub = self._frame.loc[lo:hi]
        return TimeSeries(sub, symbol=self.symbol)

    def equals(self, other: "TimeSeries") -> bool:
        return isinstance(other, TimeSeries) and self._frame.equals(other._frame)
