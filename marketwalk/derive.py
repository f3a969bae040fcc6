"""
derive.py
---------
Secondary series computed from a series already in the store.

Three core operations:

1. Field extraction
       close(GSPC)  ->  single-field series of closing prices

2. Transform-and-difference
       y_t = f(x_t) - f(x_{t-1}),  t = 1..n-1

   With f = ln this is the log-return r_t = ln(P_t / P_{t-1}), which is
   additive over time and approximates the simple return for small moves.

3. Periodic resampling
   Observations are grouped by a period-end function (e.g. "next Friday
   on or after this date") and each group is reduced to one observation
   (e.g. the last one). Output is ordered by period end.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np
import pandas as pd

from marketwalk.errors import DomainError, InsufficientDataError
from marketwalk.series import TimeSeries

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)
_DAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

PeriodEndFn = Callable[[pd.Timestamp], pd.Timestamp]
ReducerFn   = Callable[[pd.DataFrame], pd.Series]


# =============================================================================
# Field extraction
# =============================================================================

def extract_field(series: TimeSeries, name: str) -> TimeSeries:
    """
    Single-field series holding ``name`` at the same timestamps.

    Raises FieldNotFoundError (a LookupError) if the field is absent.
    """
    series.require(name)
    return TimeSeries(series.to_frame()[[name]], symbol=series.symbol)


def open_(series: TimeSeries) -> TimeSeries:
    return extract_field(series, "open")


def high(series: TimeSeries) -> TimeSeries:
    return extract_field(series, "high")


def low(series: TimeSeries) -> TimeSeries:
    return extract_field(series, "low")


def close(series: TimeSeries) -> TimeSeries:
    return extract_field(series, "close")


def volume(series: TimeSeries) -> TimeSeries:
    return extract_field(series, "volume")


def adjusted(series: TimeSeries) -> TimeSeries:
    return extract_field(series, "adjusted")


def op_cl(series: TimeSeries) -> TimeSeries:
    """Open-to-close change within each period: close / open - 1."""
    series.require("open", "close")
    df  = series.to_frame()
    out = (df["close"] / df["open"] - 1.0).to_frame("op_cl")
    return TimeSeries(out, symbol=series.symbol)


def cl_cl(series: TimeSeries) -> TimeSeries:
    """Close-to-close change: close_t / close_{t-1} - 1 (first period dropped)."""
    series.require("close")
    if len(series) < 2:
        raise InsufficientDataError("cl_cl needs at least 2 observations")
    c   = series.column("close")
    out = (c / c.shift(1) - 1.0).iloc[1:].to_frame("cl_cl")
    return TimeSeries(out, symbol=series.symbol)


# =============================================================================
# Transform-and-difference
# =============================================================================

def _apply_transform(transform: Callable, raw: np.ndarray) -> np.ndarray:
    with np.errstate(all="ignore"):
        try:
            return np.asarray(transform(raw), dtype=float)
        except TypeError:
            # scalar-only callables such as math.log
            return np.vectorize(transform, otypes=[float])(raw)


def transform_diff(
    series:    TimeSeries,
    transform: Callable = np.log,
    name:      Optional[str] = None,
) -> TimeSeries:
    """
    Period-to-period difference of a transformed series.

    Output value at t[i] (i >= 1) is transform(v[i]) - transform(v[i-1]);
    the result is one observation shorter and starts at t[1].

    Parameters
    ----------
    series    : Series to difference (every field is processed).
    transform : Monotonic function, vectorised or scalar. Default ln.
    name      : Field name for a single-field result (default: unchanged).

    Raises
    ------
    InsufficientDataError : fewer than 2 observations.
    DomainError           : transform undefined for some value
                            (e.g. ln of a value <= 0).
    """
    n = len(series)
    if n < 2:
        raise InsufficientDataError(
            f"transform_diff needs at least 2 observations, got {n}"
        )

    frame = series.to_frame()
    raw   = frame.to_numpy(dtype=float)
    try:
        transformed = _apply_transform(transform, raw)
    except ValueError as exc:
        raise DomainError(f"transform failed on {series.symbol or 'series'}: {exc}") from exc

    bad = np.isfinite(raw) & ~np.isfinite(transformed)
    if bad.any():
        row, col = np.argwhere(bad)[0]
        raise DomainError(
            f"transform undefined for {frame.columns[col]}={raw[row, col]!r} "
            f"at {frame.index[row].date()}"
        )

    columns = list(frame.columns)
    if name is not None:
        if len(columns) != 1:
            raise ValueError("name can only be given for a single-field series")
        columns = [name]

    out = pd.DataFrame(transformed[1:] - transformed[:-1],
                       index=frame.index[1:], columns=columns)
    return TimeSeries(out, symbol=series.symbol)


def log_returns(series: TimeSeries, name: str = "log_return") -> TimeSeries:
    """diff(log(x)) of a single-field price series."""
    return transform_diff(series, np.log, name=name if len(series.fields) == 1 else None)


# =============================================================================
# Periodic resampling
# =============================================================================

def end_of_week(weekday: int = FRIDAY) -> PeriodEndFn:
    """
    Period-end function for weeks ending on ``weekday`` (Monday = 0).

    Each timestamp maps to the calendar date (midnight) of the next
    ``weekday`` on or after it, so a Friday maps to itself and a Saturday
    maps to the following Friday.
    """
    if weekday not in range(7):
        raise ValueError(f"weekday must be 0..6, got {weekday}")

    def period_end(ts) -> pd.Timestamp:
        day = pd.Timestamp(ts).normalize()
        return day + pd.Timedelta(days=(weekday - day.weekday()) % 7)

    period_end.__name__ = f"end_of_week_{_DAY_NAMES[weekday]}"
    return period_end


next_friday = end_of_week(FRIDAY)


def last_observation(group: pd.DataFrame) -> pd.Series:
    return group.iloc[-1]


def first_observation(group: pd.DataFrame) -> pd.Series:
    return group.iloc[0]


def ohlc_bar(group: pd.DataFrame) -> pd.Series:
    """Collapse a group into one OHLC bar (volume summed)."""
    agg = {}
    for col in group.columns:
        if col == "open":
            agg[col] = group[col].iloc[0]
        elif col == "high":
            agg[col] = group[col].max()
        elif col == "low":
            agg[col] = group[col].min()
        elif col == "volume":
            agg[col] = group[col].sum()
        else:
            agg[col] = group[col].iloc[-1]
    return pd.Series(agg)


def resample(
    series:     TimeSeries,
    period_end: PeriodEndFn,
    reducer:    ReducerFn = last_observation,
    label:      str = "period_end",
) -> TimeSeries:
    """
    One observation per period, in chronological order.

    Parameters
    ----------
    series     : Source series.
    period_end : Maps a timestamp to the end of its period.
    reducer    : Reduces a period's observations (a DataFrame in
                 chronological order) to one row.
    label      : "period_end" stamps each output with its period end, or
                 with the group's last source timestamp when that is
                 later (intraday data on the final day of a period);
                 "last" always stamps it with the group's last source
                 timestamp.

    Returns
    -------
    TimeSeries with the source fields. An empty input yields an empty
    series, not an error.

    Raises
    ------
    ValueError if ``period_end`` returns NaT for any timestamp.
    """
    if label not in ("period_end", "last"):
        raise ValueError(f"label must be 'period_end' or 'last', got {label!r}")
    if not len(series):
        return TimeSeries.empty(series.fields, symbol=series.symbol)

    frame = series.to_frame()
    keys  = pd.DatetimeIndex([pd.Timestamp(period_end(ts)) for ts in frame.index])
    if keys.hasnans:
        missing = frame.index[keys.isna()]
        raise ValueError(
            f"period_end returned NaT for {len(missing)} timestamp(s), "
            f"first at {missing[0]}"
        )

    rows, stamps = [], []
    # groupby keeps each group's rows in source order and sorts the keys
    for key, group in frame.groupby(keys, sort=True):
        row = reducer(group)
        if isinstance(row, pd.DataFrame):
            row = row.iloc[-1]
        rows.append(row)
        last = group.index[-1]
        # intraday observations can fall after their day's midnight period end
        stamps.append(max(key, last) if label == "period_end" else last)

    out = pd.DataFrame(rows, columns=frame.columns)
    out.index = pd.DatetimeIndex(stamps)
    out = out.sort_index()
    return TimeSeries(out, symbol=series.symbol)


def apply_weekly(series: TimeSeries, reducer: ReducerFn = last_observation) -> TimeSeries:
    """Reduce calendar weeks (Monday..Sunday), stamped with each week's last observation."""
    return resample(series, end_of_week(SUNDAY), reducer, label="last")


def to_weekly(series: TimeSeries) -> TimeSeries:
    """Weekly OHLC bars from daily bars."""
    return apply_weekly(series, ohlc_bar)


# =============================================================================
# Period returns
# =============================================================================

def period_return(
    series:     TimeSeries,
    period_end: PeriodEndFn,
    kind:       str = "arithmetic",
    field:      str = "close",
) -> TimeSeries:
    """
    Return of each period's last price over the previous period's last price.

    The first period is measured against its own first observation.
    ``kind`` is "arithmetic" (P1/P0 - 1) or "log" (ln(P1/P0)).
    """
    if kind not in ("arithmetic", "log"):
        raise ValueError(f"kind must be 'arithmetic' or 'log', got {kind!r}")
    prices = extract_field(series, field) if len(series.fields) > 1 else series
    field  = prices.fields[0]
    if not len(prices):
        raise InsufficientDataError("period_return needs at least 1 observation")

    ends = resample(prices, period_end, last_observation, label="last")
    p1   = ends.values(field)
    p0   = np.concatenate([[prices.values(field)[0]], p1[:-1]])

    if kind == "log":
        if (p1 <= 0).any() or (p0 <= 0).any():
            raise DomainError("log returns need strictly positive prices")
        r = np.log(p1 / p0)
    else:
        r = p1 / p0 - 1.0

    return TimeSeries.from_values(ends.index, r, name="period_return", symbol=series.symbol)


def weekly_return(series: TimeSeries, kind: str = "arithmetic") -> TimeSeries:
    """Calendar-week returns stamped with each week's last trading day."""
    return period_return(series, end_of_week(SUNDAY), kind=kind)
