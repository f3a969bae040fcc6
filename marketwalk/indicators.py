"""
indicators.py
-------------
Technical overlays computed on OHLCV series.

Bollinger Bands
---------------
    mavg_t = MA_n(p)_t
    up_t   = mavg_t + k * sd_n(p)_t
    dn_t   = mavg_t - k * sd_n(p)_t
    %B_t   = (p_t - dn_t) / (up_t - dn_t)

where p is the close or the typical price (H + L + C) / 3 and sd_n is the
population rolling standard deviation. The bands widen when the price
becomes volatile and contract when it trades in a tight range.

On-Balance Volume
-----------------
    OBV_0 = V_0
    OBV_t = OBV_{t-1} + sign(C_t - C_{t-1}) * V_t
"""

from typing import Optional

import numpy as np
import pandas as pd

from marketwalk.errors import InsufficientDataError
from marketwalk.series import TimeSeries

MA_KINDS = ("SMA", "EMA", "WMA")


def moving_average(values: pd.Series, n: int, kind: str = "SMA") -> pd.Series:
    """
    Moving average of a pandas Series.

    Parameters
    ----------
    values : Input series.
    n      : Window length (>= 1).
    kind   : "SMA" (simple), "EMA" (exponential, span n) or
             "WMA" (linearly weighted, newest weight n).
    """
    if n < 1:
        raise ValueError(f"window length must be >= 1, got {n}")
    kind = kind.upper()
    if kind == "SMA":
        return values.rolling(n).mean()
    if kind == "EMA":
        ema = values.ewm(span=n, adjust=False).mean()
        ema.iloc[: n - 1] = np.nan
        return ema
    if kind == "WMA":
        w = np.arange(1, n + 1, dtype=float)
        return values.rolling(n).apply(lambda x: np.dot(x, w) / w.sum(), raw=True)
    raise ValueError(f"unknown moving average '{kind}'; choose from {MA_KINDS}")


def sma(series: TimeSeries, n: int, field: str = "close") -> TimeSeries:
    out = moving_average(series.column(field), n, "SMA").to_frame(f"sma_{n}")
    return TimeSeries(out, symbol=series.symbol)


def ema(series: TimeSeries, n: int, field: str = "close") -> TimeSeries:
    out = moving_average(series.column(field), n, "EMA").to_frame(f"ema_{n}")
    return TimeSeries(out, symbol=series.symbol)


def bollinger_bands(
    series: TimeSeries,
    n:      int   = 20,
    sd:     float = 2.0,
    ma:     str   = "SMA",
    price:  str   = "close",
) -> TimeSeries:
    """
    Bollinger bands with fields ``dn, mavg, up, pct_b``.

    Parameters
    ----------
    series : OHLC series (or any series holding ``close``).
    n      : Moving-average periods.
    sd     : Number of standard deviations for the bands.
    ma     : Moving-average kind for the centre line.
    price  : "close" or "hlc" (typical price).

    The first n-1 observations are NaN.
    """
    if len(series) < n:
        raise InsufficientDataError(
            f"bollinger_bands needs at least {n} observations, got {len(series)}"
        )
    if price == "hlc":
        series.require("high", "low", "close")
        df = series.to_frame()
        p  = (df["high"] + df["low"] + df["close"]) / 3.0
    elif price == "close":
        p = series.column("close")
    else:
        raise ValueError(f"price must be 'close' or 'hlc', got {price!r}")

    mavg = moving_average(p, n, ma)
    dev  = p.rolling(n).std(ddof=0)
    up   = mavg + sd * dev
    dn   = mavg - sd * dev
    width = (up - dn).replace(0.0, np.nan)
    out = pd.DataFrame({
        "dn":    dn,
        "mavg":  mavg,
        "up":    up,
        "pct_b": (p - dn) / width,
    })
    return TimeSeries(out, symbol=series.symbol)


def on_balance_volume(series: TimeSeries) -> TimeSeries:
    """Cumulative volume signed by the direction of the close."""
    series.require("close", "volume")
    if not len(series):
        return TimeSeries.empty(["obv"], symbol=series.symbol)
    df   = series.to_frame()
    sign = np.sign(df["close"].diff()).fillna(1.0)
    obv  = (sign * df["volume"]).cumsum()
    return TimeSeries(obv.to_frame("obv"), symbol=series.symbol)


def rolling_volatility(
    returns: TimeSeries,
    window: int = 20,
    periods_per_year: Optional[int] = None,
) -> TimeSeries:
    """Rolling standard deviation of a single-field return series, optionally annualised."""
    if len(returns.fields) != 1:
        raise ValueError("rolling_volatility expects a single-field return series")
    if window < 2:
        raise ValueError("window must be >= 2")
    vol = returns.column(returns.fields[0]).rolling(window).std()
    if periods_per_year:
        vol = vol * np.sqrt(periods_per_year)
    return TimeSeries(vol.to_frame("volatility"), symbol=returns.symbol)
