"""
conftest.py
-----------
Shared fixtures: synthetic OHLCV series and a scripted fetch function so
the suite runs without network access.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np
import pandas as pd
import pytest

from marketwalk.errors import FetchFailure
from marketwalk.series import TimeSeries


def make_bars(n=120, start="2024-01-01", seed=42, symbol="TEST"):
    """Synthetic daily OHLCV TimeSeries on business days."""
    rng    = np.random.default_rng(seed)
    dates  = pd.bdate_range(start, periods=n)
    close  = 100.0 * np.exp(np.cumsum(rng.normal(0.0005, 0.015, n)))
    opn    = close * rng.uniform(0.995, 1.005, n)
    return TimeSeries(pd.DataFrame({
        "open":     opn,
        "high":     np.maximum(opn, close) * rng.uniform(1.000, 1.010, n),
        "low":      np.minimum(opn, close) * rng.uniform(0.990, 1.000, n),
        "close":    close,
        "volume":   rng.integers(100_000, 2_000_000, n).astype(float),
        "adjusted": close,
    }, index=dates), symbol=symbol)


@pytest.fixture
def bars():
    return make_bars()


@pytest.fixture
def week_series():
    """Mon 2024-01-08 .. Fri 2024-01-12 with values 10..14."""
    dates = pd.date_range("2024-01-08", periods=5, freq="D")
    return TimeSeries.from_values(dates, [10, 11, 12, 13, 14], name="close")


@pytest.fixture
def scripted_fetch():
    """
    Fetch function that fails for symbols in ``bad`` and returns a
    distinct synthetic series for everything else.
    """
    def factory(bad=("BADSYM",)):
        calls = []

        def fetch(symbol, source):
            calls.append(symbol)
            if symbol in bad:
                raise FetchFailure(symbol, "not found")
            return make_bars(n=30, seed=sum(map(ord, symbol)), symbol=symbol)

        fetch.calls = calls
        return fetch
    return factory
