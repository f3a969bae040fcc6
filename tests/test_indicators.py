"""
test_indicators.py
------------------
Unit tests for moving averages, Bollinger bands, On-Balance Volume and
rolling volatility.

Run from project root:
    pytest tests/ -v
"""

import numpy as np
import pandas as pd
import pytest

from marketwalk.errors import FieldNotFoundError, InsufficientDataError
from marketwalk.indicators import (
    moving_average, sma, ema, bollinger_bands, on_balance_volume, rolling_volatility,
)
from marketwalk.series import TimeSeries


def _frame_series(**cols):
    n   = len(next(iter(cols.values())))
    idx = pd.bdate_range("2024-01-01", periods=n)
    return TimeSeries(pd.DataFrame(cols, index=idx), symbol="T")


# =============================================================================
# Moving averages
# =============================================================================

class TestMovingAverage:

    def test_sma(self):
        s   = pd.Series([1.0, 2.0, 3.0, 4.0, 5.0])
        out = moving_average(s, 3, "SMA")
        assert out.iloc[:2].isna().all()
        np.testing.assert_allclose(out.iloc[2:], [2.0, 3.0, 4.0])

    def test_ema_warmup_is_nan(self):
        s   = pd.Series(np.arange(10, dtype=float))
        out = moving_average(s, 4, "ema")
        assert out.iloc[:3].isna().all()
        assert out.iloc[3:].notna().all()

    def test_ema_of_constant_is_constant(self):
        out = moving_average(pd.Series([7.0] * 8), 3, "EMA")
        np.testing.assert_allclose(out.dropna(), 7.0)

    def test_wma_weights_newest_most(self):
        out = moving_average(pd.Series([1.0, 2.0, 3.0]), 3, "WMA")
        # (1*1 + 2*2 + 3*3) / 6
        assert out.iloc[-1] == pytest.approx(14.0 / 6.0)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            moving_average(pd.Series([1.0, 2.0]), 2, "HMA")

    def test_bad_window(self):
        with pytest.raises(ValueError):
            moving_average(pd.Series([1.0, 2.0]), 0)

    def test_series_wrappers_name_fields(self, bars):
        assert sma(bars, 10).fields == ["sma_10"]
        assert ema(bars, 5).fields == ["ema_5"]
        assert len(sma(bars, 10)) == len(bars)


# =============================================================================
# Bollinger bands
# =============================================================================

class TestBollingerBands:

    def test_fields_and_warmup(self, bars):
        bb = bollinger_bands(bars, n=20, sd=2.0)
        assert bb.fields == ["dn", "mavg", "up", "pct_b"]
        df = bb.to_frame()
        assert df.iloc[:19].isna().all().all()
        assert df.iloc[19:].notna().all().all()

    def test_band_ordering(self, bars):
        df = bollinger_bands(bars).to_frame().dropna()
        assert (df["dn"] <= df["mavg"]).all()
        assert (df["mavg"] <= df["up"]).all()

    def test_centre_is_sma_of_close(self, bars):
        bb = bollinger_bands(bars, n=20)
        expected = bars.column("close").rolling(20).mean()
        np.testing.assert_allclose(bb.values("mavg")[19:], expected.iloc[19:])

    def test_width_uses_population_std(self):
        ts = _frame_series(close=[1.0, 3.0])
        bb = bollinger_bands(ts, n=2, sd=1.0)
        # population std of {1, 3} is 1
        assert bb.values("up")[-1] == pytest.approx(3.0)
        assert bb.values("dn")[-1] == pytest.approx(1.0)
        assert bb.values("pct_b")[-1] == pytest.approx(1.0)

    def test_constant_price_pct_b_is_nan(self):
        ts = _frame_series(close=[5.0] * 25)
        bb = bollinger_bands(ts, n=20)
        assert np.isnan(bb.values("pct_b")[-1])
        assert bb.values("up")[-1] == pytest.approx(5.0)

    def test_typical_price(self, bars):
        bb = bollinger_bands(bars, n=20, price="hlc")
        df = bars.to_frame()
        tp = (df["high"] + df["low"] + df["close"]) / 3.0
        assert bb.values("mavg")[-1] == pytest.approx(tp.iloc[-20:].mean())

    def test_insufficient_data(self, bars):
        with pytest.raises(InsufficientDataError):
            bollinger_bands(bars.head(10), n=20)

    def test_bad_price(self, bars):
        with pytest.raises(ValueError):
            bollinger_bands(bars, price="open")


# =============================================================================
# On-Balance Volume
# =============================================================================

class TestOnBalanceVolume:

    def test_known_sequence(self):
        ts  = _frame_series(close=[10.0, 11.0, 10.5, 10.5, 12.0],
                            volume=[100.0, 200.0, 300.0, 400.0, 500.0])
        obv = on_balance_volume(ts)
        assert obv.fields == ["obv"]
        np.testing.assert_allclose(obv.values("obv"), [100.0, 300.0, 0.0, 0.0, 500.0])

    def test_requires_volume(self):
        ts = _frame_series(close=[1.0, 2.0])
        with pytest.raises(FieldNotFoundError):
            on_balance_volume(ts)

    def test_empty(self):
        out = on_balance_volume(TimeSeries.empty(["close", "volume"]))
        assert len(out) == 0
        assert out.fields == ["obv"]


# =============================================================================
# Rolling volatility
# =============================================================================

class TestRollingVolatility:

    def test_annualisation(self):
        rng = np.random.default_rng(0)
        idx = pd.bdate_range("2024-01-01", periods=60)
        r   = TimeSeries.from_values(idx, rng.normal(0, 0.01, 60), name="log_return")
        raw = rolling_volatility(r, window=20)
        ann = rolling_volatility(r, window=20, periods_per_year=252)
        assert raw.fields == ["volatility"]
        np.testing.assert_allclose(ann.values("volatility")[19:],
                                   raw.values("volatility")[19:] * np.sqrt(252))

    def test_multi_field_rejected(self, bars):
        with pytest.raises(ValueError):
            rolling_volatility(bars)

    def test_window_too_small(self):
        idx = pd.bdate_range("2024-01-01", periods=5)
        r   = TimeSeries.from_values(idx, [0.1] * 5)
        with pytest.raises(ValueError):
            rolling_volatility(r, window=1)
