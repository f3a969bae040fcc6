"""
test_fetcher.py
---------------
Unit tests for SourceSpec validation and the yahoo, csv and synthetic
providers. yfinance is mocked so the suite needs no network.

Run from project root:
    pytest tests/ -v
"""

from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

from marketwalk.errors import FetchFailure
from marketwalk.fetcher import SourceSpec, fetch_series


def _yahoo_frame(n=5, start="2024-01-02", multi=False):
    idx = pd.bdate_range(start, periods=n, name="Date")
    base = np.linspace(100.0, 104.0, n)
    df = pd.DataFrame({
        "Open": base, "High": base + 1, "Low": base - 1,
        "Close": base + 0.5, "Adj Close": base + 0.4, "Volume": np.full(n, 1e6),
    }, index=idx)
    if multi:
        df.columns = pd.MultiIndex.from_product([df.columns, ["AAPL"]],
                                                names=["Price", "Ticker"])
    return df


# =============================================================================
# SourceSpec
# =============================================================================

class TestSourceSpec:

    def test_dates_converted(self):
        src = SourceSpec("yahoo", "2020-01-01", "2020-12-31")
        assert src.start == pd.Timestamp("2020-01-01")
        assert src.end == pd.Timestamp("2020-12-31")

    def test_open_end(self):
        assert SourceSpec("yahoo", "2020-01-01").end is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="provider"):
            SourceSpec("bloomberg")

    def test_start_after_end(self):
        with pytest.raises(ValueError):
            SourceSpec("yahoo", "2021-01-01", "2020-01-01")


# =============================================================================
# Yahoo provider
# =============================================================================

class TestYahoo:

    @patch("marketwalk.fetcher.yf.download")
    def test_flat_columns(self, mock_dl):
        mock_dl.return_value = _yahoo_frame()
        ts = fetch_series("AAPL", SourceSpec("yahoo", "2024-01-02", "2024-01-08"))
        assert ts.fields == ["open", "high", "low", "close", "adjusted", "volume"]
        assert ts.symbol == "AAPL"
        assert len(ts) == 5

    @patch("marketwalk.fetcher.yf.download")
    def test_multiindex_columns_flattened(self, mock_dl):
        mock_dl.return_value = _yahoo_frame(multi=True)
        ts = fetch_series("AAPL", SourceSpec("yahoo", "2024-01-02", "2024-01-08"))
        assert ts.is_ohlc
        assert "adjusted" in ts.fields

    @patch("marketwalk.fetcher.yf.download")
    def test_end_date_made_inclusive(self, mock_dl):
        mock_dl.return_value = _yahoo_frame()
        fetch_series("^GSPC", SourceSpec("yahoo", "1960-01-04", "2009-01-01"))
        _, kwargs = mock_dl.call_args
        assert kwargs["start"] == "1960-01-04"
        assert kwargs["end"] == "2009-01-02"
        assert kwargs["progress"] is False

    @patch("marketwalk.fetcher.yf.download")
    def test_empty_result_is_failure(self, mock_dl):
        mock_dl.return_value = pd.DataFrame()
        with pytest.raises(FetchFailure) as info:
            fetch_series("BADSYM", SourceSpec("yahoo", "2024-01-01", "2024-02-01"))
        assert info.value.symbol == "BADSYM"
        assert "no data" in info.value.reason

    @patch("marketwalk.fetcher.yf.download")
    def test_provider_exception_wrapped(self, mock_dl):
        mock_dl.side_effect = ConnectionError("timed out")
        with pytest.raises(FetchFailure, match="timed out"):
            fetch_series("AAPL", SourceSpec("yahoo", "2024-01-01", "2024-02-01"))


# =============================================================================
# CSV provider
# =============================================================================

class TestCsv:

    @pytest.fixture
    def csv_dir(self, tmp_path):
        df = _yahoo_frame(n=10)
        df.iloc[::-1].to_csv(tmp_path / "AAPL.csv")
        _yahoo_frame(n=3).to_csv(tmp_path / "GSPC.csv")
        return tmp_path

    def test_reads_and_sorts(self, csv_dir):
        ts = fetch_series("AAPL", SourceSpec("csv", csv_dir=str(csv_dir)))
        assert len(ts) == 10
        assert ts.index.is_monotonic_increasing

    def test_date_range_filter(self, csv_dir):
        ts = fetch_series("AAPL", SourceSpec("csv", "2024-01-04", "2024-01-08",
                                             csv_dir=str(csv_dir)))
        assert ts.first_timestamp == pd.Timestamp("2024-01-04")
        assert ts.last_timestamp == pd.Timestamp("2024-01-08")

    def test_caret_stripped_from_filename(self, csv_dir):
        ts = fetch_series("^GSPC", SourceSpec("csv", csv_dir=str(csv_dir)))
        assert len(ts) == 3

    def test_missing_file(self, csv_dir):
        with pytest.raises(FetchFailure, match="not found"):
            fetch_series("ZZZZ", SourceSpec("csv", csv_dir=str(csv_dir)))

    def test_no_rows_in_range(self, csv_dir):
        with pytest.raises(FetchFailure):
            fetch_series("AAPL", SourceSpec("csv", "1990-01-01", "1990-12-31",
                                            csv_dir=str(csv_dir)))

    def test_needs_directory(self):
        with pytest.raises(FetchFailure):
            fetch_series("AAPL", SourceSpec("csv"))


# =============================================================================
# Synthetic provider
# =============================================================================

class TestSynthetic:

    SRC = SourceSpec("synthetic", "2024-01-01", "2024-06-28")

    def test_deterministic_per_symbol(self):
        a1 = fetch_series("AAPL", self.SRC)
        a2 = fetch_series("AAPL", self.SRC)
        b  = fetch_series("MSFT", self.SRC)
        assert a1.equals(a2)
        assert not a1.equals(b)

    def test_business_days_in_range(self):
        ts = fetch_series("AAPL", self.SRC)
        assert len(ts) == len(pd.bdate_range("2024-01-01", "2024-06-28"))
        assert all(d.weekday() < 5 for d in ts.index)

    def test_ohlc_consistent(self):
        df = fetch_series("AAPL", self.SRC).to_frame()
        assert (df["high"] >= df[["open", "close"]].max(axis=1)).all()
        assert (df["low"] <= df[["open", "close"]].min(axis=1)).all()
        assert (df["volume"] > 0).all()

    def test_weekend_only_range(self):
        with pytest.raises(FetchFailure):
            fetch_series("AAPL", SourceSpec("synthetic", "2024-01-06", "2024-01-07"))
