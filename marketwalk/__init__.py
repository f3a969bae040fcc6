"""
OHLC Market Data Walkthrough
============================
Fetch historical OHLC price series for a market index and a list of
equities, keep them in a keyed in-memory store, derive secondary series
and render charts.

Modules:
    series      - TimeSeries: ordered, timestamp-keyed observations
    store       - SeriesStore: symbol -> TimeSeries mapping
    fetcher     - Provider access (yahoo, csv, synthetic)
    ingest      - Bulk ingestion loop with per-symbol failure isolation
    derive      - Field extraction, log-returns, periodic resampling
    indicators  - Moving averages, Bollinger bands, OBV, volatility
    universe    - Identifier list loading and filtering
    plotter     - PNG chart rendering
    config      - Environment-driven configuration
    utils       - Logging and timing helpers
"""

__version__ = "1.0.0"
