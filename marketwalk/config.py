"""
config.py
---------
Centralised configuration for the walkthrough.
All parameters are read from environment variables with sensible defaults,
so the same script runs against Yahoo Finance, a local CSV mirror or the
offline synthetic provider.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class IndexConfig:
    """Part 1: the market index series."""
    symbol:   str           = os.getenv("MW_INDEX_SYMBOL", "^GSPC")
    start:    str           = os.getenv("MW_INDEX_START",  "1960-01-04")
    end:      Optional[str] = os.getenv("MW_INDEX_END",    "2009-01-01")
    zoom:     str           = "2008-12"     # candlestick close-up window


@dataclass
class UniverseConfig:
    """Part 2: equities taken from a static listing file."""
    list_path: str           = os.getenv("MW_LIST_PATH", "nasdaq100list.csv")
    prefix:    str           = os.getenv("MW_PREFIX",    "A")
    start:     str           = os.getenv("MW_UNIVERSE_START", "2000-01-01")
    end:       Optional[str] = os.getenv("MW_UNIVERSE_END") or None
    showcase:  str           = "AAPL"       # symbol charted with overlays
    demo_symbols: list = field(default_factory=lambda: [
        "AAPL", "ABNB", "ADBE", "ADI", "ADP", "ADSK", "AEP", "AMAT", "AMD", "AMGN", "AMZN",
    ])


@dataclass
class ChartConfig:
    """Overlay parameters for the Bollinger band chart."""
    bb_period: int   = 20
    bb_std:    float = 2.0
    bb_ma:     str   = "SMA"        # SMA | EMA | WMA
    dpi:       int   = int(os.getenv("MW_DPI", "150"))


@dataclass
class WalkthroughConfig:
    """Master configuration aggregating all sub-configs."""
    index:    IndexConfig    = field(default_factory=IndexConfig)
    universe: UniverseConfig = field(default_factory=UniverseConfig)
    charts:   ChartConfig    = field(default_factory=ChartConfig)

    # Data source
    provider:    str           = os.getenv("MW_PROVIDER", "yahoo")   # yahoo | csv | synthetic
    csv_dir:     Optional[str] = os.getenv("MW_CSV_DIR") or None
    auto_adjust: bool          = os.getenv("MW_AUTO_ADJUST", "false").lower() == "true"
    max_workers: int           = int(os.getenv("MW_WORKERS", "1"))

    # Paths
    output_dir: str           = os.getenv("MW_OUTPUT_DIR", "outputs")
    log_dir:    Optional[str] = os.getenv("MW_LOG_DIR") or None
    log_level:  str           = os.getenv("LOG_LEVEL", "INFO")


# Singleton instance used throughout the project
CONFIG = WalkthroughConfig()
