"""
plotter.py
----------
PNG charts for price series.

All figures use matplotlib with the Agg backend (headless safe).

Chart kinds
-----------
1. candles      Candlestick price panel (falls back to a close line for
                long histories), optional volume / OBV panels and
                Bollinger band overlay.
2. line         Close (or the single field) as a line.
3. multi_panel  One panel per field, each with its own y axis.

``render`` returns the PNG bytes; ``write_image`` puts them on disk.
"""

import io
import os
import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np
import matplotlib
matplotlib.use("Agg")                     # headless rendering
import matplotlib.pyplot as plt
import matplotlib.dates as mdates
import matplotlib.gridspec as gridspec
from matplotlib.ticker import FuncFormatter

from marketwalk.errors import InsufficientDataError
from marketwalk.indicators import bollinger_bands, on_balance_volume
from marketwalk.series import OHLC_FIELDS, TimeSeries

warnings.filterwarnings("ignore", category=UserWarning)

# --------------------------------------------------------------------------
# Dark theme (applied inside render via plt.rc_context)
# --------------------------------------------------------------------------
BACKGROUND = "#0d1117"
PANEL      = "#161b22"
GRID       = "#21262d"
INK        = "#e6edf3"
MUTED      = "#8b949e"

COLORS = {
    "up":       "#3fb950",     # candle / volume bar, close >= open
    "down":     "#f85149",
    "price":    "#58a6ff",
    "band":     MUTED,
    "band_mid": "#e3b341",
    "obv":      "#bc8cff",
}

THEME = {
    "figure.facecolor":  BACKGROUND,
    "axes.facecolor":    PANEL,
    "axes.edgecolor":    GRID,
    "axes.labelcolor":   INK,
    "xtick.color":       MUTED,
    "ytick.color":       MUTED,
    "text.color":        INK,
    "grid.color":        GRID,
    "grid.linestyle":    "--",
    "grid.linewidth":    0.5,
    "legend.facecolor":  PANEL,
    "legend.labelcolor": INK,
    "font.family":       "monospace",
    "font.size":         9,
}

vol_fmt = FuncFormatter(lambda x, _: f"{x / 1e6:,.0f}M")

CHART_KINDS = ("candles", "line", "multi_panel")


@dataclass
class BandOptions:
    """Moving-average band overlay parameters."""
    n:  int   = 20
    sd: float = 2.0
    ma: str   = "SMA"


@dataclass
class ChartOptions:
    """What to draw and how."""
    kind:        str                   = "candles"
    title:       Optional[str]         = None
    volume:      bool                  = True
    obv:         bool                  = False
    bbands:      Optional[BandOptions] = None
    dpi:         int                   = 150
    max_candles: int                   = 300      # beyond this draw a close line

    def __post_init__(self):
        if self.kind not in CHART_KINDS:
            raise ValueError(f"kind must be one of {CHART_KINDS}, got {self.kind!r}")


# =============================================================================
# Panels
# =============================================================================

def _x(index):
    return mdates.date2num(index.to_pydatetime())


def _draw_candles(ax, df) -> None:
    x     = _x(df.index)
    width = 0.6 * (np.median(np.diff(x)) if len(x) > 1 else 1.0)
    up    = (df["close"] >= df["open"]).to_numpy()
    colors = np.where(up, COLORS["up"], COLORS["down"]).tolist()

    ax.vlines(x, df["low"], df["high"], colors=colors, lw=0.8)
    body_lo = np.minimum(df["open"], df["close"])
    body_hi = np.maximum(df["open"], df["close"])
    ax.bar(x, body_hi - body_lo, width=width, bottom=body_lo,
           color=colors, edgecolor=colors, linewidth=0.5)


def _draw_volume(ax, df) -> None:
    x = _x(df.index)
    width = 0.6 * (np.median(np.diff(x)) if len(x) > 1 else 1.0)
    if "open" in df.columns:
        up = (df["close"] >= df["open"]).to_numpy()
    else:
        up = (df["close"].diff().fillna(0) >= 0).to_numpy()
    colors = np.where(up, COLORS["up"], COLORS["down"]).tolist()
    ax.bar(x, df["volume"], width=width, color=colors, alpha=0.7)
    ax.set_ylabel("Volume")
    ax.yaxis.set_major_formatter(vol_fmt)


def _price_panel(ax, series: TimeSeries, options: ChartOptions) -> None:
    df = series.to_frame()
    if options.kind == "candles" and len(df) <= options.max_candles:
        _draw_candles(ax, df)
    else:
        col = "close" if "close" in df.columns else df.columns[0]
        ax.plot(_x(df.index), df[col], color=COLORS["price"], lw=1.0, label=col)

    if options.bbands is not None:
        bb = bollinger_bands(series, options.bbands.n, options.bbands.sd,
                             options.bbands.ma).to_frame()
        label = f"BBands({options.bbands.n},{options.bbands.sd:g},{options.bbands.ma})"
        ax.plot(_x(bb.index), bb["up"],   color=COLORS["band"], lw=0.8, ls="--", label=label)
        ax.plot(_x(bb.index), bb["mavg"], color=COLORS["band_mid"], lw=0.8, ls="--")
        ax.plot(_x(bb.index), bb["dn"],   color=COLORS["band"], lw=0.8, ls="--")
        ax.fill_between(_x(bb.index), bb["up"], bb["dn"], alpha=0.06, color=COLORS["price"])

    ax.set_ylabel("Price")
    ax.grid(True, alpha=0.4)
    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc="upper left", fontsize=7)


def _build_figure(series: TimeSeries, options: ChartOptions):
    title = options.title or (series.symbol or "series")

    if options.kind == "multi_panel":
        fields = series.fields
        fig, axes = plt.subplots(len(fields), 1, figsize=(12, 2.2 * len(fields)),
                                 sharex=True, squeeze=False)
        df = series.to_frame()
        for ax, col in zip(axes[:, 0], fields):
            ax.plot(_x(df.index), df[col], color=COLORS["price"], lw=0.9)
            ax.set_ylabel(col)
            ax.grid(True, alpha=0.4)
            ax.xaxis_date()
        fig.suptitle(title, fontsize=12, fontweight="bold")
        return fig

    has_volume = options.volume and "volume" in series.fields and "close" in series.fields
    panels  = ["price"] + (["volume"] if has_volume else []) + (["obv"] if options.obv else [])
    heights = [3] + [1] * (len(panels) - 1)

    fig = plt.figure(figsize=(12, 4 + 1.5 * (len(panels) - 1)))
    gs  = gridspec.GridSpec(len(panels), 1, hspace=0.05, height_ratios=heights)
    ax_price = fig.add_subplot(gs[0])
    _price_panel(ax_price, series, options)

    for i, panel in enumerate(panels[1:], start=1):
        ax = fig.add_subplot(gs[i], sharex=ax_price)
        if panel == "volume":
            _draw_volume(ax, series.to_frame())
        else:
            obv = on_balance_volume(series).to_frame()
            ax.plot(_x(obv.index), obv["obv"], color=COLORS["obv"], lw=1.0)
            ax.set_ylabel("OBV")
            ax.yaxis.set_major_formatter(vol_fmt)
        ax.grid(True, alpha=0.4)

    for ax in fig.axes:
        ax.xaxis_date()
    for ax in fig.axes[:-1]:
        ax.tick_params(labelbottom=False)
    fig.suptitle(title, fontsize=12, fontweight="bold")
    return fig


# =============================================================================
# Public API
# =============================================================================

def render(series: TimeSeries, options: Optional[ChartOptions] = None) -> bytes:
    """
    Draw ``series`` and return the PNG bytes.

    Raises
    ------
    InsufficientDataError : empty series.
    FieldNotFoundError    : an overlay needs a field the series lacks.
    """
    options = options or ChartOptions()
    if not len(series):
        raise InsufficientDataError("cannot chart an empty series")
    if options.kind == "candles":
        series.require(*OHLC_FIELDS)
    if options.obv:
        series.require("close", "volume")

    buf = io.BytesIO()
    with plt.rc_context(THEME):
        fig = _build_figure(series, options)
        try:
            fig.savefig(buf, format="png", dpi=options.dpi, bbox_inches="tight",
                        facecolor=BACKGROUND)
        finally:
            plt.close(fig)
    return buf.getvalue()


def write_image(data: bytes, path: str) -> str:
    """Write image bytes to ``path`` (parent directories created)."""
    os.makedirs(os.path.dirname(path) if os.path.dirname(path) else ".", exist_ok=True)
    with open(path, "wb") as fh:
        fh.write(data)
    return path


def save_chart(series: TimeSeries, options: Optional[ChartOptions], path: str) -> str:
    return write_image(render(series, options), path)
