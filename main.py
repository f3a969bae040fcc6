"""
main.py
-------
Entry point for the OHLC walkthrough.

Part 1 downloads the S&P 500 index (^GSPC), inspects it, aggregates it to
weekly observations and charts closes and log-returns. Part 2 loads the
NASDAQ-100 listing, downloads every member whose symbol starts with the
configured prefix, and charts one of them with volume, OBV and Bollinger
band overlays.

Usage
-----
# Yahoo Finance (default):
    python main.py

# Offline demo with synthetic prices:
    python main.py --demo

# Local CSV mirror, four download threads:
    MW_PROVIDER=csv MW_CSV_DIR=data python main.py --workers 4

Environment variables
---------------------
See marketwalk/config.py for the full list of supported env vars.
"""

import os
import sys
import argparse

# Ensure the package is importable when running from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from marketwalk.config  import CONFIG, WalkthroughConfig
from marketwalk.utils   import get_logger, set_level, ensure_dir, preview

log = get_logger("main", log_dir=CONFIG.log_dir, level=CONFIG.log_level)


# =============================================================================
# Part 1: the S&P 500 index
# =============================================================================

def run_index(cfg: WalkthroughConfig, out: str) -> None:
    """Fetch the index, inspect it, aggregate weekly, chart closes and log-returns."""
    from marketwalk.fetcher import SourceSpec
    from marketwalk.ingest  import ingest_symbols
    from marketwalk.store   import SeriesStore
    from marketwalk.derive  import (
        close, op_cl, cl_cl, volume, resample, next_friday,
        last_observation, apply_weekly, log_returns, weekly_return,
    )
    from marketwalk.plotter import ChartOptions, save_chart

    sym    = cfg.index.symbol
    source = SourceSpec(cfg.provider, cfg.index.start, cfg.index.end,
                        csv_dir=cfg.csv_dir, auto_adjust=cfg.auto_adjust)
    sp500  = SeriesStore()
    ingest_symbols([sym], source, sp500)

    if sym not in sp500:
        log.error("Index %s unavailable; skipping part 1.", sym)
        return

    gspc = sp500[sym]
    log.info("%r", gspc)
    log.info("First observations:\n%s", preview(gspc))
    log.info("Volume:\n%s", preview(volume(gspc)))

    for expr in ("1970-03", f"/{cfg.index.start[:4]}-01-06", "2008-12-25/"):
        sub = gspc.window(expr)
        log.info("Window %-14s -> %d observations", expr, len(sub))

    log.info("Close:\n%s", preview(close(gspc)))
    log.info("OpCl:\n%s",  preview(op_cl(gspc)))
    log.info("ClCl:\n%s",  preview(cl_cl(gspc)))

    dpi = cfg.charts.dpi
    save_chart(gspc, ChartOptions(kind="multi_panel", title=f"{sym} OHLC", dpi=dpi),
               os.path.join(out, "gspc-ohlc.png"))
    save_chart(gspc, ChartOptions(kind="candles", title=sym, dpi=dpi),
               os.path.join(out, "gspc-chart.png"))

    zoom = gspc.window(cfg.index.zoom)
    if len(zoom):
        save_chart(zoom, ChartOptions(kind="candles", title=f"{sym} {cfg.index.zoom}", dpi=dpi),
                   os.path.join(out, "gspc-candlestick.png"))

    # Last traded day of every week, stamped with the following Friday
    sp_we = resample(gspc, next_friday, last_observation)
    log.info("Weekly (next Friday): %d observations", len(sp_we))
    sp_we = apply_weekly(gspc)
    log.info("Weekly (apply_weekly):\n%s", preview(sp_we))

    spc_we = close(sp_we)
    save_chart(spc_we, ChartOptions(kind="line", title=f"{sym} weekly close", dpi=dpi),
               os.path.join(out, "gspc-friday-close.png"))

    lr = log_returns(spc_we)
    save_chart(lr, ChartOptions(kind="line", title=f"{sym} weekly log-returns", dpi=dpi),
               os.path.join(out, "gspc-lr.png"))

    # The built-in version measures the first week from its first close
    log.info("weekly_return(log):\n%s", preview(weekly_return(gspc, kind="log")))
    log.info("diff(log(close)):\n%s", preview(lr))


# =============================================================================
# Part 2: NASDAQ-100 members
# =============================================================================

def run_universe(cfg: WalkthroughConfig, out: str, demo: bool = False) -> None:
    """Load the listing, ingest the filtered members, chart the showcase symbol."""
    from marketwalk.fetcher  import SourceSpec
    from marketwalk.ingest   import ingest_symbols, summarize
    from marketwalk.store    import SeriesStore
    from marketwalk.universe import load_identifier_list, filter_by_prefix, duplicated_names
    from marketwalk.plotter  import ChartOptions, BandOptions, save_chart

    ucfg = cfg.universe
    if os.path.exists(ucfg.list_path):
        records = load_identifier_list(ucfg.list_path)
        dupes   = duplicated_names(records)
        log.info("Listing: %d rows, duplicated names: %s", len(records), dupes or "none")
        symbols = filter_by_prefix(records, ucfg.prefix)
    elif demo:
        symbols = [s for s in ucfg.demo_symbols if s.startswith(ucfg.prefix)]
        log.info("No listing at %s; using %d demo symbols.", ucfg.list_path, len(symbols))
    else:
        log.error("Listing file %s not found; skipping part 2.", ucfg.list_path)
        return

    source = SourceSpec(cfg.provider, ucfg.start, ucfg.end,
                        csv_dir=cfg.csv_dir, auto_adjust=cfg.auto_adjust)
    nasdaq   = SeriesStore()
    outcomes = ingest_symbols(symbols, source, nasdaq, max_workers=cfg.max_workers)
    report   = summarize(outcomes)
    if report.failed:
        log.warning("Not downloadable: %s", ", ".join(report.failed))
    log.info("Store summary:\n%s", nasdaq.summary().to_string(index=False))

    sym = ucfg.showcase
    if sym not in nasdaq:
        log.warning("Showcase symbol %s not in store; no overlay charts.", sym)
        return

    series = nasdaq[sym]
    log.info("%s first observations:\n%s", sym, preview(series))

    dpi = cfg.charts.dpi
    bands = BandOptions(n=cfg.charts.bb_period, sd=cfg.charts.bb_std, ma=cfg.charts.bb_ma)
    save_chart(series, ChartOptions(title=sym, dpi=dpi),
               os.path.join(out, f"{sym.lower()}-chart.png"))
    save_chart(series, ChartOptions(title=f"{sym} OBV", obv=True, dpi=dpi),
               os.path.join(out, f"{sym.lower()}-obv.png"))
    save_chart(series, ChartOptions(title=f"{sym} Bollinger", bbands=bands, dpi=dpi),
               os.path.join(out, f"{sym.lower()}-bbands.png"))


# =============================================================================
# Entry point
# =============================================================================

def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="OHLC walkthrough: keyed ingestion, derived series, charts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --demo                 # Offline, synthetic prices
  python main.py --prefix M             # NASDAQ-100 members starting with M
  python main.py --workers 4            # Parallel downloads
        """,
    )
    p.add_argument("--demo",       action="store_true", help="Use the synthetic provider")
    p.add_argument("--list",       default=None, help="Identifier listing CSV")
    p.add_argument("--prefix",     default=None, help="Symbol prefix filter")
    p.add_argument("--workers",    type=int, default=None, help="Download threads")
    p.add_argument("--output-dir", default=None, help="Chart directory")
    p.add_argument("--skip-index", action="store_true", help="Skip part 1")
    p.add_argument("--log-level",  default=None,
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log verbosity")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    cfg  = WalkthroughConfig()

    if args.demo:
        cfg.provider = "synthetic"
    if args.list:
        cfg.universe.list_path = args.list
    if args.prefix:
        cfg.universe.prefix = args.prefix
    if args.workers:
        cfg.max_workers = args.workers
    if args.output_dir:
        cfg.output_dir = args.output_dir
    if args.log_level:
        cfg.log_level = args.log_level
    set_level(cfg.log_level)

    out = ensure_dir(os.path.join(cfg.output_dir, "charts"))

    log.info("=" * 60)
    log.info("  OHLC WALKTHROUGH")
    log.info("  Provider: %s", cfg.provider)
    log.info("  Index: %s  Universe prefix: '%s'", cfg.index.symbol, cfg.universe.prefix)
    log.info("  Charts: %s", out)
    log.info("=" * 60)

    if not args.skip_index:
        run_index(cfg, out)
    run_universe(cfg, out, demo=args.demo)

    log.info("Walkthrough complete. Charts saved to: %s", out)


if __name__ == "__main__":
    main()
