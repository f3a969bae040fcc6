"""
ingest.py
---------
Bulk ingestion: fetch a list of symbols into a SeriesStore.

Each symbol is attempted exactly once. A failed fetch is converted into a
``Failure`` value, logged, and never touches the store; the loop always
moves on to the next symbol. Successful fetches are written with
``store.put`` (the only mutation the loop performs).

With ``max_workers > 1`` fetches run in a thread pool. Once the pool has
drained, outcomes are recorded on the calling thread in input order, so
the final store matches the sequential run even for repeated symbols.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Union

from marketwalk.fetcher import SourceSpec, fetch_series
from marketwalk.series import TimeSeries
from marketwalk.store import SeriesStore
from marketwalk.utils import get_logger, timeit

log = get_logger(__name__)

FetchFn = Callable[[str, SourceSpec], TimeSeries]


@dataclass(frozen=True)
class Success:
    """A symbol whose series was fetched."""
    symbol: str
    series: TimeSeries


@dataclass(frozen=True)
class Failure:
    """A symbol that could not be fetched, with the provider's reason."""
    symbol: str
    reason: str


FetchOutcome = Union[Success, Failure]


@dataclass
class IngestReport:
    """Split of a batch's outcomes into succeeded and failed symbols."""
    succeeded: List[str] = field(default_factory=list)
    failed:    List[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


def attempt_fetch(symbol: str, source: SourceSpec,
                  fetch: FetchFn = fetch_series) -> FetchOutcome:
    """Run one fetch and turn whatever it raises into a Failure value."""
    try:
        series = fetch(symbol, source)
    except Exception as exc:
        reason = getattr(exc, "reason", None) or str(exc) or type(exc).__name__
        return Failure(symbol, reason)
    if not isinstance(series, TimeSeries):
        return Failure(symbol, f"fetch returned {type(series).__name__}, not TimeSeries")
    return Success(symbol, series)


def _record(outcome: FetchOutcome, store: SeriesStore) -> None:
    if isinstance(outcome, Success):
        store.put(outcome.symbol, outcome.series)
        log.info("Symbol '%s' stored (%d observations).",
                 outcome.symbol, len(outcome.series))
    else:
        log.warning("Symbol '%s' not downloadable! (%s)", outcome.symbol, outcome.reason)


@timeit
def ingest_symbols(
    symbols:     Sequence[str],
    source:      SourceSpec,
    store:       SeriesStore,
    fetch:       FetchFn = fetch_series,
    max_workers: int = 1,
) -> List[FetchOutcome]:
    """
    Fetch every symbol into ``store``, isolating per-symbol failures.

    Parameters
    ----------
    symbols     : Ordered ticker symbols; each must be a non-empty string.
    source      : Provider and date range passed to ``fetch``.
    store       : Target store, mutated only for successful symbols.
    fetch       : Fetch function ``(symbol, source) -> TimeSeries``.
    max_workers : 1 runs sequentially; more uses a thread pool.

    Returns
    -------
    list
        One Success or Failure per symbol, in input order.
    """
    symbols = list(symbols)
    bad = [s for s in symbols if not isinstance(s, str) or not s.strip()]
    if bad:
        raise ValueError(f"symbols must be non-empty strings, got {bad!r}")

    outcomes: List[FetchOutcome] = []

    if max_workers <= 1 or len(symbols) <= 1:
        for sym in symbols:
            log.info("Downloading time series for symbol '%s' ...", sym)
            outcome = attempt_fetch(sym, source, fetch)
            _record(outcome, store)
            outcomes.append(outcome)
    else:
        by_position = {}
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {}
            for pos, sym in enumerate(symbols):
                log.info("Downloading time series for symbol '%s' ...", sym)
                futures[executor.submit(attempt_fetch, sym, source, fetch)] = pos
            for future in as_completed(futures):
                by_position[futures[future]] = future.result()
        # a symbol listed twice must end up with its later position's series
        outcomes = [by_position[pos] for pos in range(len(symbols))]
        for outcome in outcomes:
            _record(outcome, store)

    report = summarize(outcomes)
    log.info("Ingestion finished: %d attempted, %d stored, %d failed.",
             report.attempted, len(report.succeeded), len(report.failed))
    return outcomes


def summarize(outcomes: Sequence[FetchOutcome]) -> IngestReport:
    report = IngestReport()
    for outcome in outcomes:
        if isinstance(outcome, Success):
            report.succeeded.append(outcome.symbol)
        else:
            report.failed.append(outcome.symbol)
    return report
