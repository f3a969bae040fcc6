"""
universe.py
-----------
Static identifier lists, e.g. the NASDAQ-100 listing exported from
nasdaq.com (Symbol, Name, Last Sale, Net Change, % Change, Market Cap,
Country, IPO Year, Volume, Sector, Industry).

The composition changes over time and some companies list two share
classes, so a listing can hold more or fewer than 100 rows.
"""

from typing import Dict, List, Sequence

import pandas as pd

from marketwalk.errors import FieldNotFoundError
from marketwalk.utils import get_logger

log = get_logger(__name__)


def load_identifier_list(path: str, symbol_field: str = "Symbol") -> List[Dict]:
    """
    Read a listing CSV into records, trimming surrounding whitespace.

    Returns
    -------
    list of dict, one per row, in file order.
    """
    df = pd.read_csv(path, skipinitialspace=True, dtype=str, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]
    if symbol_field not in df.columns:
        raise FieldNotFoundError(
            f"{path} has no '{symbol_field}' column; columns: {list(df.columns)}"
        )
    df = df.apply(lambda col: col.str.strip())
    df = df[df[symbol_field] != ""]
    log.info("Loaded %d identifiers from %s", len(df), path)
    return df.to_dict(orient="records")


def filter_by_prefix(
    records: Sequence[Dict],
    prefix:  str,
    field:   str = "Symbol",
) -> List[str]:
    """Symbols starting with ``prefix``, in listing order."""
    return [r[field] for r in records if str(r.get(field, "")).startswith(prefix)]


def duplicated_names(records: Sequence[Dict], field: str = "Name") -> List[str]:
    """Names appearing more than once (each reported once, first-seen order)."""
    seen, dupes = set(), []
    for r in records:
        name = r.get(field)
        if name in seen and name not in dupes:
            dupes.append(name)
        seen.add(name)
    return dupes
