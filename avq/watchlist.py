from __future__ import annotations
from pathlib import Path
from typing import List
import yaml

from .base import BuildError, WatchlistError
from .request import QueryVariant, TimeSeriesRequest

def load_watchlist(path: str | Path, api_key: str) -> List[TimeSeriesRequest]:
    p = Path(path)
    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise WatchlistError(f"Could not read watchlist {p}: {e}") from e

    entries = doc.get("requests") if isinstance(doc, dict) else None
    if not isinstance(entries, list):
        raise WatchlistError(f"Watchlist {p} has no 'requests' list")

    out: List[TimeSeriesRequest] = []
    for i, r in enumerate(entries):
        if not isinstance(r, dict) or r.get("symbol") in (None, ""):
            raise WatchlistError(f"Watchlist {p} entry {i} has no symbol")
        if not isinstance(r["symbol"], str):
            raise WatchlistError(
                f"Watchlist {p} entry {i}: symbol {r['symbol']!r} is not a string, quote it in the YAML"
            )
        try:
            out.append(TimeSeriesRequest(
                variant=r.get("variant", QueryVariant.DAILY),
                symbol=r["symbol"],
                api_key=api_key,
                output_size=r.get("output_size"),
                data_type=r.get("data_type"),
            ))
        except BuildError as e:
            raise WatchlistError(f"Watchlist {p} entry {i}: {e}") from e
    return out
