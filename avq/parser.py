from __future__ import annotations

import csv
from datetime import date
from io import StringIO
import json
import logging
from typing import Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd

from .base import InvalidNumericFieldError, ParseError, ProviderResponseError
from .diagnostics import MALFORMED_RECORD, UNPARSABLE_DATE, Diagnostics

logger = logging.getLogger(__name__)

COLUMNS = ("timestamp", "open", "high", "low", "close", "volume")
PRICE_COLUMNS = ("open", "high", "low", "close")
DATE_FORMAT = "%Y-%m-%d"

INT32 = np.iinfo(np.int32)

# keys the provider uses for error / throttling bodies
PROVIDER_MESSAGE_KEYS = ("Error Message", "Note", "Information")


class QuoteRow(NamedTuple):
    row: int
    timestamp: str
    open: str
    high: str
    low: str
    close: str
    volume: str


class QuoteTable:
    """Read-only, column-oriented quote table.

    Columns: timestamp (``datetime.date`` or ``None``), open/high/low/close
    (float64) and volume (int32), aligned by position in source order.
    """

    __slots__ = ("_df",)

    def __init__(self, df: pd.DataFrame):
        if tuple(df.columns) != COLUMNS:
            raise ValueError(f"QuoteTable expects columns {list(COLUMNS)}, got {list(df.columns)}")
        self._df = df.copy()

    @classmethod
    def empty_table(cls) -> "QuoteTable":
        return cls(_frame([], [], [], [], [], []))

    @property
    def df(self) -> pd.DataFrame:
        return self._df.copy()

    def column(self, name: str) -> pd.Series:
        return self._df[name].copy()

    @property
    def timestamp(self) -> pd.Series:
        return self.column("timestamp")

    @property
    def open(self) -> pd.Series:
        return self.column("open")

    @property
    def high(self) -> pd.Series:
        return self.column("high")

    @property
    def low(self) -> pd.Series:
        return self.column("low")

    @property
    def close(self) -> pd.Series:
        return self.column("close")

    @property
    def volume(self) -> pd.Series:
        return self.column("volume")

    @property
    def empty(self) -> bool:
        return self._df.empty

    def __len__(self) -> int:
        return len(self._df)

    def __repr__(self) -> str:
        return f"QuoteTable(rows={len(self)})"


def _frame(timestamps, opens, highs, lows, closes, volumes) -> pd.DataFrame:
    return pd.DataFrame({
        "timestamp": pd.Series(timestamps, dtype=object),
        "open": pd.Series(opens, dtype="float64"),
        "high": pd.Series(highs, dtype="float64"),
        "low": pd.Series(lows, dtype="float64"),
        "close": pd.Series(closes, dtype="float64"),
        "volume": pd.Series(volumes, dtype="int32"),
    })


def _check_provider_message(text: str) -> None:
    # the provider answers errors and throttling with JSON even when csv was requested
    try:
        payload = json.loads(text)
    except ValueError:
        return
    if isinstance(payload, dict):
        for key in PROVIDER_MESSAGE_KEYS:
            if key in payload:
                raise ProviderResponseError(f"Provider returned '{key}': {payload[key]}")
    raise ParseError("Expected delimited text, got a JSON document")


def _is_header(fields: List[str]) -> bool:
    return tuple(f.strip().lower() for f in fields) == COLUMNS


def _records(raw_text: str, diagnostics: Diagnostics) -> Iterator[QuoteRow]:
    reader = csv.reader(StringIO(raw_text), strict=True)
    row = -1
    while True:
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            row += 1
            diagnostics.add(MALFORMED_RECORD, f"Row {row}: could not tokenize record ({e})", row)
            continue

        if not fields:
            continue
        row += 1

        if row == 0 and _is_header(fields):
            logger.debug("Skipping header record")
            continue
        if len(fields) != len(COLUMNS):
            diagnostics.add(
                MALFORMED_RECORD,
                f"Row {row}: expected {len(COLUMNS)} fields, got {len(fields)}",
                row,
            )
            continue
        yield QuoteRow(row, *fields)


def _check_cell(value: str, row: int, column: str) -> None:
    # float() and int() tolerate padding and digit separators, the provider sends neither
    if value != value.strip() or "_" in value:
        raise InvalidNumericFieldError(row, column, value)


def _to_float(value: str, row: int, column: str) -> float:
    _check_cell(value, row, column)
    try:
        return float(value)
    except ValueError:
        raise InvalidNumericFieldError(row, column, value) from None


def _to_int32(value: str, row: int) -> int:
    _check_cell(value, row, "volume")
    try:
        v = int(value)
    except ValueError:
        raise InvalidNumericFieldError(row, "volume", value) from None
    if v < INT32.min or v > INT32.max:
        raise InvalidNumericFieldError(row, "volume", value)
    return v


def _parse_dates(stamps: List[str], rows: List[int], diagnostics: Diagnostics) -> List[Optional[date]]:
    parsed = pd.to_datetime(pd.Series(stamps, dtype=object), format=DATE_FORMAT, errors="coerce")
    out: List[Optional[date]] = []
    for raw, ts, row in zip(stamps, parsed, rows):
        if pd.isna(ts):
            diagnostics.add(UNPARSABLE_DATE, f"Row {row}: unparsable date {raw!r}", row)
            out.append(None)
        else:
            out.append(ts.date())
    return out


def parse_time_series(raw_text: str, diagnostics: Diagnostics | None = None) -> QuoteTable:
    """Parse a delimited-text time series body into a ``QuoteTable``.

    Malformed records are dropped and unparsable dates become ``None``; both
    are reported on ``diagnostics``. A non-numeric price or volume cell raises
    ``InvalidNumericFieldError`` and no table is returned.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    text = raw_text or ""
    if not text.strip():
        return QuoteTable.empty_table()
    if text.lstrip().startswith("{"):
        _check_provider_message(text)

    rows: List[int] = []
    stamps: List[str] = []
    prices: Tuple[List[float], ...] = ([], [], [], [])
    volumes: List[int] = []

    for rec in _records(text, diagnostics):
        values = [_to_float(getattr(rec, c), rec.row, c) for c in PRICE_COLUMNS]
        volume = _to_int32(rec.volume, rec.row)
        rows.append(rec.row)
        stamps.append(rec.timestamp)
        for col, v in zip(prices, values):
            col.append(v)
        volumes.append(volume)

    timestamps = _parse_dates(stamps, rows, diagnostics)
    table = QuoteTable(_frame(timestamps, *prices, volumes))
    logger.debug("Parsed %d rows", len(table))
    return table
