from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Optional
from urllib.parse import quote

from .base import InvalidParameterError, InvalidSymbolError
from .diagnostics import OUTPUTSIZE_IGNORED, Diagnostics

# Single query endpoint; every request is a GET with query parameters.
# Example: https://www.alphavantage.co/query?function=TIME_SERIES_DAILY&symbol=IBM&apikey=demo
BASE_URL = "https://www.alphavantage.co/query"


class QueryVariant(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class OutputSize(str, Enum):
    COMPACT = "compact"
    FULL = "full"


class DataType(str, Enum):
    JSON = "json"
    CSV = "csv"


FUNCTIONS = {
    QueryVariant.DAILY: "TIME_SERIES_DAILY",
    QueryVariant.WEEKLY: "TIME_SERIES_WEEKLY",
    QueryVariant.MONTHLY: "TIME_SERIES_MONTHLY",
}

# variants for which the provider honours outputsize
OUTPUTSIZE_VARIANTS = frozenset({QueryVariant.DAILY})


def _coerce(enum_cls, value, what: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidParameterError(f"Invalid {what} {value!r}. Use one of: {allowed}") from None


@dataclass(frozen=True)
class TimeSeriesRequest:
    variant: QueryVariant
    symbol: str
    api_key: str = field(repr=False)
    output_size: Optional[OutputSize] = None
    data_type: Optional[DataType] = None

    def __post_init__(self):
        if self.variant is None:
            raise InvalidParameterError("variant is required")
        object.__setattr__(self, "variant", _coerce(QueryVariant, self.variant, "variant"))
        object.__setattr__(self, "output_size", _coerce(OutputSize, self.output_size, "output size"))
        object.__setattr__(self, "data_type", _coerce(DataType, self.data_type, "data type"))


def function_for(variant: QueryVariant) -> str:
    try:
        return FUNCTIONS[variant]
    except KeyError:
        raise InvalidParameterError(f"No function selector for variant {variant!r}") from None


def _check_symbol(symbol: str) -> str:
    if not isinstance(symbol, str) or not symbol.strip() or not symbol.isprintable():
        raise InvalidSymbolError(symbol)
    return symbol


def _enc(value: str) -> str:
    return quote(str(value), safe="")


def build_url(
    request: TimeSeriesRequest,
    diagnostics: Diagnostics | None = None,
    base_url: str = BASE_URL,
) -> str:
    """Render ``request`` as a query URL.

    Parameter order is fixed: function, symbol, outputsize, datatype, apikey.
    An output size on a weekly or monthly request is dropped and reported on
    ``diagnostics`` instead of failing the call.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    params = [
        ("function", function_for(request.variant)),
        ("symbol", _check_symbol(request.symbol)),
    ]

    if request.output_size is not None:
        if request.variant in OUTPUTSIZE_VARIANTS:
            params.append(("outputsize", request.output_size.value))
        else:
            diagnostics.add(
                OUTPUTSIZE_IGNORED,
                f"Output size param not used for {request.variant.value.capitalize()} query.",
            )

    if request.data_type is not None:
        params.append(("datatype", request.data_type.value))

    params.append(("apikey", request.api_key))

    query = "&".join(f"{k}={_enc(v)}" for k, v in params)
    return f"{base_url}?{query}"


_APIKEY_RE = re.compile(r"([?&]apikey=)[^&]*")


def mask_api_key(url: str) -> str:
    return _APIKEY_RE.sub(r"\1***", url)
