"""Tests for query URL building."""

import logging

import pytest

from avq.base import BuildError, InvalidParameterError, InvalidSymbolError
from avq.diagnostics import OUTPUTSIZE_IGNORED
from avq.request import (
    BASE_URL,
    DataType,
    OutputSize,
    QueryVariant,
    TimeSeriesRequest,
    build_url,
    mask_api_key,
)


def _params(url: str) -> list[str]:
    return [p.split("=", 1)[0] for p in url.split("?", 1)[1].split("&")]


class TestBuildUrl:
    def test_daily_full_parameter_order(self):
        req = TimeSeriesRequest(QueryVariant.DAILY, "IBM", "KEY123", "compact", "csv")
        assert build_url(req) == (
            "https://www.alphavantage.co/query?function=TIME_SERIES_DAILY"
            "&symbol=IBM&outputsize=compact&datatype=csv&apikey=KEY123"
        )

    @pytest.mark.parametrize(
        "variant,token",
        [
            (QueryVariant.DAILY, "TIME_SERIES_DAILY"),
            (QueryVariant.WEEKLY, "TIME_SERIES_WEEKLY"),
            (QueryVariant.MONTHLY, "TIME_SERIES_MONTHLY"),
        ],
    )
    def test_shape_for_every_variant(self, variant, token):
        req = TimeSeriesRequest(variant, "MSFT", "k", OutputSize.FULL, DataType.JSON)
        url = build_url(req)
        names = _params(url)

        assert url.startswith(BASE_URL + "?")
        assert names[0] == "function"
        assert f"function={token}" in url
        assert names.count("function") == 1
        assert names.count("symbol") == 1
        assert names.count("outputsize") <= 1
        assert names.count("datatype") == 1
        assert names[-1] == "apikey"
        assert url.endswith("&apikey=k")

    def test_minimal_request(self):
        req = TimeSeriesRequest(QueryVariant.MONTHLY, "AAPL", "k")
        assert build_url(req) == f"{BASE_URL}?function=TIME_SERIES_MONTHLY&symbol=AAPL&apikey=k"

    def test_datatype_without_outputsize(self):
        req = TimeSeriesRequest(QueryVariant.DAILY, "IBM", "k", data_type="json")
        assert _params(build_url(req)) == ["function", "symbol", "datatype", "apikey"]

    def test_custom_base_url(self):
        req = TimeSeriesRequest(QueryVariant.DAILY, "IBM", "k")
        assert build_url(req, base_url="http://localhost:8080/query").startswith(
            "http://localhost:8080/query?function="
        )


class TestOutputSizeGating:
    @pytest.mark.parametrize("variant", [QueryVariant.WEEKLY, QueryVariant.MONTHLY])
    def test_ignored_for_weekly_and_monthly(self, variant, diagnostics):
        req = TimeSeriesRequest(variant, "IBM", "k", output_size="full")
        url = build_url(req, diagnostics)

        assert "outputsize=" not in url
        notices = diagnostics.of_kind(OUTPUTSIZE_IGNORED)
        assert len(notices) == 1
        assert variant.value.capitalize() in notices[0].message

    def test_no_advisory_without_outputsize(self, diagnostics):
        build_url(TimeSeriesRequest(QueryVariant.WEEKLY, "IBM", "k"), diagnostics)
        assert len(diagnostics) == 0

    def test_no_advisory_for_daily(self, diagnostics):
        url = build_url(TimeSeriesRequest(QueryVariant.DAILY, "IBM", "k", "full"), diagnostics)
        assert "outputsize=full" in url
        assert len(diagnostics) == 0

    def test_advisory_is_logged_without_collector(self, caplog):
        req = TimeSeriesRequest(QueryVariant.WEEKLY, "IBM", "secret-key", output_size="compact")
        with caplog.at_level(logging.WARNING):
            build_url(req)
        assert OUTPUTSIZE_IGNORED in caplog.text
        assert "secret-key" not in caplog.text


class TestSymbolHandling:
    @pytest.mark.parametrize("symbol", ["", "   ", "IB\nM", "A\x00B"])
    def test_invalid_symbol(self, symbol):
        req = TimeSeriesRequest(QueryVariant.DAILY, symbol, "k")
        with pytest.raises(InvalidSymbolError):
            build_url(req)

    def test_invalid_symbol_is_build_error(self):
        with pytest.raises(BuildError):
            build_url(TimeSeriesRequest(QueryVariant.DAILY, "", "k"))

    def test_values_are_percent_encoded(self):
        req = TimeSeriesRequest(QueryVariant.DAILY, "A&apikey=evil", "k y")
        url = build_url(req)

        assert "symbol=A%26apikey%3Devil" in url
        assert url.endswith("&apikey=k%20y")
        assert _params(url) == ["function", "symbol", "apikey"]

    def test_dotted_symbol_left_alone(self):
        url = build_url(TimeSeriesRequest(QueryVariant.DAILY, "BRK.B", "k"))
        assert "&symbol=BRK.B&" in url


class TestRequestConstruction:
    def test_string_values_are_coerced(self):
        req = TimeSeriesRequest("Weekly", "IBM", "k", "FULL", "csv")
        assert req.variant is QueryVariant.WEEKLY
        assert req.output_size is OutputSize.FULL
        assert req.data_type is DataType.CSV

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"variant": "hourly"},
            {"output_size": "huge"},
            {"data_type": "xml"},
        ],
    )
    def test_unknown_values_rejected(self, kwargs):
        args = {"variant": "daily", "symbol": "IBM", "api_key": "k", **kwargs}
        with pytest.raises(InvalidParameterError):
            TimeSeriesRequest(**args)

    def test_api_key_hidden_from_repr(self):
        assert "secret" not in repr(TimeSeriesRequest("daily", "IBM", "secret"))

    def test_request_is_frozen(self):
        req = TimeSeriesRequest("daily", "IBM", "k")
        with pytest.raises(AttributeError):
            req.symbol = "MSFT"


def test_mask_api_key():
    url = build_url(TimeSeriesRequest("daily", "IBM", "secret", data_type="csv"))
    masked = mask_api_key(url)
    assert "secret" not in masked
    assert masked.endswith("&apikey=***")
    assert "datatype=csv" in masked
