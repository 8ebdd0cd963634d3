"""Tests for datareader.sources.finmind."""

import httpx
import pytest
import respx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import APIError, ParseError
from datareader.sources.finmind import (
    ANONYMOUS_RATE_LIMIT,
    DEFAULT_DATASET,
    STOCK_PRICE_COLUMNS,
    TOKEN_RATE_LIMIT,
    FinMindReader,
    parse_dataset,
)

DATA_URL = "https://api.finmindtrade.com/api/v4/data"


def _record(day, close):
    return {
        "date": day,
        "stock_id": "2330",
        "Trading_Volume": 25000000,
        "Trading_money": 14000000000,
        "open": 590.0,
        "max": 595.0,
        "min": 588.0,
        "close": close,
        "spread": 2.5,
        "Trading_turnover": 30123,
    }


PAYLOAD = {
    "msg": "success",
    "status": 200,
    "data": [_record("2024-01-03", 593.0), _record("2024-01-02", 590.5)],
}


@pytest.fixture
def unthrottled(fast_options: ClientOptions) -> ClientOptions:
    return fast_options.model_copy(update={"rate_limit": 1000.0})


class TestParseDataset:
    def test_stock_price_columns(self):
        data = parse_dataset(PAYLOAD, "2330")
        assert data.columns == STOCK_PRICE_COLUMNS
        assert data.get_column("date") == ["2024-01-02", "2024-01-03"]
        row = data.to_rows()[0]
        assert row["close"] == "590.5"
        assert row["open"] == "590"
        assert row["Trading_Volume"] == "25000000"

    def test_extra_columns_appended(self):
        payload = {"status": 200, "data": [{"date": "2024-01-02", "stock_id": "2330", "cash_dividend": 3.5, "flag": True, "note": None}]}
        data = parse_dataset(payload)
        assert data.columns == ["date", "stock_id", "cash_dividend", "flag", "note"]
        assert data.to_rows()[0] == {
            "date": "2024-01-02",
            "stock_id": "2330",
            "cash_dividend": "3.5",
            "flag": "true",
            "note": "",
        }

    def test_symbol_inferred(self):
        assert parse_dataset(PAYLOAD).symbol == "2330"

    def test_empty_data(self):
        data = parse_dataset({"msg": "success", "status": 200, "data": []}, "9999")
        assert data.columns == []
        assert len(data) == 0

    def test_status_error(self):
        with pytest.raises(APIError, match="status 402") as excinfo:
            parse_dataset({"msg": "Requests reach the upper limit.", "status": 402})
        assert excinfo.value.context["status"] == 402

    def test_data_not_list(self):
        with pytest.raises(ParseError):
            parse_dataset({"status": 200, "data": {"date": "2024-01-02"}})


class TestFinMindReader:
    def test_default_anonymous_quota(self):
        reader = FinMindReader()
        assert reader.options.rate_limit == ANONYMOUS_RATE_LIMIT
        assert reader.dataset == DEFAULT_DATASET

    def test_default_token_quota(self):
        reader = FinMindReader(ClientOptions(api_key="tok"))
        assert reader.options.rate_limit == TOKEN_RATE_LIMIT

    def test_explicit_rate_kept(self, unthrottled):
        assert FinMindReader(unthrottled).options.rate_limit == 1000.0

    @respx.mock
    async def test_read_single(self, unthrottled, start, end):
        route = respx.get(DATA_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
        async with FinMindReader(unthrottled) as reader:
            data = await reader.read_single("2330", start, end)
        assert len(data) == 2
        request = route.calls.last.request
        assert request.url.params["dataset"] == "TaiwanStockPrice"
        assert request.url.params["data_id"] == "2330"
        assert request.url.params["start_date"] == "2024-01-01"
        assert request.url.params["end_date"] == "2024-01-31"
        assert "Authorization" not in request.headers

    @respx.mock
    async def test_bearer_token(self, unthrottled, start, end):
        route = respx.get(DATA_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
        options = unthrottled.model_copy(update={"api_key": "tok"})
        async with FinMindReader(options, dataset="TaiwanStockDividend") as reader:
            await reader.read_single("2330", start, end)
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.url.params["dataset"] == "TaiwanStockDividend"

    @respx.mock
    async def test_read_many(self, unthrottled, start, end):
        respx.get(DATA_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
        async with FinMindReader(unthrottled) as reader:
            result = await reader.read(["2330", "2317"], start, end)
        assert sorted(result) == ["2317", "2330"]
