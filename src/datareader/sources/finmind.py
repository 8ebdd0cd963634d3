"""FinMind open data API (Taiwan markets), optional bearer token."""

from __future__ import annotations

import json
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import APIError, ParseError
from datareader.core.models import TabularData, format_number
from datareader.sources.base import SourceSession
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    as_date,
    validate_date_range,
    validate_symbol,
    validate_symbols,
)

_BASE_URL = "https://api.finmindtrade.com/api/v4"
_DATA_PATH = "/data"

DEFAULT_DATASET = "TaiwanStockPrice"
# Requests per second allowed by FinMind's hourly quotas.
ANONYMOUS_RATE_LIMIT = 300.0 / 3600.0
TOKEN_RATE_LIMIT = 600.0 / 3600.0

# Column order of the TaiwanStockPrice dataset.
STOCK_PRICE_COLUMNS = [
    "date",
    "stock_id",
    "Trading_Volume",
    "Trading_money",
    "open",
    "max",
    "min",
    "close",
    "spread",
    "Trading_turnover",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def parse_dataset(data: bytes | str | dict[str, Any], symbol: str | None = None) -> TabularData:
    """Parse a ``{"msg", "status", "data": [...]}`` payload.

    Known TaiwanStockPrice columns keep their canonical order; any other
    keys follow in order of first appearance. Rows are sorted by ``date``.

    Raises:
        APIError: ``status`` is present and not 200.
        ParseError: Payload is not an object with a ``data`` list.
    """
    context = {"source": "finmind", "symbol": symbol}
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(f"invalid FinMind JSON: {e}", context=context) from e
    if not isinstance(data, dict):
        raise ParseError(
            f"expected a JSON object from FinMind, got {type(data).__name__}",
            context=context,
        )

    status = data.get("status")
    if status is not None and status != 200:
        raise APIError(
            f"FinMind API error (status {status}): {data.get('msg', '')}",
            context={**context, "status": status},
        )

    records = data.get("data") or []
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise ParseError("FinMind 'data' is not a list of records", context=context)
    if not records:
        return TabularData(symbol=symbol, columns=[], rows=[])

    seen = {key for record in records for key in record}
    columns = [c for c in STOCK_PRICE_COLUMNS if c in seen]
    for record in records:
        columns.extend(k for k in record if k not in columns)

    rows = [{col: _cell(record.get(col)) for col in columns} for record in records]
    if "date" in columns:
        rows.sort(key=lambda r: r["date"])

    if symbol is None and "stock_id" in columns:
        symbol = rows[0]["stock_id"]
    return TabularData(symbol=symbol, columns=columns, rows=rows)


class FinMindReader:
    """Datasets from FinMind, by default daily Taiwan stock prices.

    With no explicit ``rate_limit`` the reader throttles itself to FinMind's
    quota: 300 requests/hour anonymously, 600 with a token.

    Args:
        options: Client options. ``api_key`` is sent as a bearer token.
        dataset: FinMind dataset name, e.g. ``"TaiwanStockDividend"``.
    """

    name = "finmind"
    display_name = "FinMind"

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        dataset: str = DEFAULT_DATASET,
        base_url: str = _BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        options = options or ClientOptions()
        if options.rate_limit == 0:
            default_rate = TOKEN_RATE_LIMIT if options.api_key else ANONYMOUS_RATE_LIMIT
            options = options.model_copy(update={"rate_limit": default_rate})
        self.options = options
        self.dataset = dataset
        self._session = SourceSession(
            self.name, self.options, base_url, transport=transport
        )

    async def __aenter__(self) -> FinMindReader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._session.aclose()

    def validate_symbol(self, symbol: str) -> None:
        validate_symbol(symbol)

    def _headers(self) -> dict[str, str] | None:
        if not self.options.api_key:
            return None
        return {"Authorization": f"Bearer {self.options.api_key}"}

    async def read_single(
        self, symbol: str, start: DateLike, end: DateLike
    ) -> TabularData:
        self.validate_symbol(symbol)
        validate_date_range(start, end)
        payload = await self._session.get_json(
            self._session.url(_DATA_PATH),
            symbol=symbol,
            params={
                "dataset": self.dataset,
                "data_id": symbol,
                "start_date": as_date(start).isoformat(),
                "end_date": as_date(end).isoformat(),
            },
            headers=self._headers(),
        )
        return parse_dataset(payload, symbol)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, TabularData]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
