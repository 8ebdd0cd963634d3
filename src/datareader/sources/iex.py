"""IEX Cloud historical chart endpoint (API token required)."""

from __future__ import annotations

import json
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import APIError, ParseError
from datareader.core.models import TabularData
from datareader.sources.base import SourceSession, require_api_key
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    as_date,
    validate_date_range,
    validate_symbol,
    validate_symbols,
)

_BASE_URL = "https://cloud.iexapis.com/stable"
_CHART_PATH = "/stock/{symbol}/chart/{range}"

COLUMNS = ["Date", "Open", "High", "Low", "Close", "Volume"]

# (exclusive upper bound in days, IEX range code)
_RANGES = [
    (45, "1m"),
    (135, "3m"),
    (270, "6m"),
    (548, "1y"),
    (1095, "2y"),
]
_MAX_RANGE = "5y"


def chart_range(start: DateLike, end: DateLike) -> str:
    """Smallest IEX chart range covering the requested span."""
    days = (as_date(end) - as_date(start)).days
    for limit, code in _RANGES:
        if days < limit:
            return code
    return _MAX_RANGE


def _number(point: dict[str, Any], key: str) -> float:
    value = point.get(key)
    return float(value) if value is not None else 0.0


def parse_chart(data: bytes | str | list[Any] | dict[str, Any], symbol: str | None = None) -> TabularData:
    """Parse chart points into ascending rows, prices to two decimals.

    Raises:
        APIError: Payload is ``{"error": ...}``.
        ParseError: Payload is not a list of chart points.
    """
    context = {"source": "iex", "symbol": symbol}
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(f"invalid IEX JSON: {e}", context=context) from e
    if isinstance(data, dict):
        if data.get("error"):
            raise APIError(f"IEX API error: {data['error']}", context=context)
        raise ParseError("expected a list of chart points from IEX", context=context)
    if not isinstance(data, list):
        raise ParseError(
            f"expected a JSON array from IEX, got {type(data).__name__}",
            context=context,
        )

    try:
        points = sorted(data, key=lambda p: str(p.get("date", "")))
        rows = [
            {
                "Date": str(p.get("date", "")),
                "Open": f"{_number(p, 'open'):.2f}",
                "High": f"{_number(p, 'high'):.2f}",
                "Low": f"{_number(p, 'low'):.2f}",
                "Close": f"{_number(p, 'close'):.2f}",
                "Volume": str(int(p.get("volume") or 0)),
            }
            for p in points
        ]
    except (AttributeError, TypeError, ValueError) as e:
        raise ParseError(f"malformed IEX chart point: {e}", context=context) from e

    return TabularData(symbol=symbol, columns=list(COLUMNS), rows=rows)


class IEXReader:
    """Daily chart data from IEX Cloud.

    IEX serves fixed look-back ranges; the smallest range covering
    [start, end] is requested and rows outside it are dropped.

    Raises:
        MissingCredentialsError: No API token configured.
    """

    name = "iex"
    display_name = "IEX Cloud"
    requires_api_key = True

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        base_url: str = _BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.options = options or ClientOptions()
        self._token = require_api_key(self.options, self.name)
        self._session = SourceSession(
            self.name, self.options, base_url, transport=transport
        )

    async def __aenter__(self) -> IEXReader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._session.aclose()

    def validate_symbol(self, symbol: str) -> None:
        validate_symbol(symbol)

    async def read_single(
        self, symbol: str, start: DateLike, end: DateLike
    ) -> TabularData:
        self.validate_symbol(symbol)
        validate_date_range(start, end)
        path = _CHART_PATH.format(symbol=symbol, range=chart_range(start, end))
        payload = await self._session.get_json(
            self._session.url(path),
            symbol=symbol,
            params={"token": self._token},
        )
        data = parse_chart(payload, symbol)
        lo, hi = as_date(start).isoformat(), as_date(end).isoformat()
        return data.model_copy(
            update={"rows": [r for r in data.rows if lo <= r["Date"][:10] <= hi]}
        )

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, TabularData]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
