"""Tiingo end-of-day prices (API token required)."""

from __future__ import annotations

import json
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import APIError, ParseError
from datareader.core.models import PriceSeries
from datareader.sources.base import SourceSession, require_api_key
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    as_date,
    validate_date_range,
    validate_symbol,
    validate_symbols,
)

_BASE_URL = "https://api.tiingo.com"
_PRICES_PATH = "/tiingo/daily/{symbol}/prices"


def parse_prices(data: bytes | str | list[Any] | dict[str, Any], symbol: str | None = None) -> PriceSeries:
    """Parse Tiingo price records into ascending OHLCV arrays.

    Timestamps such as ``2024-01-02T00:00:00.000Z`` are cut to the date.

    Raises:
        APIError: Payload is ``{"detail": ...}``.
        ParseError: Payload is not a list of price records.
    """
    context = {"source": "tiingo", "symbol": symbol}
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(f"invalid Tiingo JSON: {e}", context=context) from e
    if isinstance(data, dict) and data.get("detail"):
        raise APIError(f"Tiingo API error: {data['detail']}", context=context)
    if not isinstance(data, list):
        raise ParseError(
            f"expected a JSON array from Tiingo, got {type(data).__name__}",
            context=context,
        )

    try:
        records = sorted(
            ((str(r["date"])[:10], r) for r in data), key=lambda item: item[0]
        )
        return PriceSeries(
            symbol=symbol,
            dates=[day for day, _ in records],
            open=[float(r["open"]) for _, r in records],
            high=[float(r["high"]) for _, r in records],
            low=[float(r["low"]) for _, r in records],
            close=[float(r["close"]) for _, r in records],
            volume=[int(r["volume"]) for _, r in records],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"malformed Tiingo price record: {e}", context=context) from e


class TiingoReader:
    """Daily OHLCV from Tiingo.

    Raises:
        MissingCredentialsError: No API token configured.
    """

    name = "tiingo"
    display_name = "Tiingo"
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

    async def __aenter__(self) -> TiingoReader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._session.aclose()

    def validate_symbol(self, symbol: str) -> None:
        validate_symbol(symbol)

    async def read_single(
        self, symbol: str, start: DateLike, end: DateLike
    ) -> PriceSeries:
        self.validate_symbol(symbol)
        validate_date_range(start, end)
        payload = await self._session.get_json(
            self._session.url(_PRICES_PATH.format(symbol=symbol)),
            symbol=symbol,
            params={
                "startDate": as_date(start).isoformat(),
                "endDate": as_date(end).isoformat(),
                "token": self._token,
            },
        )
        return parse_prices(payload, symbol)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, PriceSeries]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
