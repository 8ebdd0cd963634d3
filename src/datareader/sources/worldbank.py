"""World Bank indicators API. Symbols are ``COUNTRY/INDICATOR`` pairs."""

from __future__ import annotations

import json
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import APIError, ParseError
from datareader.core.models import SeriesData, format_number
from datareader.sources.base import SourceSession
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    as_date,
    validate_date_range,
    validate_symbol_pair,
    validate_symbols,
)

_BASE_URL = "https://api.worldbank.org/v2"
_INDICATOR_PATH = "/country/{country}/indicator/{indicator}"
_PER_PAGE = 1000


def _error_message(envelope: Any) -> str | None:
    """World Bank reports bad requests as ``[{"message": [{"value": ...}]}]``."""
    if not isinstance(envelope, dict) or "message" not in envelope:
        return None
    messages = envelope["message"]
    if isinstance(messages, list):
        texts = [
            str(m.get("value") or m.get("key") or m) if isinstance(m, dict) else str(m)
            for m in messages
        ]
        return "; ".join(texts)
    return str(messages)


def parse_indicator(data: bytes | str | list[Any], symbol: str | None = None) -> SeriesData:
    """Parse the ``[pagination, observations]`` envelope.

    Null observations are dropped, values are rendered as plain decimals,
    and the result is ascending by date (the API serves newest first).

    Raises:
        APIError: The envelope carries an error message.
        ParseError: The envelope does not have two elements.
    """
    context = {"source": "worldbank", "symbol": symbol}
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(f"invalid World Bank JSON: {e}", context=context) from e
    if not isinstance(data, list):
        raise ParseError(
            f"expected a JSON array from World Bank, got {type(data).__name__}",
            context=context,
        )

    if data and (message := _error_message(data[0])):
        raise APIError(f"World Bank API error: {message}", context=context)
    if len(data) < 2:
        raise ParseError(
            f"unexpected response format: expected 2 elements, got {len(data)}",
            context=context,
        )

    observations = data[1] or []
    if not isinstance(observations, list):
        raise ParseError("observation list is not an array", context=context)

    points: list[tuple[str, str]] = []
    for obs in observations:
        if not isinstance(obs, dict):
            raise ParseError(f"malformed observation: {obs!r}", context=context)
        value = obs.get("value")
        if value is None:
            continue
        text = format_number(value) if isinstance(value, (int, float)) else str(value)
        points.append((str(obs.get("date", "")), text))

    points.sort(key=lambda p: p[0])
    return SeriesData(
        symbol=symbol,
        dates=[d for d, _ in points],
        values=[v for _, v in points],
    )


class WorldBankReader:
    """Annual development indicators from the World Bank.

    ``"USA/NY.GDP.MKTP.CD"`` reads US GDP in current dollars. The request
    spans whole years, from the start year to the end year.
    """

    name = "worldbank"
    display_name = "World Bank"

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        base_url: str = _BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.options = options or ClientOptions()
        self._session = SourceSession(
            self.name, self.options, base_url, transport=transport
        )

    async def __aenter__(self) -> WorldBankReader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._session.aclose()

    def validate_symbol(self, symbol: str) -> None:
        validate_symbol_pair(symbol)

    async def read_single(
        self, symbol: str, start: DateLike, end: DateLike
    ) -> SeriesData:
        country, indicator = validate_symbol_pair(symbol)
        validate_date_range(start, end)
        payload = await self._session.get_json(
            self._session.url(
                _INDICATOR_PATH.format(country=country, indicator=indicator)
            ),
            symbol=symbol,
            params={
                "date": f"{as_date(start).year}:{as_date(end).year}",
                "format": "json",
                "per_page": str(_PER_PAGE),
            },
        )
        return parse_indicator(payload, symbol)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, SeriesData]:
        validate_symbols(symbols)
        for symbol in symbols:
            self.validate_symbol(symbol)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
