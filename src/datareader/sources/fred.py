"""FRED (Federal Reserve Economic Data) series observations."""

from __future__ import annotations

import json
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import APIError, ParseError
from datareader.core.models import SeriesData
from datareader.sources.base import SourceSession, require_api_key
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    as_date,
    validate_date_range,
    validate_symbol,
    validate_symbols,
)

_BASE_URL = "https://api.stlouisfed.org/fred"
_OBSERVATIONS_PATH = "/series/observations"
_MISSING = "."


def parse_observations(data: bytes | str | dict[str, Any], symbol: str | None = None) -> SeriesData:
    """Parse a FRED observations payload.

    FRED marks missing observations with ``"."``; those are dropped.

    Raises:
        APIError: Payload carries ``error_message``.
        ParseError: Payload is not a JSON object or observations are malformed.
    """
    context = {"source": "fred", "symbol": symbol}
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(f"invalid FRED JSON: {e}", context=context) from e
    if not isinstance(data, dict):
        raise ParseError(
            f"expected a JSON object from FRED, got {type(data).__name__}",
            context=context,
        )
    if data.get("error_message"):
        raise APIError(f"FRED API error: {data['error_message']}", context=context)

    points: list[tuple[str, str]] = []
    for obs in data.get("observations") or []:
        try:
            day, value = obs["date"], obs["value"]
        except (KeyError, TypeError) as e:
            raise ParseError(
                f"malformed FRED observation: {obs!r}", context=context
            ) from e
        if value == _MISSING:
            continue
        points.append((day, str(value)))

    points.sort(key=lambda p: p[0])
    return SeriesData(
        symbol=symbol,
        dates=[d for d, _ in points],
        values=[v for _, v in points],
    )


class FredReader:
    """Economic series from the St. Louis Fed. Symbols are FRED series ids.

    Raises:
        MissingCredentialsError: No API key configured.
    """

    name = "fred"
    display_name = "FRED"
    requires_api_key = True

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        base_url: str = _BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.options = options or ClientOptions()
        self._api_key = require_api_key(self.options, self.name)
        self._session = SourceSession(
            self.name, self.options, base_url, transport=transport
        )

    async def __aenter__(self) -> FredReader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._session.aclose()

    def validate_symbol(self, symbol: str) -> None:
        validate_symbol(symbol)

    async def read_single(
        self, symbol: str, start: DateLike, end: DateLike
    ) -> SeriesData:
        self.validate_symbol(symbol)
        validate_date_range(start, end)
        payload = await self._session.get_json(
            self._session.url(_OBSERVATIONS_PATH),
            symbol=symbol,
            params={
                "series_id": symbol,
                "api_key": self._api_key,
                "observation_start": as_date(start).isoformat(),
                "observation_end": as_date(end).isoformat(),
                "file_type": "json",
            },
        )
        return parse_observations(payload, symbol)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, SeriesData]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
