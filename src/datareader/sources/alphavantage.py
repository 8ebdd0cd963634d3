"""Alpha Vantage TIME_SERIES_DAILY (JSON, API key required)."""

from __future__ import annotations

import json
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import APIError, ParseError, RateLimitError
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

_BASE_URL = "https://www.alphavantage.co"
_QUERY_PATH = "/query"

COLUMNS = ["Date", "Open", "High", "Low", "Close", "Volume"]
_FIELDS = {
    "Open": "1. open",
    "High": "2. high",
    "Low": "3. low",
    "Close": "4. close",
    "Volume": "5. volume",
}
# Both keys carry the free-tier throttling notice depending on API vintage.
_RATE_LIMIT_KEYS = ("Note", "Information")


def parse_daily_series(data: bytes | str | dict[str, Any], symbol: str | None = None) -> TabularData:
    """Turn a TIME_SERIES_DAILY payload into ascending OHLCV rows.

    Raises:
        RateLimitError: Payload carries a throttling notice.
        APIError: Payload carries ``Error Message``.
        ParseError: Payload is not a JSON object.
    """
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(
                f"invalid Alpha Vantage JSON: {e}",
                context={"source": "alphavantage", "symbol": symbol},
            ) from e
    if not isinstance(data, dict):
        raise ParseError(
            f"expected a JSON object from Alpha Vantage, got {type(data).__name__}",
            context={"source": "alphavantage", "symbol": symbol},
        )

    for key in _RATE_LIMIT_KEYS:
        if data.get(key):
            raise RateLimitError(
                f"Alpha Vantage rate limit exceeded: {data[key]}",
                context={"source": "alphavantage", "symbol": symbol},
            )
    if data.get("Error Message"):
        raise APIError(
            f"Alpha Vantage API error: {data['Error Message']}",
            context={"source": "alphavantage", "symbol": symbol},
        )

    series = data.get("Time Series (Daily)") or {}
    if not isinstance(series, dict):
        raise ParseError(
            "'Time Series (Daily)' is not an object",
            context={"source": "alphavantage", "symbol": symbol},
        )

    rows = []
    for day in sorted(series):
        values = series[day]
        try:
            fields = {col: str(values.get(key, "")) for col, key in _FIELDS.items()}
        except (AttributeError, TypeError, ValueError) as e:
            raise ParseError(
                f"malformed Alpha Vantage entry for {day}: {values!r}",
                context={"source": "alphavantage", "symbol": symbol, "value": day},
            ) from e
        rows.append({"Date": day, **fields})

    return TabularData(symbol=symbol, columns=list(COLUMNS), rows=rows)


class AlphaVantageReader:
    """Daily prices from Alpha Vantage.

    ``outputsize=full`` returns the whole history; rows are trimmed to the
    requested range locally.

    Raises:
        MissingCredentialsError: No API key configured.
    """

    name = "alphavantage"
    display_name = "Alpha Vantage"
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

    async def __aenter__(self) -> AlphaVantageReader:
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
        payload = await self._session.get_json(
            self._session.url(_QUERY_PATH),
            symbol=symbol,
            params={
                "function": "TIME_SERIES_DAILY",
                "symbol": symbol,
                "apikey": self._api_key,
                "outputsize": "full",
            },
        )
        data = parse_daily_series(payload, symbol)
        lo, hi = as_date(start).isoformat(), as_date(end).isoformat()
        return data.model_copy(
            update={"rows": [r for r in data.rows if lo <= r["Date"] <= hi]}
        )

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, TabularData]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
