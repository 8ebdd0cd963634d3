"""Yahoo Finance historical prices via the CSV download endpoint."""

from __future__ import annotations

from datetime import datetime, time, timezone

import httpx

from datareader.core.config import ClientOptions
from datareader.core.models import TabularData
from datareader.sources.base import SourceSession
from datareader.sources.csv_parser import parse_csv
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    as_date,
    validate_date_range,
    validate_symbol,
    validate_symbols,
)

_BASE_URL = "https://query1.finance.yahoo.com"
_DOWNLOAD_PATH = "/v7/finance/download/{symbol}"


def _unix_midnight(value: DateLike) -> int:
    """Seconds since the epoch at UTC midnight of the given day."""
    return int(datetime.combine(as_date(value), time.min, tzinfo=timezone.utc).timestamp())


def build_params(start: DateLike, end: DateLike) -> dict[str, str]:
    return {
        "period1": str(_unix_midnight(start)),
        "period2": str(_unix_midnight(end)),
        "interval": "1d",
        "events": "history",
        "includeAdjustedClose": "true",
    }


class YahooReader:
    """Daily OHLCV + adjusted close from Yahoo Finance.

    Yields columns Date, Open, High, Low, Close, Adj Close, Volume in
    ascending date order.
    """

    name = "yahoo"
    display_name = "Yahoo Finance"

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

    async def __aenter__(self) -> YahooReader:
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
        body = await self._session.get_bytes(
            self._session.url(_DOWNLOAD_PATH.format(symbol=symbol)),
            symbol=symbol,
            params=build_params(start, end),
        )
        columns, rows = parse_csv(body, date_column="Date", source="yahoo")
        return TabularData(symbol=symbol, columns=columns, rows=rows)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, TabularData]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
