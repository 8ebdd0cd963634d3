"""Stooq daily quotes via the public CSV download endpoint."""

from __future__ import annotations

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import SymbolNotFoundError
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

_BASE_URL = "https://stooq.com"
_DOWNLOAD_PATH = "/q/d/l/"
_NO_DATA = "No data"


def parse_stooq_csv(
    body: bytes | str,
    symbol: str | None = None,
    start: DateLike | None = None,
    end: DateLike | None = None,
) -> TabularData:
    """Parse a Stooq CSV download, optionally trimming to [start, end].

    Stooq answers unknown symbols with a bare ``No data`` line instead of
    an error status; that becomes SymbolNotFoundError.
    """
    columns, rows = parse_csv(body, date_column="Date", source="stooq")
    if columns == [_NO_DATA]:
        raise SymbolNotFoundError(
            f"stooq has no data for symbol {symbol!r}",
            context={"source": "stooq", "symbol": symbol},
        )
    if start is not None and end is not None and "Date" in columns:
        lo, hi = as_date(start).isoformat(), as_date(end).isoformat()
        rows = [r for r in rows if lo <= r["Date"][:10] <= hi]
    return TabularData(symbol=symbol, columns=columns, rows=rows)


class StooqReader:
    """Daily OHLCV history from stooq.com.

    The endpoint always returns the full history; rows outside the requested
    range are dropped locally.
    """

    name = "stooq"
    display_name = "Stooq"

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

    async def __aenter__(self) -> StooqReader:
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
            self._session.url(_DOWNLOAD_PATH),
            symbol=symbol,
            params={"s": symbol, "i": "d"},
        )
        return parse_stooq_csv(body, symbol, start, end)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, TabularData]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
