"""Taiwan Stock Exchange OpenAPI daily quotes.

TWSE dates use the Republic of China (Minguo) calendar: a 7-digit
``YYYMMDD`` string where ``YYY`` is the Gregorian year minus 1911.
All numeric fields arrive as strings.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import InvalidDateError, ParseError, SymbolNotFoundError
from datareader.core.models import StockDaySeries
from datareader.sources.base import SourceSession
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    in_range,
    validate_date_range,
    validate_symbol,
    validate_symbols,
)

_BASE_URL = "https://openapi.twse.com.tw/v1"
_DAILY_ALL_PATH = "/exchangeReport/STOCK_DAY_ALL"

ROC_EPOCH_OFFSET = 1911
_ROC_DATE_LENGTH = 7


# --- ROC calendar ---


def roc_to_gregorian(text: str) -> date:
    """Convert ``"1141031"`` to ``date(2025, 10, 31)``.

    Raises:
        InvalidDateError: Not 7 digits, or not a real calendar day
            (``"1120229"`` fails: 2023 is not a leap year).
    """
    if not (
        isinstance(text, str)
        and len(text) == _ROC_DATE_LENGTH
        and text.isascii()
        and text.isdigit()
    ):
        raise InvalidDateError(
            f"invalid ROC date {text!r}: expected {_ROC_DATE_LENGTH} digits YYYMMDD",
            context={"source": "twse", "value": text},
        )
    year = int(text[:3]) + ROC_EPOCH_OFFSET
    month, day = int(text[3:5]), int(text[5:7])
    # date() rejects out-of-range components instead of rolling them over.
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(
            f"invalid ROC date {text!r}: {e}",
            context={"source": "twse", "value": text},
        ) from e


def gregorian_to_roc(day: DateLike) -> str:
    """Format a date as a 7-digit ROC string (``date(2025, 10, 31)`` -> ``"1141031"``).

    Raises:
        InvalidDateError: The date falls before ROC year 1 or after year 999.
    """
    roc_year = day.year - ROC_EPOCH_OFFSET
    if not 1 <= roc_year <= 999:
        raise InvalidDateError(
            f"{day.isoformat()} cannot be expressed as a 3-digit ROC year",
            context={"source": "twse", "value": day.isoformat()},
        )
    return f"{roc_year:03d}{day.month:02d}{day.day:02d}"


# --- Field parsing ---


def _clean(text: Any) -> str:
    return str(text if text is not None else "").strip().replace(",", "")


def _parse_float(text: Any, field: str) -> float:
    cleaned = _clean(text)
    if cleaned == "":
        return 0.0
    try:
        return float(cleaned)
    except ValueError as e:
        raise ParseError(
            f"invalid number in {field}: {text!r}",
            context={"source": "twse", "field": field, "value": text},
        ) from e


def _parse_int(text: Any, field: str) -> int:
    cleaned = _clean(text)
    if cleaned == "":
        return 0
    try:
        return int(cleaned)
    except ValueError as e:
        raise ParseError(
            f"invalid integer in {field}: {text!r}",
            context={"source": "twse", "field": field, "value": text},
        ) from e


def parse_daily_all(data: bytes | str | list[Any]) -> list[dict[str, Any]]:
    """Decode the STOCK_DAY_ALL array."""
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(f"invalid TWSE JSON: {e}", context={"source": "twse"}) from e
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise ParseError(
            "expected a JSON array of stock records from TWSE",
            context={"source": "twse"},
        )
    return data


def find_stock(records: list[dict[str, Any]], symbol: str) -> dict[str, Any]:
    """Pick the record whose ``Code`` matches, or raise SymbolNotFoundError."""
    for record in records:
        if record.get("Code") == symbol:
            return record
    raise SymbolNotFoundError(
        f"symbol {symbol!r} not found in TWSE response",
        context={"source": "twse", "symbol": symbol},
    )


def parse_stock_record(record: dict[str, Any]) -> StockDaySeries:
    """Convert one STOCK_DAY_ALL record into a single-day series."""
    return StockDaySeries(
        symbol=record.get("Code"),
        name=record.get("Name") or "",
        dates=[roc_to_gregorian(record.get("Date"))],
        trade_volume=[_parse_int(record.get("TradeVolume"), "TradeVolume")],
        trade_value=[_parse_int(record.get("TradeValue"), "TradeValue")],
        open=[_parse_float(record.get("OpeningPrice"), "OpeningPrice")],
        high=[_parse_float(record.get("HighestPrice"), "HighestPrice")],
        low=[_parse_float(record.get("LowestPrice"), "LowestPrice")],
        close=[_parse_float(record.get("ClosingPrice"), "ClosingPrice")],
        change=[_parse_float(record.get("Change"), "Change")],
        transactions=[_parse_int(record.get("Transaction"), "Transaction")],
    )


def filter_by_date_range(
    series: StockDaySeries, start: DateLike, end: DateLike
) -> StockDaySeries:
    """Keep observations with start <= day <= end, compared by calendar day."""
    keep = [i for i, day in enumerate(series.dates) if in_range(day, start, end)]
    update = {
        field: [getattr(series, field)[i] for i in keep]
        for field in StockDaySeries._array_fields
    }
    return series.model_copy(update=update)


class TWSEReader:
    """Latest trading day quotes from the Taiwan Stock Exchange.

    STOCK_DAY_ALL covers every listed instrument for the most recent
    session only, so a range that excludes that day yields an empty series.
    """

    name = "twse"
    display_name = "Taiwan Stock Exchange"

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

    async def __aenter__(self) -> TWSEReader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._session.aclose()

    def validate_symbol(self, symbol: str) -> None:
        validate_symbol(symbol)

    async def read_single(
        self, symbol: str, start: DateLike, end: DateLike
    ) -> StockDaySeries:
        self.validate_symbol(symbol)
        validate_date_range(start, end)
        payload = await self._session.get_json(
            self._session.url(_DAILY_ALL_PATH), symbol=symbol
        )
        record = find_stock(parse_daily_all(payload), symbol)
        return filter_by_date_range(parse_stock_record(record), start, end)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, StockDaySeries]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
