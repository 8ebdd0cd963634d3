"""Eurostat dissemination API (JSON-stat 2.0)."""

from __future__ import annotations

import json
import math
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import APIError, ParseError
from datareader.core.models import NumericSeries
from datareader.sources.base import SourceSession
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    validate_date_range,
    validate_symbol,
    validate_symbols,
)

_BASE_URL = "https://ec.europa.eu/eurostat/api/dissemination/statistics/1.0"
_DATA_PATH = "/data/{dataset}"
_TIME_DIMENSION = "time"


def _ordered_categories(index: Any) -> list[str]:
    """Category codes in position order; JSON-stat allows a dict or a list."""
    if isinstance(index, list):
        return [str(code) for code in index]
    if isinstance(index, dict):
        return [code for code, _ in sorted(index.items(), key=lambda item: item[1])]
    return []


def _flat_values(value: Any) -> list[tuple[int, Any]]:
    """(flat index, value) pairs; ``value`` may be dense (list) or sparse (dict)."""
    if isinstance(value, list):
        return list(enumerate(value))
    if isinstance(value, dict):
        return [(int(k), v) for k, v in value.items()]
    return []


def parse_jsonstat(data: bytes | str | dict[str, Any], symbol: str | None = None) -> NumericSeries:
    """Collapse a JSON-stat cube onto its time dimension.

    All cells sharing a time period (across every other dimension) are
    averaged. Periods with no cells get 0.0. Periods keep category order.

    Raises:
        APIError: Payload is a Eurostat error object.
        ParseError: Payload has no ``time`` dimension or is malformed.
    """
    context = {"source": "eurostat", "symbol": symbol}
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(f"invalid Eurostat JSON: {e}", context=context) from e
    if not isinstance(data, dict):
        raise ParseError(
            f"expected a JSON object from Eurostat, got {type(data).__name__}",
            context=context,
        )
    if "error" in data and "id" not in data:
        error = data["error"]
        label = error.get("label", error) if isinstance(error, dict) else error
        raise APIError(f"Eurostat API error: {label}", context=context)

    dim_ids = data.get("id") or []
    sizes = data.get("size") or []
    if _TIME_DIMENSION not in dim_ids:
        raise ParseError("time dimension not found", context=context)
    time_pos = dim_ids.index(_TIME_DIMENSION)

    try:
        category = data["dimension"][_TIME_DIMENSION]["category"]
        periods = _ordered_categories(category.get("index"))
        stride = math.prod(int(s) for s in sizes[time_pos + 1 :]) or 1
        cells = _flat_values(data.get("value"))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ParseError(f"malformed JSON-stat payload: {e}", context=context) from e

    if not periods:
        return NumericSeries(symbol=symbol, dates=[], values=[])

    sums = [0.0] * len(periods)
    counts = [0] * len(periods)
    for flat_index, value in cells:
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        t = (flat_index // stride) % len(periods)
        sums[t] += value
        counts[t] += 1

    values = [s / c if c else 0.0 for s, c in zip(sums, counts)]
    return NumericSeries(symbol=symbol, dates=periods, values=values)


class EurostatReader:
    """European statistics by dataset code, e.g. ``"nama_10_gdp"``.

    The whole dataset is requested; the date range is validated but the
    API returns every available period.
    """

    name = "eurostat"
    display_name = "Eurostat"

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

    async def __aenter__(self) -> EurostatReader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._session.aclose()

    def validate_symbol(self, symbol: str) -> None:
        validate_symbol(symbol)

    async def read_single(
        self, symbol: str, start: DateLike, end: DateLike
    ) -> NumericSeries:
        self.validate_symbol(symbol)
        validate_date_range(start, end)
        payload = await self._session.get_json(
            self._session.url(_DATA_PATH.format(dataset=symbol)),
            symbol=symbol,
            params={"lang": "EN"},
            headers={"Accept": "application/json"},
        )
        return parse_jsonstat(payload, symbol)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, NumericSeries]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
