"""OECD statistics via SDMX-JSON."""

from __future__ import annotations

import json
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import ParseError
from datareader.core.models import NumericSeries
from datareader.sources.base import SourceSession
from datareader.sources.parallel import read_parallel
from datareader.sources.validation import (
    DateLike,
    as_date,
    validate_date_range,
    validate_symbol,
    validate_symbols,
)

_BASE_URL = "https://stats.oecd.org/sdmx-json"
_DATA_PATH = "/data/{key}/all"
_TIME_DIMENSION = "TIME_PERIOD"


def parse_sdmx(data: bytes | str | dict[str, Any], symbol: str | None = None) -> NumericSeries:
    """Extract one value per time period from an SDMX-JSON message.

    Observation keys look like ``"0:2:5"``, one index per observation
    dimension; the ``TIME_PERIOD`` position selects the period. When several
    series share a period the last key wins. Output is sorted by period.

    Raises:
        ParseError: No ``TIME_PERIOD`` dimension, or the payload is malformed.
    """
    context = {"source": "oecd", "symbol": symbol}
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ParseError(f"invalid OECD JSON: {e}", context=context) from e
    if not isinstance(data, dict):
        raise ParseError(
            f"expected a JSON object from OECD, got {type(data).__name__}",
            context=context,
        )

    try:
        dimensions = data.get("structure", {}).get("dimensions", {}).get("observation", [])
        time_pos = next(
            (i for i, dim in enumerate(dimensions) if dim.get("id") == _TIME_DIMENSION),
            None,
        )
        if time_pos is None:
            raise ParseError("TIME_PERIOD dimension not found", context=context)
        periods = [str(v.get("id")) for v in dimensions[time_pos].get("values", [])]

        datasets = data.get("dataSets") or []
        observations = datasets[0].get("observations", {}) if datasets else {}
        if not isinstance(observations, dict):
            raise ParseError("observations is not an object", context=context)
    except AttributeError as e:
        raise ParseError(f"malformed SDMX-JSON payload: {e}", context=context) from e

    by_period: dict[str, float] = {}
    for key in sorted(observations):
        values = observations[key]
        if not isinstance(values, list) or not values or values[0] is None:
            continue
        indices = key.split(":")
        if len(indices) <= time_pos:
            continue
        try:
            t = int(indices[time_pos])
            value = float(values[0])
        except (TypeError, ValueError):
            continue
        if 0 <= t < len(periods):
            by_period[periods[t]] = value

    dates = sorted(by_period)
    return NumericSeries(
        symbol=symbol, dates=dates, values=[by_period[d] for d in dates]
    )


class OECDReader:
    """OECD datasets addressed by SDMX key, e.g. ``"QNA/USA.GDP.CUR.Q"``."""

    name = "oecd"
    display_name = "OECD"

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

    async def __aenter__(self) -> OECDReader:
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
            self._session.url(_DATA_PATH.format(key=symbol)),
            symbol=symbol,
            params={
                "startPeriod": as_date(start).strftime("%Y-%m"),
                "endPeriod": as_date(end).strftime("%Y-%m"),
                "dimensionAtObservation": "AllDimensions",
            },
            headers={"Accept": "application/json"},
        )
        return parse_sdmx(payload, symbol)

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, NumericSeries]:
        validate_symbols(symbols)
        validate_date_range(start, end)
        return await read_parallel(self.read_single, symbols, start, end)
