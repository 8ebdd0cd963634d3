"""Request validation shared by all readers. Runs before any network call."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime

from datareader.core.exceptions import (
    EmptySymbolListError,
    InvalidDateRangeError,
    InvalidSymbolError,
)

DateLike = date | datetime


def as_date(value: DateLike) -> date:
    """Drop the time-of-day from a datetime; pass dates through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def validate_symbol(symbol: str) -> None:
    """Reject empty symbols and symbols containing whitespace."""
    if not isinstance(symbol, str) or not symbol:
        raise InvalidSymbolError(
            "symbol cannot be empty",
            context={"symbol": symbol, "reason": "empty"},
        )
    if any(ch.isspace() for ch in symbol):
        raise InvalidSymbolError(
            f"symbol contains whitespace: {symbol!r}",
            context={"symbol": symbol, "reason": "whitespace"},
        )


def validate_symbol_pair(symbol: str, separator: str = "/") -> tuple[str, str]:
    """Validate and split a two-part symbol such as ``"USA/NY.GDP.MKTP.CD"``."""
    validate_symbol(symbol)
    parts = symbol.split(separator)
    if len(parts) != 2 or not all(parts):
        raise InvalidSymbolError(
            f"symbol must have the form 'a{separator}b', got {symbol!r}",
            context={"symbol": symbol, "reason": "pair"},
        )
    return parts[0], parts[1]


def validate_symbols(symbols: Sequence[str]) -> None:
    """Reject an empty list; then validate each symbol."""
    if isinstance(symbols, str):
        raise InvalidSymbolError(
            "symbols must be a list, not a single string",
            context={"symbol": symbols, "reason": "type"},
        )
    if not symbols:
        raise EmptySymbolListError("symbols list cannot be empty")
    for symbol in symbols:
        validate_symbol(symbol)


def validate_date_range(start: DateLike | None, end: DateLike | None) -> None:
    """Require both dates, with end not before start (equal is allowed).

    Comparison is at day granularity.
    """
    context = {
        "start": start.isoformat() if start is not None else None,
        "end": end.isoformat() if end is not None else None,
    }
    if start is None or end is None:
        raise InvalidDateRangeError(
            "start and end dates are required", context=context
        )
    if as_date(end) < as_date(start):
        raise InvalidDateRangeError(
            f"end date {as_date(end)} is before start date {as_date(start)}",
            context=context,
        )


def in_range(day: date, start: DateLike, end: DateLike) -> bool:
    """Inclusive day-granularity membership test."""
    return as_date(start) <= day <= as_date(end)
