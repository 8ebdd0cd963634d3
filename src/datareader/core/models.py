"""Pydantic data models for normalized provider results.

Every reader returns one concrete ``ParsedData`` subtype, so the shape of a
result is known from the reader that produced it. All subtypes also offer a
common row view (``column_names()`` / ``to_rows()``) for generic consumers
such as the CLI.
"""

from __future__ import annotations

import math
from datetime import date
from decimal import Decimal
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, model_validator

# --- Type Aliases ---

Symbol = str
Row = dict[str, str]


def format_number(value: float | int) -> str:
    """Render a number as plain decimal text, never in exponent notation.

    Integral values lose their fractional part (``25462700000000.0`` ->
    ``"25462700000000"``); other values keep the shortest repr digits.
    """
    if isinstance(value, int):
        return str(value)
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return format(Decimal(repr(value)), "f")


# --- Result Models ---


class ParsedData(BaseModel):
    """Base of all normalized results.

    Subclasses built from parallel arrays list them in ``_array_fields``;
    construction fails unless all of them have the same length.
    """

    model_config = ConfigDict(frozen=True)

    _array_fields: ClassVar[tuple[str, ...]] = ()

    symbol: Symbol | None = None

    @model_validator(mode="after")
    def arrays_equal_length(self) -> ParsedData:
        if not self._array_fields:
            return self
        lengths = {name: len(getattr(self, name)) for name in self._array_fields}
        if len(set(lengths.values())) > 1:
            raise ValueError(f"column arrays must have equal length, got {lengths}")
        return self

    def column_names(self) -> list[str]:
        raise NotImplementedError

    def to_rows(self) -> list[Row]:
        raise NotImplementedError

    def get_column(self, name: str) -> list[str]:
        """Return one column of the row view, in row order."""
        if name not in self.column_names():
            raise KeyError(name)
        return [row.get(name, "") for row in self.to_rows()]

    def __len__(self) -> int:
        return len(self.to_rows())


class TabularData(ParsedData):
    """Dynamic-schema result: ordered column labels plus string rows."""

    columns: list[str]
    rows: list[Row]

    def column_names(self) -> list[str]:
        return list(self.columns)

    def to_rows(self) -> list[Row]:
        return [dict(row) for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)


class SeriesData(ParsedData):
    """Date/value observations with values kept as text (FRED, World Bank)."""

    _array_fields: ClassVar[tuple[str, ...]] = ("dates", "values")

    dates: list[str]
    values: list[str]

    def column_names(self) -> list[str]:
        return ["Date", "Value"]

    def to_rows(self) -> list[Row]:
        return [{"Date": d, "Value": v} for d, v in zip(self.dates, self.values)]

    def __len__(self) -> int:
        return len(self.dates)


class NumericSeries(ParsedData):
    """Date/value observations with float values (Eurostat, OECD)."""

    _array_fields: ClassVar[tuple[str, ...]] = ("dates", "values")

    dates: list[str]
    values: list[float]

    def column_names(self) -> list[str]:
        return ["Date", "Value"]

    def to_rows(self) -> list[Row]:
        return [
            {"Date": d, "Value": format_number(v)}
            for d, v in zip(self.dates, self.values)
        ]

    def __len__(self) -> int:
        return len(self.dates)


class PriceSeries(ParsedData):
    """Fixed OHLCV arrays; index i of every array is the same trading day."""

    _array_fields: ClassVar[tuple[str, ...]] = (
        "dates", "open", "high", "low", "close", "volume",
    )

    dates: list[str]
    open: list[float]
    high: list[float]
    low: list[float]
    close: list[float]
    volume: list[int]

    def column_names(self) -> list[str]:
        return ["Date", "Open", "High", "Low", "Close", "Volume"]

    def to_rows(self) -> list[Row]:
        return [
            {
                "Date": self.dates[i],
                "Open": format_number(self.open[i]),
                "High": format_number(self.high[i]),
                "Low": format_number(self.low[i]),
                "Close": format_number(self.close[i]),
                "Volume": str(self.volume[i]),
            }
            for i in range(len(self.dates))
        ]

    def __len__(self) -> int:
        return len(self.dates)


class StockDaySeries(ParsedData):
    """Daily exchange records for one listed instrument (TWSE)."""

    _array_fields: ClassVar[tuple[str, ...]] = (
        "dates",
        "trade_volume",
        "trade_value",
        "open",
        "high",
        "low",
        "close",
        "change",
        "transactions",
    )

    name: str = ""
    dates: list[date]
    trade_volume: list[int]
    trade_value: list[int]
    open: list[float]
    high: list[float]
    low: list[float]
    close: list[float]
    change: list[float]
    transactions: list[int]

    def column_names(self) -> list[str]:
        return [
            "Date", "Open", "High", "Low", "Close",
            "Change", "Volume", "Value", "Transactions",
        ]

    def to_rows(self) -> list[Row]:
        return [
            {
                "Date": self.dates[i].isoformat(),
                "Open": format_number(self.open[i]),
                "High": format_number(self.high[i]),
                "Low": format_number(self.low[i]),
                "Close": format_number(self.close[i]),
                "Change": format_number(self.change[i]),
                "Volume": str(self.trade_volume[i]),
                "Value": str(self.trade_value[i]),
                "Transactions": str(self.transactions[i]),
            }
            for i in range(len(self.dates))
        ]

    def __len__(self) -> int:
        return len(self.dates)
