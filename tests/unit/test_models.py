"""Tests for datareader.core.models."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from datareader.core.models import (
    NumericSeries,
    PriceSeries,
    SeriesData,
    StockDaySeries,
    TabularData,
    format_number,
)


# --- format_number ---


class TestFormatNumber:
    def test_large_integral_float_has_no_exponent(self):
        assert format_number(2.54627e13) == "25462700000000"

    def test_integral_float_drops_fraction(self):
        assert format_number(100.0) == "100"

    def test_fraction_kept(self):
        assert format_number(1.5) == "1.5"

    def test_small_value_has_no_exponent(self):
        assert format_number(1e-7) == "0.0000001"

    def test_int_passthrough(self):
        assert format_number(42) == "42"

    def test_negative(self):
        assert format_number(-0.35) == "-0.35"


# --- Result models ---


class TestTabularData:
    def test_row_view(self):
        data = TabularData(
            symbol="AAPL",
            columns=["Date", "Close"],
            rows=[{"Date": "2024-01-02", "Close": "185.64"}],
        )
        assert data.column_names() == ["Date", "Close"]
        assert data.to_rows() == [{"Date": "2024-01-02", "Close": "185.64"}]
        assert len(data) == 1

    def test_get_column(self):
        data = TabularData(
            columns=["Date", "Close"],
            rows=[
                {"Date": "2024-01-02", "Close": "1"},
                {"Date": "2024-01-03", "Close": "2"},
            ],
        )
        assert data.get_column("Close") == ["1", "2"]

    def test_get_unknown_column_raises(self):
        data = TabularData(columns=["Date"], rows=[])
        with pytest.raises(KeyError):
            data.get_column("Open")

    def test_to_rows_returns_copies(self):
        data = TabularData(columns=["Date"], rows=[{"Date": "2024-01-02"}])
        data.to_rows()[0]["Date"] = "changed"
        assert data.rows[0]["Date"] == "2024-01-02"


class TestSeriesData:
    def test_equal_lengths_required(self):
        with pytest.raises(ValidationError, match="equal length"):
            SeriesData(dates=["2020", "2021"], values=["1"])

    def test_rows(self):
        data = SeriesData(symbol="GDP", dates=["2020", "2021"], values=["1", "2"])
        assert data.to_rows() == [
            {"Date": "2020", "Value": "1"},
            {"Date": "2021", "Value": "2"},
        ]
        assert data.get_column("Value") == ["1", "2"]


class TestNumericSeries:
    def test_values_rendered_plainly(self):
        data = NumericSeries(dates=["2020"], values=[25462700000000.0])
        assert data.to_rows() == [{"Date": "2020", "Value": "25462700000000"}]

    def test_mismatch_rejected(self):
        with pytest.raises(ValidationError):
            NumericSeries(dates=[], values=[1.0])


class TestPriceSeries:
    def test_all_arrays_checked(self):
        with pytest.raises(ValidationError):
            PriceSeries(
                dates=["2024-01-02"],
                open=[1.0],
                high=[1.0],
                low=[1.0],
                close=[1.0],
                volume=[],
            )

    def test_rows(self):
        data = PriceSeries(
            dates=["2024-01-02"],
            open=[10.0],
            high=[11.5],
            low=[9.25],
            close=[11.0],
            volume=[1200],
        )
        assert data.to_rows()[0] == {
            "Date": "2024-01-02",
            "Open": "10",
            "High": "11.5",
            "Low": "9.25",
            "Close": "11",
            "Volume": "1200",
        }


class TestStockDaySeries:
    def test_rows_use_iso_dates(self):
        data = StockDaySeries(
            symbol="2330",
            name="TSMC",
            dates=[date(2025, 10, 31)],
            trade_volume=[100],
            trade_value=[105500],
            open=[1050.0],
            high=[1060.0],
            low=[1045.0],
            close=[1055.0],
            change=[5.0],
            transactions=[10],
        )
        row = data.to_rows()[0]
        assert row["Date"] == "2025-10-31"
        assert row["Close"] == "1055"
        assert len(data) == 1

    def test_empty_series_valid(self):
        data = StockDaySeries(
            symbol="2330",
            dates=[],
            trade_volume=[],
            trade_value=[],
            open=[],
            high=[],
            low=[],
            close=[],
            change=[],
            transactions=[],
        )
        assert len(data) == 0
        assert data.to_rows() == []
