"""Tests for datareader.sources.csv_parser."""

import pytest

from datareader.core.exceptions import ParseError
from datareader.sources.csv_parser import parse_csv


class TestParseCsv:
    def test_header_and_rows(self):
        columns, rows = parse_csv(b"Date,Close\n2024-01-02,10.5\n2024-01-03,11\n")
        assert columns == ["Date", "Close"]
        assert rows == [
            {"Date": "2024-01-02", "Close": "10.5"},
            {"Date": "2024-01-03", "Close": "11"},
        ]

    def test_sorted_by_date(self):
        body = "Date,Close\n2024-01-05,3\n2024-01-01,1\n2024-01-03,2\n"
        _, rows = parse_csv(body)
        assert [r["Date"] for r in rows] == ["2024-01-01", "2024-01-03", "2024-01-05"]

    def test_sort_is_stable(self):
        body = "Date,Close\n2024-01-02,a\n2024-01-01,x\n2024-01-02,b\n"
        _, rows = parse_csv(body)
        assert [r["Close"] for r in rows] == ["x", "a", "b"]

    def test_custom_date_column(self):
        body = "period,value\n2021,2\n2020,1\n"
        _, rows = parse_csv(body, date_column="period")
        assert [r["period"] for r in rows] == ["2020", "2021"]

    def test_no_date_column_keeps_order(self):
        body = "Name,Value\nb,2\na,1\n"
        _, rows = parse_csv(body)
        assert [r["Name"] for r in rows] == ["b", "a"]

    def test_malformed_rows_dropped(self):
        body = "Date,Open,Close\n2024-01-01,1,2\n2024-01-02,1\n2024-01-03,1,2,3\n"
        _, rows = parse_csv(body)
        assert [r["Date"] for r in rows] == ["2024-01-01"]

    def test_bom_stripped(self):
        columns, _ = parse_csv("\ufeffDate,Close\n2024-01-01,1\n".encode("utf-8"))
        assert columns[0] == "Date"

    def test_leading_blank_lines_skipped(self):
        columns, rows = parse_csv("\n\nDate,Close\n2024-01-01,1\n")
        assert columns == ["Date", "Close"]
        assert len(rows) == 1

    def test_header_only(self):
        columns, rows = parse_csv("Date,Close\n")
        assert columns == ["Date", "Close"]
        assert rows == []

    def test_header_whitespace_trimmed(self):
        columns, _ = parse_csv("Date , Close\n")
        assert columns == ["Date", "Close"]

    def test_quoted_fields(self):
        _, rows = parse_csv('Date,Name\n2024-01-01,"Acme, Inc."\n')
        assert rows[0]["Name"] == "Acme, Inc."

    @pytest.mark.parametrize("body", [b"", "", "\n\n"])
    def test_empty_payload(self, body):
        with pytest.raises(ParseError, match="no header") as excinfo:
            parse_csv(body, source="stooq")
        assert excinfo.value.context["source"] == "stooq"

    def test_invalid_utf8(self):
        with pytest.raises(ParseError, match="not valid UTF-8") as excinfo:
            parse_csv(b"Date,Name\n2024-01-02,caf\xe9\n", source="stooq")
        assert excinfo.value.context == {"source": "stooq", "value": "24"}
        assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
