"""Tests for datareader.sources.fred."""

import httpx
import pytest
import respx

from datareader.core.exceptions import APIError, MissingCredentialsError, ParseError
from datareader.core.models import SeriesData
from datareader.sources.fred import FredReader, parse_observations

OBSERVATIONS_URL = "https://api.stlouisfed.org/fred/series/observations"

PAYLOAD = {
    "observation_start": "2020-01-01",
    "observations": [
        {"date": "2020-07-01", "value": "21138.574"},
        {"date": "2020-01-01", "value": "21727.657"},
        {"date": "2020-04-01", "value": "."},
    ],
}


class TestParseObservations:
    def test_missing_values_dropped_and_sorted(self):
        data = parse_observations(PAYLOAD, "GDP")
        assert isinstance(data, SeriesData)
        assert data.dates == ["2020-01-01", "2020-07-01"]
        assert data.values == ["21727.657", "21138.574"]
        assert data.column_names() == ["Date", "Value"]

    def test_error_message(self):
        with pytest.raises(APIError, match="Bad Request"):
            parse_observations({"error_code": 400, "error_message": "Bad Request."}, "X")

    def test_no_observations(self):
        assert len(parse_observations({"observations": []}, "GDP")) == 0

    def test_malformed_observation(self):
        with pytest.raises(ParseError, match="malformed"):
            parse_observations({"observations": [{"date": "2020-01-01"}]}, "GDP")

    def test_invalid_json(self):
        with pytest.raises(ParseError, match="invalid FRED JSON"):
            parse_observations("{", "GDP")


class TestFredReader:
    def test_requires_key(self):
        with pytest.raises(MissingCredentialsError):
            FredReader()

    @respx.mock
    async def test_read_single(self, keyed_options, start, end):
        route = respx.get(OBSERVATIONS_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
        async with FredReader(keyed_options) as reader:
            data = await reader.read_single("GDP", start, end)
        assert len(data) == 2
        params = route.calls.last.request.url.params
        assert params["series_id"] == "GDP"
        assert params["api_key"] == "test-key"
        assert params["observation_start"] == "2024-01-01"
        assert params["observation_end"] == "2024-01-31"
        assert params["file_type"] == "json"

    @respx.mock
    async def test_html_body_is_parse_error(self, keyed_options, start, end):
        respx.get(OBSERVATIONS_URL).mock(return_value=httpx.Response(200, text="<html>"))
        async with FredReader(keyed_options) as reader:
            with pytest.raises(ParseError, match="invalid JSON"):
                await reader.read_single("GDP", start, end)
