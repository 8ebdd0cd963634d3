"""Tests for the reader base module: protocol, credentials, session."""

import httpx
import pytest
import respx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import (
    FetchError,
    HTTPStatusError,
    MissingCredentialsError,
    ParseError,
)
from datareader.sources.base import Reader, SourceSession, require_api_key

BASE = "https://api.example.com/v1"


# --- Fixtures ---


class FakeReader:
    """A minimal reader that satisfies the Reader protocol."""

    name = "fake"

    def validate_symbol(self, symbol):
        pass

    async def read_single(self, symbol, start, end):
        return None

    async def read(self, symbols, start, end):
        return {}

    async def aclose(self):
        pass


class IncompleteReader:
    name = "incomplete"

    async def read_single(self, symbol, start, end):
        return None


@pytest.fixture
async def session(fast_options):
    s = SourceSession("Example", fast_options, BASE + "/")
    yield s
    await s.aclose()


# --- Reader protocol ---


class TestReaderProtocol:
    def test_fake_satisfies(self):
        assert isinstance(FakeReader(), Reader)

    def test_incomplete_does_not(self):
        assert not isinstance(IncompleteReader(), Reader)


# --- require_api_key ---


class TestRequireApiKey:
    def test_returns_key(self):
        assert require_api_key(ClientOptions(api_key="abc"), "FRED") == "abc"

    @pytest.mark.parametrize("key", [None, ""])
    def test_missing(self, key):
        with pytest.raises(MissingCredentialsError, match="FRED requires an API key") as excinfo:
            require_api_key(ClientOptions(api_key=key), "FRED")
        assert excinfo.value.context == {"source": "FRED"}


# --- SourceSession ---


class TestSourceSession:
    async def test_url_joining(self, session):
        assert session.base_url == BASE
        assert session.url("/series") == f"{BASE}/series"
        assert session.url("series") == f"{BASE}/series"

    @respx.mock
    async def test_get_bytes(self, session):
        respx.get(f"{BASE}/series").mock(return_value=httpx.Response(200, content=b"\x00raw"))
        assert await session.get_bytes(session.url("series"), symbol="X") == b"\x00raw"

    @respx.mock
    async def test_non_200_status(self, session):
        respx.get(f"{BASE}/series").mock(return_value=httpx.Response(403))
        with pytest.raises(HTTPStatusError, match="Example returned HTTP 403 Forbidden for X") as excinfo:
            await session.get_bytes(session.url("series"), symbol="X")
        ctx = excinfo.value.context
        assert ctx["status_code"] == 403
        assert ctx["reason"] == "Forbidden"
        assert ctx["symbol"] == "X"
        assert ctx["url"] == f"{BASE}/series"

    @respx.mock
    async def test_redirect_followed(self, session):
        respx.get(f"{BASE}/old").mock(
            return_value=httpx.Response(301, headers={"Location": f"{BASE}/new"})
        )
        respx.get(f"{BASE}/new").mock(return_value=httpx.Response(200, text="moved"))
        assert await session.get_bytes(session.url("old"), symbol="X") == b"moved"

    @respx.mock
    async def test_get_json(self, session):
        respx.get(f"{BASE}/series").mock(return_value=httpx.Response(200, json={"ok": True}))
        assert await session.get_json(session.url("series"), symbol="X") == {"ok": True}

    @respx.mock
    async def test_get_json_invalid(self, session):
        respx.get(f"{BASE}/series").mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(ParseError, match="invalid JSON from Example for X"):
            await session.get_json(session.url("series"), symbol="X")

    @respx.mock
    async def test_transport_failure(self, session):
        respx.get(f"{BASE}/series").mock(side_effect=httpx.ConnectTimeout("timed out"))
        with pytest.raises(FetchError):
            await session.get_bytes(session.url("series"), symbol="X")

    @respx.mock
    async def test_params_and_headers(self, session):
        route = respx.get(f"{BASE}/series").mock(return_value=httpx.Response(200))
        await session.get_bytes(
            session.url("series"),
            symbol="X",
            params={"id": "X"},
            headers={"Accept": "application/json"},
        )
        request = route.calls.last.request
        assert request.url.params["id"] == "X"
        assert request.headers["Accept"] == "application/json"
