"""Integration test fixtures: real clients, caches and limiters, no network."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

import httpx
import pytest

from datareader.core.config import ClientOptions


class FakeProvider:
    """In-process HTTP server standing in for the public data APIs.

    Serves Stooq CSV downloads and TWSE STOCK_DAY_ALL from canned bodies,
    counts requests per symbol, and can fail the first N requests for a
    symbol with a 503.
    """

    def __init__(self, stooq_csv: str, twse_payload: list[dict]) -> None:
        self.stooq_csv = stooq_csv
        self.twse_payload = twse_payload
        self.calls: Counter[str] = Counter()
        self.failures: dict[str, int] = {}
        self.missing: set[str] = set()
        self.user_agents: list[str] = []

    def fail_first(self, symbol: str, times: int) -> None:
        self.failures[symbol] = times

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.user_agents.append(request.headers.get("User-Agent", ""))
        if request.url.path == "/q/d/l/":
            symbol = request.url.params.get("s", "")
        elif request.url.path.endswith("/exchangeReport/STOCK_DAY_ALL"):
            symbol = "STOCK_DAY_ALL"
        else:
            return httpx.Response(404, text="no such endpoint")

        self.calls[symbol] += 1
        if self.failures.get(symbol, 0) > 0:
            self.failures[symbol] -= 1
            return httpx.Response(503, text="try later")
        if symbol in self.missing:
            return httpx.Response(200, text="No data\n")
        if symbol == "STOCK_DAY_ALL":
            return httpx.Response(200, content=json.dumps(self.twse_payload).encode())
        return httpx.Response(200, text=self.stooq_csv)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def provider(stooq_csv: str, twse_payload: list[dict]) -> FakeProvider:
    return FakeProvider(stooq_csv, twse_payload)


@pytest.fixture
def integration_options(tmp_path: Path) -> ClientOptions:
    """Caching client with short retry delays."""
    return ClientOptions(
        max_retries=2,
        retry_delay=0.01,
        cache_dir=str(tmp_path / "http-cache"),
        cache_ttl=3600,
        user_agent="datareader-integration/1.0",
    )
