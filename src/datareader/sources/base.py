"""Reader protocol and the HTTP plumbing every reader composes.

Architecture
------------
Each provider is one concrete class satisfying ``Reader``. Readers do not
inherit from a common base; instead each one owns a ``SourceSession``
(retrying client + base URL + status/JSON checks) and delegates multi-symbol
reads to ``read_parallel``:

    Reader.read -> read_parallel -> Reader.read_single
        -> validate -> SourceSession.get_* -> RetryableClient -> parser
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import (
    HTTPStatusError,
    MissingCredentialsError,
    ParseError,
)
from datareader.core.models import ParsedData
from datareader.sources.validation import DateLike
from datareader.transport.cache import ResponseCache
from datareader.transport.client import RetryableClient
from datareader.transport.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


@runtime_checkable
class Reader(Protocol):
    """What every provider reader offers."""

    @property
    def name(self) -> str:
        """Registry id of the provider, also used as ``context["source"]``."""
        ...

    def validate_symbol(self, symbol: str) -> None:
        """Raise InvalidSymbolError if the provider cannot use this symbol."""
        ...

    async def read_single(
        self, symbol: str, start: DateLike, end: DateLike
    ) -> ParsedData:
        """Fetch and parse one symbol. Validates before any network call."""
        ...

    async def read(
        self, symbols: list[str], start: DateLike, end: DateLike
    ) -> dict[str, ParsedData]:
        """Fetch many symbols concurrently; the first failure aborts."""
        ...

    async def aclose(self) -> None: ...


def require_api_key(options: ClientOptions, source: str) -> str:
    """Return the configured key or raise MissingCredentialsError."""
    if not options.api_key:
        raise MissingCredentialsError(
            f"{source} requires an API key",
            context={"source": source},
        )
    return options.api_key


class SourceSession:
    """One reader's HTTP access: its own client, limiter budget and base URL.

    Parameters
    ----------
    source : str
        Provider display name, used in error messages and context.
    options : ClientOptions
        Client options for this reader.
    base_url : str
        Provider root URL. Override to point a reader at a test server.
    transport, limiter, cache
        Passed through to ``RetryableClient``.
    """

    def __init__(
        self,
        source: str,
        options: ClientOptions,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        limiter: RateLimiter | None = None,
        cache: ResponseCache | None = None,
    ) -> None:
        self.source = source
        self.options = options
        self.base_url = base_url.rstrip("/")
        self.client = RetryableClient(
            options, transport=transport, limiter=limiter, cache=cache
        )

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_bytes(
        self,
        url: str,
        *,
        symbol: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """GET a URL and return the body of a 200 response.

        Raises:
            HTTPStatusError: Final status was not 200.
            FetchError: Transport failure after retries.
        """
        response = await self.client.get(url, params=params, headers=headers)
        if response.status_code != 200:
            raise HTTPStatusError(
                f"{self.source} returned HTTP {response.status_code} "
                f"{response.reason_phrase} for {symbol}",
                context={
                    "source": self.source,
                    "symbol": symbol,
                    "url": str(response.request.url),
                    "status_code": response.status_code,
                    "reason": response.reason_phrase,
                },
            )
        return response.content

    async def get_json(
        self,
        url: str,
        *,
        symbol: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET a URL and decode its 200 body as JSON.

        Raises:
            ParseError: Body is not valid JSON.
        """
        body = await self.get_bytes(url, symbol=symbol, params=params, headers=headers)
        try:
            return json.loads(body)
        except ValueError as e:
            raise ParseError(
                f"invalid JSON from {self.source} for {symbol}: {e}",
                context={"source": self.source, "symbol": symbol},
            ) from e
