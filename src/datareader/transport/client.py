"""Retrying, rate-limited, caching async HTTP client shared by every reader."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from datareader.core.config import ClientOptions
from datareader.core.exceptions import CacheError, FetchError
from datareader.transport.cache import DisabledCache, FileCache, ResponseCache
from datareader.transport.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


def should_retry(response: httpx.Response | None, error: BaseException | None) -> bool:
    """Classify one attempt's outcome.

    Transport errors, a missing response, and 5xx statuses are retried.
    Everything else (2xx, 3xx, 4xx) is final.
    """
    if error is not None:
        return True
    if response is None:
        return True
    return 500 <= response.status_code < 600


class RetryableClient:
    """httpx.AsyncClient wrapper adding rate limiting, retries and a GET cache.

    Safe to share between concurrent tasks: per-request state lives in
    ``request()``; the limiter and cache handle their own concurrency.
    Use via ``async with RetryableClient(...) as client:`` or call
    ``aclose()`` when done.

    Args:
        options: Client options. Defaults to ``ClientOptions()``.
        limiter: Override the limiter built from ``options.rate_limit``.
        cache: Override the cache built from ``options.cache_dir``.
        transport: Optional httpx transport (tests, proxies).
    """

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        limiter: RateLimiter | None = None,
        cache: ResponseCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.options = options or ClientOptions()
        self.max_retries = self.options.max_retries
        self.retry_delay = self.options.retry_delay
        self.user_agent = self.options.user_agent
        self.cache_ttl = self.options.cache_ttl

        if limiter is None and self.options.rate_limit > 0:
            limiter = RateLimiter(self.options.rate_limit, self.options.rate_burst)
        self.limiter = limiter

        if cache is None:
            cache = (
                FileCache(self.options.cache_dir)
                if self.options.cache_dir
                else DisabledCache()
            )
        self.cache = cache

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.options.timeout),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> RetryableClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("GET", url, params=params, headers=headers)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send a request with caching, rate limiting and retries.

        Flow:
            1. GET only: return a synthesized 200 on cache hit.
            2. Up to ``max_retries + 1`` attempts, each waiting on the
               limiter first. Transport errors and 5xx are retried after
               ``retry_delay * attempt_number`` seconds.
            3. The last response is fully read and returned whatever its
               status. A 200 GET body is written to the cache; write
               failures are logged and ignored.

        Returns:
            The final httpx.Response, body already loaded.

        Raises:
            FetchError: The request could not be built (stage "request"),
                every attempt failed at the transport level (stage
                "execute"), or the body could not be read (stage "read").
            asyncio.CancelledError: The calling task was cancelled.
        """
        try:
            request = self._client.build_request(
                method, url, params=params, headers=headers, content=content
            )
        except (httpx.InvalidURL, httpx.HTTPError, TypeError, ValueError) as e:
            raise FetchError(
                f"failed to build request for {url}: {e}",
                context={"url": url, "method": method, "stage": "request"},
            ) from e
        request.headers["User-Agent"] = self.user_agent

        full_url = str(request.url)
        cacheable = request.method == "GET" and self.cache.enabled

        if cacheable:
            cached = self.cache.get(full_url)
            if cached is not None:
                logger.debug("Cache hit for %s", full_url)
                return httpx.Response(200, content=cached, request=request)
            logger.debug("Cache miss for %s", full_url)

        response, error, attempts = await self._send_with_retries(request)

        if error is not None:
            raise FetchError(
                f"{request.method} {full_url} failed after {attempts} attempt(s): {error}",
                context={
                    "url": full_url,
                    "method": request.method,
                    "stage": "execute",
                    "attempts": attempts,
                },
            ) from error

        try:
            await response.aread()
        except httpx.HTTPError as e:
            await response.aclose()
            raise FetchError(
                f"failed to read response body from {full_url}: {e}",
                context={
                    "url": full_url,
                    "method": request.method,
                    "stage": "read",
                    "attempts": attempts,
                },
            ) from e

        if cacheable and response.status_code == 200:
            try:
                self.cache.set(full_url, response.content, self.cache_ttl)
            except CacheError as e:
                logger.debug("Cache write skipped for %s: %s", full_url, e)

        return response

    # --- Rate Limiting & Retry ---

    async def _send_with_retries(
        self, request: httpx.Request
    ) -> tuple[httpx.Response | None, httpx.HTTPError | None, int]:
        """Run the attempt loop and return the last outcome plus attempt count."""
        response: httpx.Response | None = None
        error: httpx.HTTPError | None = None
        attempt = 0

        while True:
            if self.limiter is not None:
                await self.limiter.wait()

            response, error = None, None
            try:
                response = await self._client.send(request, stream=True)
            except httpx.HTTPError as e:
                error = e

            if not should_retry(response, error) or attempt >= self.max_retries:
                return response, error, attempt + 1

            delay = self.retry_delay * (attempt + 1)
            if response is not None:
                reason = f"status {response.status_code}"
                await response.aclose()
            else:
                reason = f"{type(error).__name__}: {error}"
            logger.warning(
                "Request to %s failed (%s), retrying in %.2fs (attempt %d/%d)",
                request.url, reason, delay, attempt + 1, self.max_retries,
            )
            await asyncio.sleep(delay)
            attempt += 1
