"""HTTP layer shared by all readers: rate limiter, response cache, retrying client."""

from datareader.transport.cache import (
    DisabledCache,
    FileCache,
    ResponseCache,
    cache_key,
)
from datareader.transport.client import RetryableClient, should_retry
from datareader.transport.ratelimit import RateLimiter

__all__ = [
    "RateLimiter",
    "ResponseCache",
    "FileCache",
    "DisabledCache",
    "cache_key",
    "RetryableClient",
    "should_retry",
]
