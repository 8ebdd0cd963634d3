"""Custom exception hierarchy for datareader."""

from typing import Any


class DataReaderError(Exception):
    """Base exception for all datareader errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(DataReaderError):
    """Invalid or missing configuration.

    Raised by load_config() and reader constructors. Should be treated as fatal.

    Context keys:
        field: str - the config field that failed validation
        value: Any - the invalid value (redacted for secrets)
    """


# --- Validation ---


class InvalidRequestError(DataReaderError):
    """A read request was rejected before any network call was made.

    Policy: never retried. The caller must fix its input.

    Context keys:
        source: str - the reader that rejected the request
    """


class InvalidSymbolError(InvalidRequestError):
    """Symbol is empty, contains whitespace, or has the wrong shape.

    Context keys:
        symbol: str - the rejected symbol
        reason: str - which rule failed
    """


class EmptySymbolListError(InvalidRequestError):
    """A multi-symbol read was given no symbols."""


class InvalidDateRangeError(InvalidRequestError):
    """Start or end date is missing, or end precedes start.

    Context keys:
        start: str - ISO start date (or None)
        end: str - ISO end date (or None)
    """


class MissingCredentialsError(InvalidRequestError):
    """The provider requires an API key and none was configured.

    Context keys:
        source: str - the provider name
    """


# --- Transport ---


class FetchError(DataReaderError):
    """HTTP request failed after all retries were spent.

    Policy: surfaced to the caller. Retries already happened inside
    RetryableClient.

    Context keys:
        url: str - the URL being fetched
        method: str - HTTP method
        stage: str - "request" (construction), "execute" or "read" (body)
        attempts: int - attempts made before giving up
    """


class HTTPStatusError(FetchError):
    """Provider answered with a non-200 status that will not be retried.

    Context keys:
        status_code: int - HTTP status returned
        reason: str - HTTP reason phrase
    """


# --- Parsing ---


class ParseError(DataReaderError):
    """Response body could not be turned into data.

    Policy: never retried; malformed payloads do not fix themselves.

    Context keys:
        source: str - the provider whose payload failed
        value: str - the offending raw value, when there is one
    """


class SymbolNotFoundError(ParseError):
    """A bulk response did not contain the requested instrument.

    Context keys:
        symbol: str - the instrument searched for
    """


class InvalidDateError(ParseError):
    """A date string does not describe a real calendar day.

    Context keys:
        value: str - the raw date string
    """


# --- Provider soft errors ---


class ProviderError(DataReaderError):
    """Provider reported a failure inside an HTTP 200 body.

    Context keys:
        source: str - the provider name
        symbol: str - the symbol being read
    """


class RateLimitError(ProviderError):
    """Provider says the request quota is exhausted.

    Policy: do not hammer the provider. Lower the configured rate limit.
    """


class APIError(ProviderError):
    """Provider returned an explicit error message."""


# --- Cache ---


class CacheError(DataReaderError):
    """Cache entry could not be written or removed.

    Policy: RetryableClient logs and ignores write failures. Direct callers
    decide for themselves.

    Context keys:
        key: str - cache key involved
        path: str - backing file, when there is one
    """


class CacheUnavailableError(CacheError):
    """Caching was requested on a disabled cache."""


# --- Registry / orchestration ---


class UnknownSourceError(DataReaderError):
    """No reader is registered under the requested source name.

    Context keys:
        source: str - the requested name
        available: list[str] - registered names
    """


class SymbolReadError(DataReaderError):
    """One symbol of a multi-symbol read failed, aborting the whole read.

    The original failure is chained as ``__cause__``.

    Context keys:
        symbol: str - the symbol whose read failed
    """

    def __init__(self, symbol: str, cause: BaseException):
        super().__init__(
            f"failed to read {symbol}: {cause}",
            context={"symbol": symbol},
        )
        self.symbol = symbol
