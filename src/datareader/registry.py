"""Source-name registry and one-shot read helpers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Callable

from datareader.core.config import ClientOptions
from datareader.core.exceptions import InvalidRequestError, UnknownSourceError
from datareader.core.models import ParsedData
from datareader.sources import (
    AlphaVantageReader,
    EurostatReader,
    FinMindReader,
    FredReader,
    IEXReader,
    OECDReader,
    Reader,
    StooqReader,
    TiingoReader,
    TWSEReader,
    WorldBankReader,
    YahooReader,
)
from datareader.sources.validation import DateLike

logger = logging.getLogger(__name__)

ReaderFactory = Callable[..., Reader]


class SourceRegistry:
    """Maps source names (``"fred"``, ``"stooq"``, ...) to reader factories."""

    def __init__(self) -> None:
        self._factories: dict[str, ReaderFactory] = {}

    def register(self, name: str, factory: ReaderFactory) -> None:
        key = _normalize(name)
        if key in self._factories:
            raise ValueError(
                f"Source '{key}' is already registered. Use replace() to override."
            )
        self._factories[key] = factory

    def replace(self, name: str, factory: ReaderFactory) -> None:
        key = _normalize(name)
        if key not in self._factories:
            raise KeyError(f"Source '{key}' is not registered.")
        self._factories[key] = factory

    def get(self, name: str) -> ReaderFactory:
        key = _normalize(name)
        if not key:
            raise InvalidRequestError("source name cannot be empty")
        try:
            return self._factories[key]
        except KeyError:
            raise UnknownSourceError(
                f"unknown data source: {name!r}",
                context={"source": name, "available": self.list_names()},
            ) from None

    def list_names(self) -> list[str]:
        return list(self._factories.keys())

    def create(self, name: str, options: ClientOptions | None = None, **kwargs) -> Reader:
        """Instantiate the reader registered under ``name``."""
        factory = self.get(name)
        logger.debug("Creating reader for source '%s'", _normalize(name))
        return factory(options, **kwargs)


def _normalize(name: str) -> str:
    return (name or "").strip().lower()


def data_reader(
    source: str, options: ClientOptions | None = None, **kwargs
) -> Reader:
    """Build a reader by source name.

    Raises:
        InvalidRequestError: ``source`` is empty.
        UnknownSourceError: Nothing is registered under ``source``.
        MissingCredentialsError: The provider needs an API key.
    """
    return registry.create(source, options, **kwargs)


async def read(
    symbols: str | Sequence[str],
    source: str,
    start: DateLike,
    end: DateLike,
    options: ClientOptions | None = None,
) -> ParsedData | dict[str, ParsedData]:
    """Fetch data in one call, closing the reader afterwards.

    A single symbol string returns that symbol's data; a list returns a
    symbol -> data mapping.
    """
    reader = data_reader(source, options)
    try:
        if isinstance(symbols, str):
            return await reader.read_single(symbols, start, end)
        return await reader.read(list(symbols), start, end)
    finally:
        await reader.aclose()


def list_sources() -> list[str]:
    """Registered source names, in registration order."""
    return registry.list_names()


# Module-level singleton registry
registry = SourceRegistry()
registry.register("yahoo", YahooReader)
registry.register("fred", FredReader)
registry.register("worldbank", WorldBankReader)
registry.register("alphavantage", AlphaVantageReader)
registry.register("stooq", StooqReader)
registry.register("iex", IEXReader)
registry.register("tiingo", TiingoReader)
registry.register("oecd", OECDReader)
registry.register("eurostat", EurostatReader)
registry.register("twse", TWSEReader)
registry.register("finmind", FinMindReader)
