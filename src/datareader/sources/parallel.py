"""Bounded fan-out of single-symbol reads, shared by every reader."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from datareader.core.exceptions import SymbolReadError
from datareader.sources.validation import DateLike, validate_symbols

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_WORKERS = 10

# Strong references to in-flight fetches. A failed read returns without
# awaiting its siblings, and the event loop only keeps weak references.
_in_flight: set[asyncio.Task] = set()


async def read_parallel(
    read_single: Callable[[str, DateLike, DateLike], Awaitable[T]],
    symbols: Sequence[str],
    start: DateLike,
    end: DateLike,
    max_workers: int = MAX_WORKERS,
) -> dict[str, T]:
    """Run ``read_single`` for every symbol, at most ``max_workers`` at once.

    One task is started per symbol and throttled by a semaphore of width
    ``min(max_workers, len(symbols))``. Results are collected in completion
    order.

    The first failure wins: ``SymbolReadError`` is raised as soon as any
    task reports an error, and results already gathered are discarded.
    Sibling tasks are neither awaited nor cancelled; they run to completion
    in the background and their results are dropped.

    Returns:
        Mapping of each requested symbol to its parsed data.

    Raises:
        EmptySymbolListError / InvalidSymbolError: Before any task starts.
        SymbolReadError: One symbol failed; its error is the ``__cause__``.
    """
    validate_symbols(symbols)
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    semaphore = asyncio.Semaphore(min(max_workers, len(symbols)))

    async def fetch(symbol: str) -> tuple[str, T | None, Exception | None]:
        async with semaphore:
            try:
                return symbol, await read_single(symbol, start, end), None
            except Exception as e:
                return symbol, None, e

    tasks = []
    for symbol in symbols:
        task = asyncio.create_task(fetch(symbol), name=f"read:{symbol}")
        _in_flight.add(task)
        task.add_done_callback(_in_flight.discard)
        tasks.append(task)

    results: dict[str, T] = {}
    for next_done in asyncio.as_completed(tasks):
        symbol, data, error = await next_done
        if error is not None:
            pending = sum(1 for t in tasks if not t.done())
            logger.debug(
                "Read of %s failed, abandoning %d pending fetch(es)", symbol, pending
            )
            raise SymbolReadError(symbol, error) from error
        results[symbol] = data
    return results
