"""datareader: historical financial and economic data from public providers.

Usage::

    import asyncio
    from datetime import date

    import datareader

    data = asyncio.run(
        datareader.read("AAPL", "stooq", date(2024, 1, 1), date(2024, 1, 31))
    )
    for row in data.to_rows():
        print(row["Date"], row["Close"])
"""

from datareader.core import (
    ClientOptions,
    DataReaderConfig,
    DataReaderError,
    ParsedData,
    load_config,
)
from datareader.registry import data_reader, list_sources, read, registry
from datareader.sources import Reader

__all__ = [
    "ClientOptions",
    "DataReaderConfig",
    "DataReaderError",
    "ParsedData",
    "Reader",
    "data_reader",
    "list_sources",
    "load_config",
    "read",
    "registry",
]
