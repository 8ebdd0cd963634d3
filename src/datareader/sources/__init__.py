"""Provider readers.

Architecture
------------
Every provider is one class satisfying the ``Reader`` protocol:

    read(symbols) -> read_parallel -> read_single(symbol)
        -> validate -> SourceSession -> RetryableClient -> parse_* -> ParsedData

Parsers (``parse_*``) are pure functions over response bytes or decoded
JSON and can be used without a reader.

Adding a new provider:
1. Write a ``parse_*`` function returning a ``ParsedData`` subtype.
2. Write a reader class that composes a ``SourceSession``.
3. Register it in ``datareader.registry``.
"""

from datareader.sources.alphavantage import AlphaVantageReader, parse_daily_series
from datareader.sources.base import Reader, SourceSession, require_api_key
from datareader.sources.csv_parser import parse_csv
from datareader.sources.eurostat import EurostatReader, parse_jsonstat
from datareader.sources.finmind import FinMindReader, parse_dataset
from datareader.sources.fred import FredReader, parse_observations
from datareader.sources.iex import IEXReader, chart_range, parse_chart
from datareader.sources.oecd import OECDReader, parse_sdmx
from datareader.sources.parallel import read_parallel
from datareader.sources.stooq import StooqReader, parse_stooq_csv
from datareader.sources.tiingo import TiingoReader, parse_prices
from datareader.sources.twse import (
    TWSEReader,
    gregorian_to_roc,
    parse_stock_record,
    roc_to_gregorian,
)
from datareader.sources.validation import (
    validate_date_range,
    validate_symbol,
    validate_symbol_pair,
    validate_symbols,
)
from datareader.sources.worldbank import WorldBankReader, parse_indicator
from datareader.sources.yahoo import YahooReader

__all__ = [
    # Protocol & plumbing
    "Reader",
    "SourceSession",
    "require_api_key",
    "read_parallel",
    # Validation
    "validate_symbol",
    "validate_symbol_pair",
    "validate_symbols",
    "validate_date_range",
    # Readers
    "AlphaVantageReader",
    "EurostatReader",
    "FinMindReader",
    "FredReader",
    "IEXReader",
    "OECDReader",
    "StooqReader",
    "TiingoReader",
    "TWSEReader",
    "WorldBankReader",
    "YahooReader",
    # Parsers
    "parse_csv",
    "parse_stooq_csv",
    "parse_daily_series",
    "parse_observations",
    "parse_indicator",
    "parse_chart",
    "chart_range",
    "parse_prices",
    "parse_dataset",
    "parse_stock_record",
    "parse_jsonstat",
    "parse_sdmx",
    # ROC calendar
    "roc_to_gregorian",
    "gregorian_to_roc",
]
