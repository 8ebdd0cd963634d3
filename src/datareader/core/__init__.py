"""datareader.core: foundation types, config, and exceptions."""

from datareader.core.config import (
    DEFAULT_USER_AGENT,
    ClientOptions,
    DataReaderConfig,
    load_config,
)
from datareader.core.exceptions import (
    APIError,
    CacheError,
    CacheUnavailableError,
    ConfigError,
    DataReaderError,
    EmptySymbolListError,
    FetchError,
    HTTPStatusError,
    InvalidDateError,
    InvalidDateRangeError,
    InvalidRequestError,
    InvalidSymbolError,
    MissingCredentialsError,
    ParseError,
    ProviderError,
    RateLimitError,
    SymbolNotFoundError,
    SymbolReadError,
    UnknownSourceError,
)
from datareader.core.models import (
    NumericSeries,
    ParsedData,
    PriceSeries,
    Row,
    SeriesData,
    StockDaySeries,
    Symbol,
    TabularData,
    format_number,
)

__all__ = [
    # Type aliases
    "Row",
    "Symbol",
    # Results
    "ParsedData",
    "TabularData",
    "SeriesData",
    "NumericSeries",
    "PriceSeries",
    "StockDaySeries",
    "format_number",
    # Config
    "DEFAULT_USER_AGENT",
    "ClientOptions",
    "DataReaderConfig",
    "load_config",
    # Exceptions
    "DataReaderError",
    "ConfigError",
    "InvalidRequestError",
    "InvalidSymbolError",
    "EmptySymbolListError",
    "InvalidDateRangeError",
    "MissingCredentialsError",
    "FetchError",
    "HTTPStatusError",
    "ParseError",
    "SymbolNotFoundError",
    "InvalidDateError",
    "ProviderError",
    "RateLimitError",
    "APIError",
    "CacheError",
    "CacheUnavailableError",
    "UnknownSourceError",
    "SymbolReadError",
]
