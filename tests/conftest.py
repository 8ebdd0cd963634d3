"""Shared pytest fixtures for datareader."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from datareader.core.config import ClientOptions


@pytest.fixture
def fast_options() -> ClientOptions:
    """Options with retries kept but delays shrunk so tests stay quick."""
    return ClientOptions(timeout=5.0, max_retries=2, retry_delay=0.01)


@pytest.fixture
def keyed_options(fast_options: ClientOptions) -> ClientOptions:
    return fast_options.model_copy(update={"api_key": "test-key"})


@pytest.fixture
def cached_options(fast_options: ClientOptions, tmp_path: Path) -> ClientOptions:
    return fast_options.model_copy(update={"cache_dir": str(tmp_path / "cache")})


@pytest.fixture
def start() -> date:
    return date(2024, 1, 1)


@pytest.fixture
def end() -> date:
    return date(2024, 1, 31)


@pytest.fixture
def stooq_csv() -> str:
    """Stooq CSV download, newest first as some mirrors serve it."""
    return (
        "Date,Open,High,Low,Close,Volume\n"
        "2024-01-15,185.89,186.95,185.30,186.51,51234567\n"
        "2024-01-12,182.16,185.92,182.00,185.59,70538800\n"
        "2024-01-11,180.21,182.41,179.50,182.32,64280300\n"
    )


@pytest.fixture
def twse_payload() -> list[dict]:
    """STOCK_DAY_ALL response with two instruments."""
    return [
        {
            "Date": "1141031",
            "Code": "2330",
            "Name": "台積電",
            "TradeVolume": "31,234,567",
            "TradeValue": "32768000000",
            "OpeningPrice": "1050.00",
            "HighestPrice": "1060.00",
            "LowestPrice": "1045.00",
            "ClosingPrice": "1055.00",
            "Change": "5.0000",
            "Transaction": "45678",
        },
        {
            "Date": "1141031",
            "Code": "0050",
            "Name": "元大台灣50",
            "TradeVolume": "12000000",
            "TradeValue": "2400000000",
            "OpeningPrice": "200.10",
            "HighestPrice": "201.00",
            "LowestPrice": "199.50",
            "ClosingPrice": "",
            "Change": "-0.3500",
            "Transaction": "",
        },
    ]
