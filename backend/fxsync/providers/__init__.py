"""
Quote Providers

External sources of currency pair quotes.
"""
from fxsync.providers.yahoo import (
    YahooFinanceClient,
    HistoricalRate,
    PROVIDER_NAME,
    pair_symbol,
)

__all__ = [
    "YahooFinanceClient",
    "HistoricalRate",
    "PROVIDER_NAME",
    "pair_symbol",
]
