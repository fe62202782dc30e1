"""
USD price providers for the price race.

Each adapter wraps one public quote API and normalizes its response shape
into a PriceQuote. Failures never raise; they come back as zero-price quotes.
"""

from __future__ import annotations

from .base import (
    HTTP_TIMEOUT_S,
    JsonPriceProvider,
    PriceProvider,
    PriceQuote,
    ProviderID,
)
from .coingecko import CoinGeckoPriceProvider
from .coinmarketcap import CoinMarketCapPriceProvider
from .cryptocompare import CryptoComparePriceProvider
from .http import CancelToken
from .registry import ProviderRegistry

__all__ = [
    "HTTP_TIMEOUT_S",
    "CancelToken",
    "ProviderID",
    "PriceQuote",
    "PriceProvider",
    "JsonPriceProvider",
    "CoinGeckoPriceProvider",
    "CoinMarketCapPriceProvider",
    "CryptoComparePriceProvider",
    "ProviderRegistry",
]
