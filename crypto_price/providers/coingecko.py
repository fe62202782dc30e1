"""
CoinGecko price provider.

Uses the public CoinGecko API (no authentication required):
  GET https://api.coingecko.com/api/v3/simple/price?ids={id}&vs_currencies=usd

Response: {"bitcoin": {"usd": 42000.5}}
"""

from __future__ import annotations

from typing import Any

from .base import JsonPriceProvider, PriceExtractionError, ProviderID, to_number

COINGECKO_BASE_URL = "https://api.coingecko.com"


class CoinGeckoPriceProvider(JsonPriceProvider):
    """Fetch USD prices from the CoinGecko simple price endpoint."""

    provider_id = ProviderID.COINGECKO
    url_template = COINGECKO_BASE_URL + "/api/v3/simple/price?ids={id}&vs_currencies=usd"

    def extract_price(self, identifier: str, payload: Any) -> float:
        if not isinstance(payload, dict):
            raise PriceExtractionError(f"unexpected response type: {type(payload).__name__}")
        if not payload:
            raise PriceExtractionError("CoinGecko response has no coin entries")

        # The requested id is the expected key; otherwise take the only entry.
        entry = payload.get(identifier)
        if entry is None:
            entry = next(iter(payload.values()))
        if not isinstance(entry, dict) or "usd" not in entry:
            raise PriceExtractionError("CoinGecko response missing usd price")
        return to_number(entry["usd"])
