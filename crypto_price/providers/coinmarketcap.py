"""
CoinMarketCap price provider.

Uses the legacy public ticker API (no authentication required):
  GET https://api.coinmarketcap.com/v1/ticker/{id}/

Response: [{"id": "bitcoin", "price_usd": "42000.50", ...}]
"""

from __future__ import annotations

from typing import Any

from .base import JsonPriceProvider, PriceExtractionError, ProviderID, to_number

COINMARKETCAP_BASE_URL = "https://api.coinmarketcap.com"


class CoinMarketCapPriceProvider(JsonPriceProvider):
    """Fetch USD prices from the CoinMarketCap v1 ticker."""

    provider_id = ProviderID.COINMARKETCAP
    url_template = COINMARKETCAP_BASE_URL + "/v1/ticker/{id}/"

    def extract_price(self, identifier: str, payload: Any) -> float:
        if not isinstance(payload, list):
            raise PriceExtractionError(f"unexpected response type: {type(payload).__name__}")
        if not payload:
            raise PriceExtractionError("CoinMarketCap returned an empty ticker list")

        first = payload[0]
        if not isinstance(first, dict):
            raise PriceExtractionError("CoinMarketCap ticker entry is not an object")
        raw = first.get("price_usd")
        if not isinstance(raw, str):
            raise PriceExtractionError("CoinMarketCap ticker missing price_usd")
        return to_number(float(raw))
