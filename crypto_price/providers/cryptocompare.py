"""
CryptoCompare price provider.

Uses the public min-api (no authentication required):
  GET https://min-api.cryptocompare.com/data/price?fsym={id}&tsyms=USD

Response: {"USD": 42000.5}. Errors come back as HTTP 200 with
{"Response": "Error", "Message": ...}, which has no USD field.
"""

from __future__ import annotations

from typing import Any

from .base import JsonPriceProvider, PriceExtractionError, ProviderID, to_number

CRYPTOCOMPARE_BASE_URL = "https://min-api.cryptocompare.com"


class CryptoComparePriceProvider(JsonPriceProvider):
    """Fetch USD prices from the CryptoCompare single-symbol price endpoint."""

    provider_id = ProviderID.CRYPTOCOMPARE
    url_template = CRYPTOCOMPARE_BASE_URL + "/data/price?fsym={id}&tsyms=USD"

    def extract_price(self, identifier: str, payload: Any) -> float:
        if not isinstance(payload, dict):
            raise PriceExtractionError(f"unexpected response type: {type(payload).__name__}")
        if "USD" not in payload:
            message = payload.get("Message") or "missing USD price"
            raise PriceExtractionError(f"CryptoCompare: {message}")
        return to_number(payload["USD"])
