"""
Provider interfaces and data contracts.

Every price source implements PriceProvider: given a cryptocurrency identifier,
return a PriceQuote. Adapters never raise across this boundary; a quote with a
non-positive price is the uniform "no usable price" signal.

Data is returned via frozen dataclasses for immutability and type safety.
"""

from __future__ import annotations

import enum
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable
from urllib.parse import quote

import requests

from .http import CancelToken, cancellable_session, read_body

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_S = 10.0


class ProviderID(enum.Enum):
    """Identity of a price source. The value doubles as the registry key."""

    COINGECKO = "coingecko"
    COINMARKETCAP = "coinmarketcap"
    CRYPTOCOMPARE = "cryptocompare"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    ProviderID.COINGECKO: "CoinGecko",
    ProviderID.COINMARKETCAP: "CoinMarketCap",
    ProviderID.CRYPTOCOMPARE: "CryptoCompare",
}


@dataclass(frozen=True)
class PriceQuote:
    """Immutable USD price quote produced by one provider."""

    price: float
    source: ProviderID
    latency_s: float
    error_message: Optional[str] = None

    def is_valid(self) -> bool:
        return self.price is not None and self.price > 0


class PriceExtractionError(ValueError):
    """Response decoded fine but carries no usable price."""


@runtime_checkable
class PriceProvider(Protocol):
    """Protocol for USD price providers."""

    @property
    def provider_id(self) -> ProviderID: ...

    def get_quote(
        self,
        identifier: str,
        *,
        cancel: Optional[CancelToken] = None,
        timeout_s: float = HTTP_TIMEOUT_S,
    ) -> PriceQuote:
        """Fetch the current USD price for an identifier (e.g. 'bitcoin')."""
        ...


def to_number(x: Any) -> float:
    """Accept a finite JSON number only; strings and booleans are schema mismatches."""
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise PriceExtractionError(f"expected a number, got {type(x).__name__}")
    value = float(x)
    if not math.isfinite(value):
        raise PriceExtractionError(f"price is not finite: {value}")
    return value


class JsonPriceProvider:
    """
    One HTTP GET against a fixed URL template, decoded as JSON.

    Subclasses set `provider_id` and `url_template` (with an `{id}`
    placeholder) and implement `extract_price`. All failures (transport,
    non-200 status, bad JSON, missing price) collapse to a zero-price quote.

    The body is streamed on a one-shot cancellable session, so a race that
    has already been decided aborts the request wherever it is blocked.
    """

    provider_id: ProviderID
    url_template: str

    def build_url(self, identifier: str) -> str:
        return self.url_template.format(id=quote(identifier, safe=""))

    def extract_price(self, identifier: str, payload: Any) -> float:
        raise NotImplementedError

    def get_quote(
        self,
        identifier: str,
        *,
        cancel: Optional[CancelToken] = None,
        timeout_s: float = HTTP_TIMEOUT_S,
    ) -> PriceQuote:
        started = time.monotonic()
        if cancel is not None and cancel.is_set():
            return self._failed(started, "cancelled before request")

        url = self.build_url(identifier)
        try:
            with cancellable_session(cancel) as session:
                resp = session.get(url, timeout=timeout_s, stream=True)
                try:
                    if resp.status_code != 200:
                        return self._failed(started, f"HTTP {resp.status_code}")
                    body = read_body(resp, cancel, deadline=started + timeout_s)
                finally:
                    resp.close()
            payload = json.loads(body)
            price = self.extract_price(identifier, payload)
        except (requests.RequestException, OSError) as exc:
            if cancel is not None and cancel.is_set():
                return self._failed(started, "cancelled in flight")
            return self._failed(started, f"{type(exc).__name__}: {exc}")
        except (ValueError, KeyError, TypeError, IndexError) as exc:
            return self._failed(started, f"bad response: {exc}")

        return PriceQuote(
            price=price,
            source=self.provider_id,
            latency_s=time.monotonic() - started,
        )

    def _failed(self, started: float, error: str) -> PriceQuote:
        logger.debug("%s quote failed: %s", self.provider_id.value, error)
        return PriceQuote(
            price=0.0,
            source=self.provider_id,
            latency_s=time.monotonic() - started,
            error_message=error[:500],
        )
