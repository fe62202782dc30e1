"""
Default provider registry configuration.

Registers built-in providers and builds races from config.yaml settings.
To add a new provider, register it here and add it to the priority list.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from ..race import PriceRace
from .base import ProviderID
from .coingecko import CoinGeckoPriceProvider
from .coinmarketcap import CoinMarketCapPriceProvider
from .cryptocompare import CryptoComparePriceProvider
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Default dispatch order (config.yaml can override this)
DEFAULT_PRIORITY = [p.value for p in ProviderID]


def create_default_registry() -> ProviderRegistry:
    """Create a registry with all built-in providers."""
    registry = ProviderRegistry()
    registry.register(ProviderID.COINGECKO.value, CoinGeckoPriceProvider)
    registry.register(ProviderID.COINMARKETCAP.value, CoinMarketCapPriceProvider)
    registry.register(ProviderID.CRYPTOCOMPARE.value, CryptoComparePriceProvider)
    return registry


def create_price_race(
    registry: Optional[ProviderRegistry] = None,
    providers: Optional[List[str]] = None,
    timeout_s: Optional[float] = None,
) -> PriceRace:
    """
    Build a PriceRace from the registry and config.yaml settings.

    Explicit arguments win over config. Unknown provider names raise ValueError
    so a typo never silently shrinks the race.
    """
    from .. import config

    reg = registry or create_default_registry()
    order = providers or config.provider_priority() or DEFAULT_PRIORITY
    unknown = [n for n in order if n not in reg.names]
    if unknown:
        raise ValueError(f"Unknown price provider(s) {unknown}. Available: {reg.names}")

    race_timeout = timeout_s if timeout_s is not None else config.race_timeout_s()
    logger.debug("Racing providers %s with %.1fs timeout", order, race_timeout)
    return PriceRace(
        reg.build(order),
        timeout_s=race_timeout,
        http_timeout_s=config.http_timeout_s(),
    )
