"""
Provider registry: central catalog of available price providers.

Providers register themselves here under a name. A priority list (from
config.yaml or the CLI) determines which providers race and in what order
they are dispatched.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, Union

from .base import PriceProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Named price providers, each either a class or a ready-made instance.

    A class is instantiated on first lookup and the instance is kept, so every
    race built from one registry shares the same adapter objects. Instances
    are handy for tests and for adapters that need constructor arguments.

        registry = ProviderRegistry()
        registry.register("cryptocompare", CryptoComparePriceProvider)
        registry.register("fake", FakePriceProvider(ProviderID.COINGECKO, 1.0))
        race = PriceRace(registry.build(["fake", "cryptocompare"]))
    """

    def __init__(self) -> None:
        self._factories: Dict[str, Any] = {}
        self._instances: Dict[str, PriceProvider] = {}

    def register(
        self,
        name: str,
        factory: Union[Type[PriceProvider], PriceProvider],
    ) -> None:
        """Register a price provider by name."""
        self._factories[name] = factory
        self._instances.pop(name, None)
        logger.debug("Registered price provider: %s", name)

    def get(self, name: str) -> PriceProvider:
        """Get or instantiate a provider by name."""
        if name not in self._instances:
            factory = self._factories.get(name)
            if factory is None:
                raise KeyError(
                    f"Unknown price provider '{name}'. "
                    f"Available: {list(self._factories)}"
                )
            if isinstance(factory, type):
                self._instances[name] = factory()
            else:
                self._instances[name] = factory
        return self._instances[name]

    @property
    def names(self) -> List[str]:
        return list(self._factories)

    def build(self, priority: Optional[List[str]] = None) -> List[PriceProvider]:
        """Build an ordered list of providers from a priority list."""
        names = priority or list(self._factories)
        return [self.get(n) for n in names if n in self._factories]
