"""Fake providers for race tests (no live network)."""

from .providers import FakeHangingProvider, FakePriceProvider, FakeRaisingProvider

__all__ = [
    "FakeHangingProvider",
    "FakePriceProvider",
    "FakeRaisingProvider",
]
