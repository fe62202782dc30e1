"""
Top-level public API surface.
Canonical entrypoint: from crypto_price import fetch_price.
Does not import cli.
"""

from __future__ import annotations

from ._version import __version__
from .providers import PriceQuote, ProviderID
from .race import RACE_TIMEOUT_S, PriceRace, RaceOutcome, RaceState, fetch_price

# Do not add exports without updating __all__.
__all__ = [
    "__version__",
    "RACE_TIMEOUT_S",
    "PriceQuote",
    "PriceRace",
    "ProviderID",
    "RaceOutcome",
    "RaceState",
    "fetch_price",
]
