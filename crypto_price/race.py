"""
Price race: fan out one request per provider, take the first usable quote.

Every provider runs on its own worker thread and writes exactly one
PriceQuote to an unbounded queue. The caller drains the queue in completion
order until one of:

- a quote with price > 0 arrives (WINNER_FOUND),
- every provider has reported a non-positive quote (ALL_FAILED),
- the race deadline elapses (TIMED_OUT).

Completion order is the only tie-break: the first positive quote wins even if
a later one is cheaper or faster. On every terminal state the shared
CancelToken fires. It shuts down the sockets of requests still in flight, so
stragglers fail fast instead of being awaited. Their late writes land in the
queue harmlessly. Workers are daemon threads, so interpreter exit never
joins a straggler.
"""

from __future__ import annotations

import enum
import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .providers.base import HTTP_TIMEOUT_S, PriceProvider, PriceQuote
from .providers.http import CancelToken

logger = logging.getLogger(__name__)

RACE_TIMEOUT_S = 10.0

# Floor for the per-request timeout handed to a provider near the deadline.
_MIN_REQUEST_TIMEOUT_S = 0.05


class RaceState(enum.Enum):
    """Lifecycle of a single race."""

    RACING = "RACING"
    WINNER_FOUND = "WINNER_FOUND"
    TIMED_OUT = "TIMED_OUT"
    ALL_FAILED = "ALL_FAILED"


@dataclass(frozen=True)
class RaceOutcome:
    """Result of one race: the winning quote, or None for "no usable quote"."""

    quote: Optional[PriceQuote]
    state: RaceState
    elapsed_s: float

    @property
    def found(self) -> bool:
        return self.quote is not None


class PriceRace:
    """
    Race a fixed set of providers for one identifier.

    The instance holds no per-race state, so one PriceRace can be run
    repeatedly (sequentially or from several threads).
    """

    def __init__(
        self,
        providers: Sequence[PriceProvider],
        timeout_s: float = RACE_TIMEOUT_S,
        http_timeout_s: float = HTTP_TIMEOUT_S,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {timeout_s}")
        if http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {http_timeout_s}")
        self._providers: List[PriceProvider] = list(providers)
        self._timeout_s = timeout_s
        self._http_timeout_s = http_timeout_s

    @property
    def providers(self) -> List[PriceProvider]:
        return list(self._providers)

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    def run(self, identifier: str) -> RaceOutcome:
        """Run one race and return its outcome. Never raises for provider failures."""
        started = time.monotonic()
        deadline = started + self._timeout_s
        results: "queue.Queue[PriceQuote]" = queue.Queue()
        cancel = CancelToken()

        if not self._providers:
            logger.warning("No price providers configured for %s", identifier)
            return RaceOutcome(None, RaceState.ALL_FAILED, 0.0)

        for index, provider in enumerate(self._providers):
            threading.Thread(
                target=self._run_provider,
                args=(provider, identifier, cancel, deadline, results),
                name=f"price_race_{index}",
                daemon=True,
            ).start()
        state = RaceState.RACING

        winner: Optional[PriceQuote] = None
        received = 0
        try:
            while received < len(self._providers):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    state = RaceState.TIMED_OUT
                    break
                try:
                    quote = results.get(timeout=remaining)
                except queue.Empty:
                    state = RaceState.TIMED_OUT
                    break
                received += 1
                logger.debug(
                    "%s answered %s in %.3fs (price=%s)",
                    quote.source.value, identifier, quote.latency_s, quote.price,
                )
                if quote.is_valid():
                    winner = quote
                    state = RaceState.WINNER_FOUND
                    break
            else:
                state = RaceState.ALL_FAILED
        finally:
            cancel.set()

        elapsed = time.monotonic() - started
        if state is RaceState.WINNER_FOUND:
            logger.info(
                "Price race for %s won by %s in %.3fs",
                identifier, winner.source.value, elapsed,
            )
        elif state is RaceState.TIMED_OUT:
            logger.warning(
                "Price race for %s timed out after %.1fs (%d/%d providers answered)",
                identifier, elapsed, received, len(self._providers),
            )
        else:
            logger.warning(
                "All %d price providers failed for %s", len(self._providers), identifier
            )
        return RaceOutcome(quote=winner, state=state, elapsed_s=elapsed)

    def _run_provider(
        self,
        provider: PriceProvider,
        identifier: str,
        cancel: CancelToken,
        deadline: float,
        results: "queue.Queue[PriceQuote]",
    ) -> None:
        started = time.monotonic()
        timeout_s = max(min(self._http_timeout_s, deadline - started), _MIN_REQUEST_TIMEOUT_S)
        try:
            quote = provider.get_quote(identifier, cancel=cancel, timeout_s=timeout_s)
        except Exception as exc:
            logger.debug(
                "Provider %s raised: %s: %s",
                provider.provider_id.value, type(exc).__name__, exc,
            )
            quote = PriceQuote(
                price=0.0,
                source=provider.provider_id,
                latency_s=time.monotonic() - started,
                error_message=f"{type(exc).__name__}: {exc}"[:500],
            )
        results.put(quote)


def fetch_price(
    identifier: str,
    providers: Optional[Sequence[PriceProvider]] = None,
    timeout_s: float = RACE_TIMEOUT_S,
) -> RaceOutcome:
    """Race the given providers (default: all built-in) for one identifier."""
    if providers is None:
        from .providers.defaults import create_default_registry

        providers = create_default_registry().build()
    return PriceRace(providers, timeout_s=timeout_s).run(identifier)
