"""Terminal formatting for race outcomes."""

from __future__ import annotations

from .race import RaceOutcome

FAILURE_MESSAGE = "Failed to fetch the price"


def format_outcome(identifier: str, outcome: RaceOutcome, show_latency: bool = False) -> str:
    """One line for the user. Failures are never broken down per provider."""
    quote = outcome.quote
    if quote is None or not quote.is_valid():
        return FAILURE_MESSAGE
    source = quote.source.display_name
    if show_latency:
        source = f"{source} in {quote.latency_s * 1000:.0f} ms"
    return f"The current price of {identifier} is ${quote.price:.2f} (Source: {source})"
