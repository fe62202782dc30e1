"""
CLI entry point: crypto-price <identifier>.

Races every configured provider once and prints the winning USD price.
Exit code is 0 whether or not a price was found.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import yaml

USAGE_HINT = "Please specify a cryptocurrency (e.g., bitcoin, ethereum)"


def _provider_list(value: str) -> List[str]:
    from crypto_price.providers.defaults import DEFAULT_PRIORITY

    names = [n.strip().lower() for n in value.split(",") if n.strip()]
    unknown = [n for n in names if n not in DEFAULT_PRIORITY]
    if not names or unknown:
        raise argparse.ArgumentTypeError(
            f"unknown provider(s) {unknown or value!r}; choose from {', '.join(DEFAULT_PRIORITY)}"
        )
    return names


def _positive_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"timeout must be positive, got {value}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crypto-price",
        description="Fetch the current USD price of a cryptocurrency from the fastest provider",
    )
    parser.add_argument("crypto", nargs="?", help="Provider identifier, e.g. bitcoin")
    parser.add_argument(
        "--timeout",
        type=_positive_seconds,
        default=None,
        help="Race timeout in seconds (default from config.yaml, 10s)",
    )
    parser.add_argument(
        "--providers",
        type=_provider_list,
        default=None,
        help="Comma-separated providers to race (default: all)",
    )
    parser.add_argument("--latency", action="store_true", help="Show the winning provider's latency")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.crypto:
        print(USAGE_HINT)
        return 0

    from crypto_price.providers.defaults import create_price_race
    from crypto_price.report import format_outcome

    try:
        race = create_price_race(providers=args.providers, timeout_s=args.timeout)
    except (ValueError, yaml.YAMLError) as exc:
        parser.error(f"bad configuration: {exc}")
    outcome = race.run(args.crypto)
    print(format_outcome(args.crypto, outcome, show_latency=args.latency))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
