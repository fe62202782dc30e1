"""
Load config from config.yaml with optional env overrides.
Single source of truth for race timeouts and the provider line-up.

Only the CLI layer reads this module; the race and the adapters take
their settings as arguments.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import List

# Built-in settings, used when neither config.yaml nor env sets a key
_DEFAULTS = {
    "race": {
        "timeout_s": 10.0,
        "http_timeout_s": 10.0,
    },
    "providers": {
        "priority": ["coingecko", "coinmarketcap", "cryptocompare"],
    },
}


def _config_yaml_path() -> Path:
    """config.yaml sits next to pyproject.toml, one level above the package."""
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    import yaml

    config_path = _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _split_names(value: str) -> List[str]:
    return [n.strip() for n in value.split(",") if n.strip()]


def _env_overrides() -> dict:
    overrides: dict = {}
    timeout = os.environ.get("CRYPTO_PRICE_TIMEOUT_S")
    if timeout:
        overrides.setdefault("race", {})["timeout_s"] = timeout
    http_timeout = os.environ.get("CRYPTO_PRICE_HTTP_TIMEOUT_S")
    if http_timeout:
        overrides.setdefault("race", {})["http_timeout_s"] = http_timeout
    providers = os.environ.get("CRYPTO_PRICE_PROVIDERS")
    if providers:
        overrides.setdefault("providers", {})["priority"] = _split_names(providers)
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


def _positive_float(value, key: str) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got {value!r}") from None
    if out <= 0:
        raise ValueError(f"{key} must be positive, got {out}")
    return out


# Validated accessors used by the CLI layer
def race_timeout_s() -> float:
    return _positive_float(get_config()["race"]["timeout_s"], "race.timeout_s")


def http_timeout_s() -> float:
    return _positive_float(get_config()["race"]["http_timeout_s"], "race.http_timeout_s")


def provider_priority() -> List[str]:
    names = get_config()["providers"]["priority"]
    if isinstance(names, str):
        names = _split_names(names)
    return [str(n) for n in names]
