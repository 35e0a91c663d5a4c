"""Contract address and configuration loader."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from portfolio_aggregator.core.models import TrackedToken

PRICE_API_URL_ENV = "PORTFOLIO_PRICE_API_URL"


@lru_cache(maxsize=1)
def load_contracts() -> dict[str, Any]:
    """
    Load contract addresses and tracked assets from contracts.yaml.

    Returns
    -------
    dict[str, Any]
        Configuration including chains, pricing, tokens, and protocols

    """
    path = Path(__file__).parent / "contracts.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def get_chain_config(chain: str = "ethereum") -> dict[str, Any]:
    """
    Get configuration for a chain.

    Parameters
    ----------
    chain : str
        Chain name

    Returns
    -------
    dict[str, Any]
        Chain configuration

    Raises
    ------
    KeyError
        If chain is not found in configuration

    """
    return load_contracts()["chains"][chain]


def get_native_asset(chain: str = "ethereum") -> dict[str, str]:
    """Get the native asset's symbol and price-source id for a chain."""
    return dict(get_chain_config(chain)["native_asset"])


def get_tracked_tokens() -> list[TrackedToken]:
    """
    Get the fixed list of ERC-20 tokens read for every wallet.

    Returns
    -------
    list[TrackedToken]
        Tokens in reporting order

    """
    return [TrackedToken(**entry) for entry in load_contracts()["tokens"]]


def get_tracked_asset_ids() -> list[str]:
    """Get the asset ids requested from the price source on every run."""
    return list(load_contracts()["pricing"]["tracked_asset_ids"])


def get_pricing_settings() -> dict[str, Any]:
    """
    Get price source settings.

    The base URL can be overridden with the ``PORTFOLIO_PRICE_API_URL``
    environment variable.

    Returns
    -------
    dict[str, Any]
        ``base_url``, ``timeout``, ``cache_ttl`` and ``min_request_interval``

    """
    pricing = load_contracts()["pricing"]
    return {
        "base_url": os.getenv(PRICE_API_URL_ENV, pricing["base_url"]),
        "timeout": float(pricing["timeout"]),
        "cache_ttl": float(pricing["cache_ttl"]),
        "min_request_interval": float(pricing["min_request_interval"]),
    }


def get_protocol_addresses(protocol: str) -> dict[str, str]:
    """
    Get all contract addresses for a protocol.

    Parameters
    ----------
    protocol : str
        Protocol name (e.g., 'aave', 'compound')

    Returns
    -------
    dict[str, str]
        Mapping of contract names to addresses, empty for unknown protocols

    """
    protocol_config = load_contracts()["protocols"].get(protocol, {})
    return dict(protocol_config.get("contracts", {}))


def get_protocol_assets(protocol: str) -> list[dict[str, str]]:
    """
    Get the candidate assets a protocol reader inspects.

    Parameters
    ----------
    protocol : str
        Protocol name

    Returns
    -------
    list[dict[str, str]]
        Asset entries with at least ``address`` and ``symbol``

    """
    protocol_config = load_contracts()["protocols"].get(protocol, {})
    return [dict(asset) for asset in protocol_config.get("assets", [])]
