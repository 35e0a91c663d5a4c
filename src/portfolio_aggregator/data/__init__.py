"""Data loading and configuration management."""

from portfolio_aggregator.data.loader import (
    PRICE_API_URL_ENV,
    get_chain_config,
    get_native_asset,
    get_pricing_settings,
    get_protocol_addresses,
    get_protocol_assets,
    get_tracked_asset_ids,
    get_tracked_tokens,
    load_contracts,
)

__all__ = [
    "PRICE_API_URL_ENV",
    "get_chain_config",
    "get_native_asset",
    "get_pricing_settings",
    "get_protocol_addresses",
    "get_protocol_assets",
    "get_tracked_asset_ids",
    "get_tracked_tokens",
    "load_contracts",
]
