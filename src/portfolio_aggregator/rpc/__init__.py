"""RPC layer with chain-state access, price caching, and request throttling."""

from portfolio_aggregator.rpc.cache import CacheEntry, PriceCache
from portfolio_aggregator.rpc.provider import ApeChainState, ChainStateProvider
from portfolio_aggregator.rpc.rate_limit import RateLimiter

__all__ = [
    "ApeChainState",
    "CacheEntry",
    "ChainStateProvider",
    "PriceCache",
    "RateLimiter",
]
