"""Core functionality including models, registry, and the demonstration snapshot."""

from portfolio_aggregator.core.demo import demo_snapshot
from portfolio_aggregator.core.exceptions import AggregationError, PortfolioAggregatorError, PositionReadError
from portfolio_aggregator.core.models import (
    AssetPrice,
    HeldToken,
    MarketData,
    PortfolioSnapshot,
    Position,
    ProtocolName,
    ReaderResult,
    SourceKind,
    TokenBalance,
    TokenBalanceResult,
    TrackedToken,
)
from portfolio_aggregator.core.registry import ReaderRegistry

__all__ = [
    "AggregationError",
    "AssetPrice",
    "HeldToken",
    "MarketData",
    "PortfolioAggregatorError",
    "PortfolioSnapshot",
    "Position",
    "PositionReadError",
    "ProtocolName",
    "ReaderRegistry",
    "ReaderResult",
    "SourceKind",
    "TokenBalance",
    "TokenBalanceResult",
    "TrackedToken",
    "demo_snapshot",
]
