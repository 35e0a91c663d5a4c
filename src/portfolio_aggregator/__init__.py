"""Aggregate a wallet's token holdings and DeFi positions into one portfolio snapshot."""

from portfolio_aggregator.core.aggregator import PortfolioAggregator
from portfolio_aggregator.core.demo import demo_snapshot
from portfolio_aggregator.core.exceptions import AggregationError
from portfolio_aggregator.core.models import PortfolioSnapshot

__version__ = "0.1.0"

__all__ = [
    "AggregationError",
    "PortfolioAggregator",
    "PortfolioSnapshot",
    "demo_snapshot",
]
