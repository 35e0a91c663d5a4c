"""Position readers for the supported DeFi protocols."""

# Import all readers to trigger auto-registration
from portfolio_aggregator.protocols.aave import AaveReader
from portfolio_aggregator.protocols.base import BasePositionReader
from portfolio_aggregator.protocols.compound import CompoundReader
from portfolio_aggregator.protocols.uniswap import UniswapV3Reader

__all__ = [
    "AaveReader",
    "BasePositionReader",
    "CompoundReader",
    "UniswapV3Reader",
]
