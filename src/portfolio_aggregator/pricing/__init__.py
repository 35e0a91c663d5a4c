"""Pricing services for token USD value enrichment."""

from portfolio_aggregator.pricing.coingecko import FALLBACK_PRICES, CoinGeckoPricing

__all__ = [
    "FALLBACK_PRICES",
    "CoinGeckoPricing",
]
