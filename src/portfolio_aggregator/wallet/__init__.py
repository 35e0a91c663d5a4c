"""Wallet balance reading."""

from portfolio_aggregator.wallet.balances import BalanceReader, has_balance

__all__ = [
    "BalanceReader",
    "has_balance",
]
