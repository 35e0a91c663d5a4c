"""Native and ERC-20 balance reader for a single wallet."""

import asyncio
import logging
from decimal import Decimal
from typing import Any

from eth_utils import is_address

from portfolio_aggregator.core.formatting import format_units
from portfolio_aggregator.core.models import HeldToken, TokenBalanceResult, TrackedToken
from portfolio_aggregator.data.abis import ERC20_ABI
from portfolio_aggregator.rpc.provider import ChainStateProvider

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18
UNKNOWN_SYMBOL = "UNKNOWN"


class BalanceReader:
    """
    Reads wallet balances through the connected chain-state provider.

    Without a provider every lookup returns a zero result instead of failing.

    Parameters
    ----------
    provider : ChainStateProvider | None
        Chain-state provider, None when no wallet is connected

    """

    def __init__(self, provider: ChainStateProvider | None = None) -> None:
        self.provider = provider

    async def get_wallet_address(self) -> str | None:
        """
        Get the first account authorized by the connected wallet.

        Returns
        -------
        str | None
            Address, or None without provider, accounts, or on error

        """
        if self.provider is None:
            return None
        try:
            addresses = await self.provider.list_accounts()
        except Exception as e:
            logger.warning("Error getting wallet address: %s", e)
            return None
        return addresses[0] if addresses else None

    async def get_native_balance(self, address: str) -> str:
        """
        Get the native (ETH) balance of an address.

        Parameters
        ----------
        address : str
            Wallet address

        Returns
        -------
        str
            Balance in ether as a decimal string, "0" without provider or on error

        """
        if self.provider is None:
            return "0"
        try:
            wei = await self.provider.get_balance(address)
        except Exception as e:
            logger.warning("Error getting native balance for %s: %s", address, e)
            return "0"
        return format_units(wei, DEFAULT_DECIMALS)

    async def get_token_balance(self, token_address: str, wallet_address: str) -> TokenBalanceResult:
        """
        Get an ERC-20 balance with its symbol and decimals.

        Malformed addresses are rejected before any call. ``decimals`` and
        ``symbol`` fall back to 18 and "UNKNOWN" independently when the token
        does not implement them.

        Parameters
        ----------
        token_address : str
            Token contract address
        wallet_address : str
            Wallet address

        Returns
        -------
        TokenBalanceResult
            Balance row, or the zero result (balance "0", empty symbol, 18 decimals)

        """
        empty = TokenBalanceResult()
        if self.provider is None:
            return empty
        if not is_address(token_address):
            logger.warning("Invalid token address: %s", token_address)
            return empty
        if not is_address(wallet_address):
            logger.warning("Invalid wallet address: %s", wallet_address)
            return empty

        try:
            raw_balance = int(await self._call(token_address, "balanceOf", wallet_address))
        except Exception as e:
            logger.warning("Error getting balance of token %s: %s", token_address, e)
            return empty

        if raw_balance == 0:
            return empty

        decimals, symbol = await asyncio.gather(
            self._call_or_default(token_address, "decimals", DEFAULT_DECIMALS),
            self._call_or_default(token_address, "symbol", UNKNOWN_SYMBOL),
        )
        decimals = int(decimals)
        return TokenBalanceResult(
            balance=format_units(raw_balance, decimals),
            symbol=str(symbol),
            decimals=decimals,
        )

    async def read_token_balances(self, address: str, tokens: list[TrackedToken]) -> list[HeldToken]:
        """
        Read a fixed token list one token at a time.

        A token whose lookup raises is logged and skipped; the rest keep their
        list order. Zero balances are left out.

        Parameters
        ----------
        address : str
            Wallet address
        tokens : list[TrackedToken]
            Tokens to read, in reporting order

        Returns
        -------
        list[HeldToken]
            Tokens with a positive balance

        """
        outcomes: list[tuple[TrackedToken, TokenBalanceResult | Exception]] = []
        for token in tokens:
            try:
                outcomes.append((token, await self.get_token_balance(token.address, address)))
            except Exception as e:
                outcomes.append((token, e))

        held: list[HeldToken] = []
        for token, outcome in outcomes:
            match outcome:
                case Exception() as e:
                    logger.warning("Skipping token %s: %s", token.symbol, e)
                case TokenBalanceResult() as result if not result.is_empty:
                    held.append(HeldToken(symbol=result.symbol, balance=result.balance))
        return held

    async def _call(self, token_address: str, method: str, *args: Any) -> Any:
        return await self.provider.call(token_address, ERC20_ABI, method, *args)  # type: ignore[union-attr]

    async def _call_or_default(self, token_address: str, method: str, default: Any) -> Any:
        try:
            return await self._call(token_address, method)
        except Exception as e:
            logger.debug("%s() failed on %s, defaulting to %r: %s", method, token_address, default, e)
            return default


def has_balance(balance: str) -> bool:
    """True when a decimal balance string is positive."""
    return Decimal(balance) > 0
