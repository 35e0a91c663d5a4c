"""Portfolio aggregator for orchestrating balance, price, and position fetching."""

import asyncio
import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

# Import all position readers to trigger auto-registration
from portfolio_aggregator import protocols  # noqa: F401
from portfolio_aggregator.core.exceptions import AggregationError
from portfolio_aggregator.core.models import (
    HeldToken,
    PortfolioSnapshot,
    ReaderResult,
    TokenBalance,
    TrackedToken,
)
from portfolio_aggregator.core.registry import PositionReaderInterface, ReaderRegistry
from portfolio_aggregator.data import (
    get_native_asset,
    get_pricing_settings,
    get_tracked_asset_ids,
    get_tracked_tokens,
)
from portfolio_aggregator.pricing.coingecko import CoinGeckoPricing
from portfolio_aggregator.rpc.cache import PriceCache, PriceTable
from portfolio_aggregator.rpc.provider import ChainStateProvider
from portfolio_aggregator.rpc.rate_limit import RateLimiter
from portfolio_aggregator.wallet.balances import BalanceReader, has_balance

logger = logging.getLogger(__name__)


class PortfolioAggregator:
    """
    Orchestrates one portfolio snapshot per wallet address.

    Workflow:
    1. Start the price batch, native balance, token list, and every position
       reader concurrently
    2. Wait for all of them
    3. Price the native balance by its asset id and each token by its
       symbol (case-insensitive, 0 when unpriced), then merge positions in
       protocol order
    4. Return the snapshot, whose totals are derived from its rows

    Each source handles its own transient failures. Anything that still
    escapes turns the whole run into an ``AggregationError``.

    Parameters
    ----------
    pricing : CoinGeckoPricing
        Price source (owns the shared cache and rate limiter)
    balances : BalanceReader
        Wallet balance reader
    readers : Sequence[PositionReaderInterface] | None
        Position readers; one per registered protocol if None
    tokens : list[TrackedToken] | None
        Fixed token list, from contracts.yaml if None
    tracked_asset_ids : list[str] | None
        Asset ids priced on every run, from contracts.yaml if None

    """

    def __init__(
        self,
        pricing: CoinGeckoPricing,
        balances: BalanceReader,
        readers: Sequence[PositionReaderInterface] | None = None,
        tokens: list[TrackedToken] | None = None,
        tracked_asset_ids: list[str] | None = None,
    ) -> None:
        self.pricing = pricing
        self.balances = balances
        if readers is None:
            readers = ReaderRegistry.create_readers(balances.provider)
        self.readers = sorted(readers, key=lambda reader: reader.protocol.rank)
        self.tokens = tokens if tokens is not None else get_tracked_tokens()
        self.tracked_asset_ids = tracked_asset_ids if tracked_asset_ids is not None else get_tracked_asset_ids()
        self.native_asset = get_native_asset()

    @classmethod
    def from_provider(
        cls,
        provider: ChainStateProvider | None,
        cache: PriceCache | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> "PortfolioAggregator":
        """
        Build an aggregator with configured pricing and every registered reader.

        Parameters
        ----------
        provider : ChainStateProvider | None
            Chain-state provider, None when no wallet is connected
        cache : PriceCache | None
            Process-wide price cache, created from settings if None
        rate_limiter : RateLimiter | None
            Process-wide rate limiter, created from settings if None

        Returns
        -------
        PortfolioAggregator
            Ready to aggregate

        """
        settings = get_pricing_settings()
        pricing = CoinGeckoPricing(
            cache=cache or PriceCache(ttl=settings["cache_ttl"]),
            rate_limiter=rate_limiter or RateLimiter(min_interval=settings["min_request_interval"]),
            base_url=settings["base_url"],
            timeout=settings["timeout"],
        )
        return cls(pricing=pricing, balances=BalanceReader(provider))

    async def aggregate(self, address: str) -> PortfolioSnapshot:
        """
        Aggregate holdings and positions of a wallet.

        Parameters
        ----------
        address : str
            Wallet address

        Returns
        -------
        PortfolioSnapshot
            Fully merged snapshot

        Raises
        ------
        AggregationError
            If any part of the run raised past its own fallback

        """
        try:
            prices, native_balance, held_tokens, *reader_results = await asyncio.gather(
                self.pricing.fetch_prices(self.tracked_asset_ids),
                self.balances.get_native_balance(address),
                self.balances.read_token_balances(address, self.tokens),
                *(reader.read(address) for reader in self.readers),
            )
            snapshot = self._build_snapshot(address, prices, native_balance, held_tokens, reader_results)
        except Exception as e:
            logger.error("Aggregation failed for %s: %s", address, e)
            raise AggregationError(address, str(e)) from e

        logger.info(
            "Aggregated %s: %d tokens, %d positions, total %s",
            address,
            len(snapshot.tokens),
            len(snapshot.positions),
            snapshot.total_value,
        )
        return snapshot

    def _build_snapshot(
        self,
        address: str,
        prices: PriceTable,
        native_balance: str,
        held_tokens: list[HeldToken],
        reader_results: list[ReaderResult],
    ) -> PortfolioSnapshot:
        """
        Merge source outputs into a snapshot.

        Parameters
        ----------
        address : str
            Wallet address
        prices : PriceTable
            Price batch
        native_balance : str
            Native balance in ether
        held_tokens : list[HeldToken]
            Non-zero token balances in list order
        reader_results : list[ReaderResult]
            Tagged reader outputs, any order

        Returns
        -------
        PortfolioSnapshot
            Merged snapshot

        """
        tokens: list[TokenBalance] = []
        if has_balance(native_balance):
            native_quote = prices.get(self.native_asset["asset_id"])
            native_price = native_quote.usd if native_quote else Decimal("0")
            tokens.append(TokenBalance(symbol=self.native_asset["symbol"], balance=native_balance, price=native_price))

        for held in held_tokens:
            price = _lookup_price(prices, held.symbol)
            tokens.append(TokenBalance(symbol=held.symbol, balance=held.balance, price=price))

        ordered = sorted(reader_results, key=lambda result: result.protocol.rank)
        for result in ordered:
            logger.debug("%s: %d positions (%s)", result.protocol.display_name, len(result.positions), result.source)

        return PortfolioSnapshot(
            address=address,
            tokens=tokens,
            positions=[position for result in ordered for position in result.positions],
            sources={result.protocol: result.source for result in ordered},
        )

    def clear_cache(self) -> None:
        """Drop every cached price batch."""
        self.pricing.clear_cache()

    def cache_stats(self) -> dict[str, Any]:
        """Describe the price cache (``size`` and ``keys``)."""
        return self.pricing.cache_stats()

    async def aclose(self) -> None:
        """Close the price source's HTTP client."""
        await self.pricing.aclose()


def _lookup_price(prices: PriceTable, symbol: str) -> Decimal:
    """
    Find a token's USD price by its symbol, ignoring case.

    Parameters
    ----------
    prices : PriceTable
        Price batch keyed by asset id
    symbol : str
        Token symbol

    Returns
    -------
    Decimal
        USD price, 0 when no asset id matches the symbol

    """
    by_key = {key.lower(): price for key, price in prices.items()}
    price = by_key.get(symbol.lower())
    return price.usd if price else Decimal("0")
