"""CoinGecko pricing service with caching, throttling, and static fallback prices."""

import asyncio
import logging
from decimal import Decimal
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from portfolio_aggregator.core.models import AssetPrice, MarketData
from portfolio_aggregator.rpc.cache import PriceCache, PriceTable
from portfolio_aggregator.rpc.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
DEFAULT_TIMEOUT = 10.0

FALLBACK_PRICES: PriceTable = {
    "ethereum": AssetPrice(usd=Decimal("3200"), usd_24h_change=Decimal("0")),
    "uniswap": AssetPrice(usd=Decimal("24.2"), usd_24h_change=Decimal("0")),
    "aave": AssetPrice(usd=Decimal("85.5"), usd_24h_change=Decimal("0")),
    "compound-governance-token": AssetPrice(usd=Decimal("45.2"), usd_24h_change=Decimal("0")),
    "dai": AssetPrice(usd=Decimal("1"), usd_24h_change=Decimal("0")),
    "tether": AssetPrice(usd=Decimal("1"), usd_24h_change=Decimal("0")),
    "weth": AssetPrice(usd=Decimal("3200"), usd_24h_change=Decimal("0")),
}

_PRICE_TABLE = TypeAdapter(dict[str, AssetPrice])
_MARKET_ROWS = TypeAdapter(list[MarketData])


class CoinGeckoPricing:
    """
    Fetches current USD prices from the CoinGecko simple-price endpoint.

    A batch of asset ids costs one request. Responses are cached per batch and
    requests are spaced by the shared rate limiter. Callers asking for a batch
    that is already being fetched wait for that request. Any failure returns the
    static fallback table instead of raising, so callers never see a
    price-fetch error.

    Parameters
    ----------
    cache : PriceCache
        Shared price cache
    rate_limiter : RateLimiter
        Shared request throttle
    base_url : str
        CoinGecko API base URL
    timeout : float
        Request timeout in seconds
    client : httpx.AsyncClient | None
        HTTP client to use, created if None

    """

    def __init__(
        self,
        cache: PriceCache,
        rate_limiter: RateLimiter,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._in_flight: dict[str, asyncio.Task[PriceTable]] = {}

    async def fetch_prices(self, asset_ids: list[str]) -> PriceTable:
        """
        Fetch USD prices for a batch of assets.

        Parameters
        ----------
        asset_ids : list[str]
            Unique CoinGecko asset ids

        Returns
        -------
        PriceTable
            Mapping of asset id to price. On failure, a copy of the static
            fallback table, which may not cover every requested id.

        Examples
        --------
        >>> pricing = CoinGeckoPricing(PriceCache(), RateLimiter())
        >>> prices = await pricing.fetch_prices(["ethereum", "uniswap"])

        """
        key = self.cache.make_key(asset_ids)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Using cached price data for %s", key)
            return dict(cached)

        # Concurrent callers for the same batch share one request
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._refresh(key, asset_ids))
            self._in_flight[key] = task
        return dict(await asyncio.shield(task))

    async def _refresh(self, key: str, asset_ids: list[str]) -> PriceTable:
        try:
            await self.rate_limiter.wait()
            cached = self.cache.get(key)
            if cached is not None:
                return cached
            logger.debug("Fetching fresh price data for %d assets", len(asset_ids))
            data = await self._fetch_batch_prices(asset_ids)
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning("Price fetch failed, using fallback prices: %s", e)
            return FALLBACK_PRICES
        finally:
            self._in_flight.pop(key, None)

        self.cache.put(key, data)
        return data

    async def get_price(self, asset_id: str) -> Decimal:
        """
        Fetch the USD price of a single asset.

        Parameters
        ----------
        asset_id : str
            CoinGecko asset id

        Returns
        -------
        Decimal
            USD price, 0 if unknown

        """
        prices = await self.fetch_prices([asset_id])
        price = prices.get(asset_id)
        return price.usd if price else Decimal("0")

    async def _fetch_batch_prices(self, asset_ids: list[str]) -> PriceTable:
        """
        Request prices from the API.

        Parameters
        ----------
        asset_ids : list[str]
            Asset ids to price

        Returns
        -------
        PriceTable
            Validated API response

        Raises
        ------
        httpx.HTTPError
            On network, timeout, or HTTP status errors
        ValidationError
            If the payload does not match the expected shape

        """
        params: dict[str, Any] = {
            "ids": ",".join(asset_ids),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
            "include_market_cap": "true",
            "include_24hr_vol": "true",
        }
        response = await self.client.get(f"{self.base_url}/simple/price", params=params, timeout=self.timeout)
        response.raise_for_status()
        return _PRICE_TABLE.validate_python(response.json())

    async def fetch_market_data(self, asset_ids: list[str]) -> list[MarketData]:
        """
        Fetch market detail rows (price, market cap, volume, 24h change).

        Rate limited like price batches, but neither cached nor replaced by
        fallback data.

        Parameters
        ----------
        asset_ids : list[str]
            CoinGecko asset ids

        Returns
        -------
        list[MarketData]
            Rows ordered by market cap, unknown ids omitted

        Raises
        ------
        httpx.HTTPError
            On network, timeout, or HTTP status errors
        ValidationError
            If the payload does not match the expected shape

        """
        await self.rate_limiter.wait()
        params: dict[str, Any] = {
            "vs_currency": "usd",
            "ids": ",".join(asset_ids),
            "order": "market_cap_desc",
            "per_page": 100,
            "page": 1,
            "sparkline": "false",
            "price_change_percentage": "24h",
        }
        response = await self.client.get(f"{self.base_url}/coins/markets", params=params, timeout=self.timeout)
        response.raise_for_status()
        return _MARKET_ROWS.validate_python(response.json())

    def clear_cache(self) -> None:
        """Drop every cached price batch."""
        self.cache.clear()
        logger.info("Price cache cleared")

    def cache_stats(self) -> dict[str, Any]:
        """Describe the price cache (``size`` and ``keys``)."""
        return self.cache.stats()

    async def aclose(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "CoinGeckoPricing":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Async context manager exit."""
        await self.aclose()
