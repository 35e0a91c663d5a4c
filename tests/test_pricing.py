"""Tests for the CoinGecko pricing service."""

import asyncio
from decimal import Decimal

import httpx
import pytest
from pydantic import ValidationError

from conftest import PRICE_URL
from portfolio_aggregator.core.models import AssetPrice
from portfolio_aggregator.pricing.coingecko import FALLBACK_PRICES, CoinGeckoPricing
from portfolio_aggregator.rpc.rate_limit import RateLimiter

MARKETS_URL = "https://api.coingecko.com/api/v3/coins/markets"

PAYLOAD = {
    "ethereum": {"usd": 3050.12, "usd_24h_change": -1.5, "usd_market_cap": 366000000000, "usd_24h_vol": 12000000000},
    "uniswap": {"usd": 7.41},
}


@pytest.fixture
def pricing(price_cache, rate_limiter) -> CoinGeckoPricing:
    return CoinGeckoPricing(cache=price_cache, rate_limiter=rate_limiter)


@pytest.mark.asyncio
async def test_fetch_prices_success(pricing, respx_mock):
    """A successful response is parsed into prices."""
    respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))

    prices = await pricing.fetch_prices(["ethereum", "uniswap"])

    assert prices["ethereum"].usd == Decimal("3050.12")
    assert prices["ethereum"].usd_24h_change == Decimal("-1.5")
    assert prices["uniswap"].usd == Decimal("7.41")
    assert prices["uniswap"].usd_market_cap is None


@pytest.mark.asyncio
async def test_fetch_prices_request_params(pricing, respx_mock):
    """One request carries the whole batch."""
    route = respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))

    await pricing.fetch_prices(["ethereum", "uniswap"])

    params = route.calls.last.request.url.params
    assert params["ids"] == "ethereum,uniswap"
    assert params["vs_currencies"] == "usd"
    assert params["include_24hr_change"] == "true"


@pytest.mark.asyncio
async def test_fetch_prices_is_cached(pricing, respx_mock):
    """A second request for the same ids, in any order, hits the cache."""
    route = respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))

    first = await pricing.fetch_prices(["ethereum", "uniswap"])
    second = await pricing.fetch_prices(["uniswap", "ethereum"])

    assert route.call_count == 1
    assert second == first
    assert pricing.cache_stats()["size"] == 1


@pytest.mark.asyncio
async def test_clear_cache_forces_refetch(pricing, respx_mock):
    """Clearing the cache makes the next call hit the network."""
    route = respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))

    await pricing.fetch_prices(["ethereum"])
    pricing.clear_cache()
    await pricing.fetch_prices(["ethereum"])

    assert route.call_count == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.ConnectTimeout("timed out"),
        httpx.Response(500, json={"error": "internal"}),
        httpx.Response(429, json={"status": {"error_code": 429}}),
        httpx.Response(200, json={"ethereum": {"eur": 2800}}),
        httpx.Response(200, text="not json"),
    ],
    ids=["timeout", "server-error", "rate-limited", "malformed", "not-json"],
)
async def test_fetch_prices_falls_back(pricing, response, respx_mock):
    """Every failure yields the static fallback table."""
    if isinstance(response, Exception):
        respx_mock.get(PRICE_URL).mock(side_effect=response)
    else:
        respx_mock.get(PRICE_URL).mock(return_value=response)

    prices = await pricing.fetch_prices(["ethereum", "uniswap"])

    assert prices == FALLBACK_PRICES
    assert prices["ethereum"].usd == Decimal("3200")
    assert prices["uniswap"].usd == Decimal("24.2")


@pytest.mark.asyncio
async def test_fallback_is_not_cached(pricing, respx_mock):
    """The next call after a failure tries the network again."""
    route = respx_mock.get(PRICE_URL).mock(
        side_effect=[httpx.Response(503), httpx.Response(200, json=PAYLOAD)],
    )

    fallback = await pricing.fetch_prices(["ethereum"])
    assert pricing.cache_stats()["size"] == 0

    fresh = await pricing.fetch_prices(["ethereum"])

    assert fallback["ethereum"].usd == Decimal("3200")
    assert fresh["ethereum"].usd == Decimal("3050.12")
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_fallback_table_is_a_copy(pricing, respx_mock):
    """Callers cannot corrupt the fallback table."""
    respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(500))

    prices = await pricing.fetch_prices(["ethereum"])
    prices.pop("ethereum")

    assert "ethereum" in FALLBACK_PRICES


@pytest.mark.asyncio
async def test_get_price(pricing, respx_mock):
    """Single-asset lookups return the USD price, or 0."""
    respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json={"ethereum": {"usd": 3000}}))

    assert await pricing.get_price("ethereum") == Decimal("3000")


@pytest.mark.asyncio
async def test_get_price_unknown_asset(pricing, respx_mock):
    """An id the API does not know is priced at 0."""
    respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json={}))

    assert await pricing.get_price("not-a-coin") == Decimal("0")


@pytest.mark.asyncio
async def test_returned_quotes_cannot_change_the_cache(pricing, respx_mock):
    """Quotes handed out are read-only and replacing them leaves the cache intact."""
    respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))

    prices = await pricing.fetch_prices(["ethereum"])
    with pytest.raises(ValidationError):
        prices["ethereum"].usd = Decimal("1")
    prices["ethereum"] = AssetPrice(usd=Decimal("1"))

    again = await pricing.fetch_prices(["ethereum"])

    assert again["ethereum"].usd == Decimal("3050.12")


@pytest.mark.asyncio
async def test_returned_fallback_cannot_change_the_table(pricing, respx_mock):
    """Later failures still see the original fallback prices."""
    respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(500))

    prices = await pricing.fetch_prices(["ethereum"])
    with pytest.raises(ValidationError):
        prices["ethereum"].usd = Decimal("0")
    prices["ethereum"] = AssetPrice(usd=Decimal("0"))

    again = await pricing.fetch_prices(["ethereum"])

    assert again["ethereum"].usd == Decimal("3200")
    assert FALLBACK_PRICES["ethereum"].usd == Decimal("3200")


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_fetch(price_cache, respx_mock):
    """Simultaneous callers for one batch make one request and skip the throttle."""
    route = respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
    pricing = CoinGeckoPricing(cache=price_cache, rate_limiter=RateLimiter(min_interval=10.0))

    first, second = await asyncio.wait_for(
        asyncio.gather(
            pricing.fetch_prices(["ethereum", "uniswap"]),
            pricing.fetch_prices(["uniswap", "ethereum"]),
        ),
        timeout=5,
    )

    assert route.call_count == 1
    assert first == second
    assert first["ethereum"].usd == Decimal("3050.12")


@pytest.mark.asyncio
async def test_concurrent_failure_is_shared(price_cache, respx_mock):
    """Callers joined to a failing request all get the fallback table."""
    route = respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(502))
    pricing = CoinGeckoPricing(cache=price_cache, rate_limiter=RateLimiter(min_interval=10.0))

    results = await asyncio.wait_for(
        asyncio.gather(*(pricing.fetch_prices(["ethereum"]) for _ in range(3))),
        timeout=5,
    )

    assert route.call_count == 1
    assert all(prices == FALLBACK_PRICES for prices in results)


@pytest.mark.asyncio
async def test_different_batches_are_fetched_separately(pricing, respx_mock):
    """Only identical batches are shared."""
    route = respx_mock.get(PRICE_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))

    await asyncio.gather(pricing.fetch_prices(["ethereum"]), pricing.fetch_prices(["uniswap"]))

    assert route.call_count == 2
    assert pricing.cache_stats()["size"] == 2


MARKETS_PAYLOAD = [
    {
        "id": "ethereum",
        "symbol": "eth",
        "name": "Ethereum",
        "current_price": 3050.12,
        "market_cap": 366000000000,
        "market_cap_rank": 2,
        "total_volume": 12000000000,
        "price_change_percentage_24h": -1.5,
        "image": "https://assets.coingecko.com/coins/images/279/large/ethereum.png",
    },
    {"id": "uniswap", "symbol": "uni", "name": "Uniswap", "current_price": 7.41, "market_cap_rank": 30},
]


@pytest.mark.asyncio
async def test_fetch_market_data(pricing, respx_mock):
    """Market rows are parsed and the request asks for USD data."""
    route = respx_mock.get(MARKETS_URL).mock(return_value=httpx.Response(200, json=MARKETS_PAYLOAD))

    rows = await pricing.fetch_market_data(["ethereum", "uniswap"])

    assert [row.id for row in rows] == ["ethereum", "uniswap"]
    assert rows[0].current_price == Decimal("3050.12")
    assert rows[0].market_cap_rank == 2
    assert rows[1].total_volume is None
    params = route.calls.last.request.url.params
    assert params["ids"] == "ethereum,uniswap"
    assert params["vs_currency"] == "usd"
    assert params["price_change_percentage"] == "24h"


@pytest.mark.asyncio
async def test_fetch_market_data_is_not_cached(pricing, respx_mock):
    """Every market data call goes to the API."""
    route = respx_mock.get(MARKETS_URL).mock(return_value=httpx.Response(200, json=MARKETS_PAYLOAD))

    await pricing.fetch_market_data(["ethereum"])
    await pricing.fetch_market_data(["ethereum"])

    assert route.call_count == 2
    assert pricing.cache_stats()["size"] == 0


@pytest.mark.asyncio
async def test_fetch_market_data_raises_on_error(pricing, respx_mock):
    """Market data has no fallback."""
    respx_mock.get(MARKETS_URL).mock(return_value=httpx.Response(503))

    with pytest.raises(httpx.HTTPStatusError):
        await pricing.fetch_market_data(["ethereum"])
