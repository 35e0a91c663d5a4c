"""Tests for the TTL price cache."""

from decimal import Decimal

from portfolio_aggregator.core.models import AssetPrice
from portfolio_aggregator.rpc.cache import PriceCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


PRICES = {"ethereum": AssetPrice(usd=Decimal("3200")), "dai": AssetPrice(usd=Decimal("1"))}


def test_get_after_put_returns_data():
    """A fresh entry is returned unchanged."""
    cache = PriceCache(ttl=300, clock=FakeClock())
    key = cache.make_key(["ethereum", "dai"])

    cache.put(key, PRICES)

    assert cache.get(key) == PRICES


def test_get_unknown_key_misses():
    """Unknown keys miss."""
    cache = PriceCache()

    assert cache.get("prices_ethereum") is None


def test_entry_expires_but_stays_in_cache():
    """Expired entries are invisible to get but still counted."""
    clock = FakeClock()
    cache = PriceCache(ttl=300, clock=clock)
    key = cache.make_key(["ethereum"])
    cache.put(key, PRICES)

    clock.now += 299.9
    assert cache.get(key) == PRICES

    clock.now += 0.1
    assert cache.get(key) is None
    assert cache.stats() == {"size": 1, "keys": [key]}


def test_put_replaces_expired_entry():
    """Refreshing an expired key makes it valid again."""
    clock = FakeClock()
    cache = PriceCache(ttl=300, clock=clock)
    key = cache.make_key(["ethereum"])
    cache.put(key, PRICES)
    clock.now += 600

    fresh = {"ethereum": AssetPrice(usd=Decimal("3500"))}
    cache.put(key, fresh)

    assert cache.get(key) == fresh
    assert cache.stats()["size"] == 1


def test_key_is_order_independent():
    """The same set of ids maps to one key whatever the order."""
    assert PriceCache.make_key(["uniswap", "ethereum"]) == PriceCache.make_key(["ethereum", "uniswap"])
    assert PriceCache.make_key(["ethereum", "uniswap"]) == "prices_ethereum,uniswap"


def test_cache_does_not_alias_callers_mapping():
    """Mutating the mapping passed to put does not change the entry."""
    cache = PriceCache()
    key = cache.make_key(["ethereum"])
    data = {"ethereum": AssetPrice(usd=Decimal("3200"))}
    cache.put(key, data)

    data["dai"] = AssetPrice(usd=Decimal("1"))

    assert "dai" not in cache.get(key)


def test_clear_and_stats():
    """Clearing empties the cache."""
    cache = PriceCache()
    cache.put(cache.make_key(["ethereum"]), PRICES)
    cache.put(cache.make_key(["dai"]), PRICES)

    assert cache.stats() == {"size": 2, "keys": ["prices_ethereum", "prices_dai"]}

    cache.clear()

    assert cache.stats() == {"size": 0, "keys": []}
