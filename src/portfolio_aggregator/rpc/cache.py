"""TTL-based caching for price-source responses."""

import time
from collections.abc import Callable, Iterable
from typing import Any

from portfolio_aggregator.core.models import AssetPrice

PriceTable = dict[str, AssetPrice]


class CacheEntry:
    """
    Cache entry with TTL support.

    Entries are never mutated; a refresh replaces the whole entry.

    Parameters
    ----------
    data : PriceTable
        Cached price table
    fetched_at : float
        Clock reading when the data was fetched

    """

    __slots__ = ("data", "fetched_at")

    def __init__(self, data: PriceTable, fetched_at: float) -> None:
        self.data = data
        self.fetched_at = fetched_at

    def is_expired(self, now: float, ttl: float) -> bool:
        """
        Check if cache entry has expired.

        Parameters
        ----------
        now : float
            Current clock reading
        ttl : float
            Time-to-live in seconds

        Returns
        -------
        bool
            True if expired, False otherwise

        """
        return now - self.fetched_at >= ttl


class PriceCache:
    """
    In-memory cache for price batches with TTL.

    Expiry is checked on read. Expired entries stay in the map until they are
    overwritten by ``put`` or dropped by ``clear``.

    Parameters
    ----------
    ttl : float
        Time-to-live in seconds for cache entries
    clock : Callable[[], float] | None
        Monotonic clock, ``time.monotonic`` if None

    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] | None = None) -> None:
        self.ttl = ttl
        self._clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry] = {}

    @staticmethod
    def make_key(asset_ids: Iterable[str]) -> str:
        """
        Generate cache key from a set of asset ids.

        Ids are sorted so that the same set requested in a different order
        maps to the same entry.

        Parameters
        ----------
        asset_ids : Iterable[str]
            Requested asset ids

        Returns
        -------
        str
            Cache key

        """
        return "prices_" + ",".join(sorted(asset_ids))

    def get(self, key: str) -> PriceTable | None:
        """
        Get cached data if it exists and hasn't expired.

        Parameters
        ----------
        key : str
            Cache key

        Returns
        -------
        PriceTable | None
            Cached price table if found and valid, None otherwise

        """
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock(), self.ttl):
            return None
        return entry.data

    def put(self, key: str, data: PriceTable) -> None:
        """
        Store data in cache, replacing any previous entry for the key.

        Parameters
        ----------
        key : str
            Cache key
        data : PriceTable
            Price table to cache

        """
        self._entries[key] = CacheEntry(dict(data), self._clock())

    def clear(self) -> None:
        """Clear all cached entries."""
        self._entries.clear()

    def stats(self) -> dict[str, Any]:
        """
        Describe cache contents, expired entries included.

        Returns
        -------
        dict[str, Any]
            ``size`` and ``keys`` of the cache

        """
        return {"size": len(self._entries), "keys": list(self._entries)}
