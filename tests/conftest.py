"""Pytest configuration and shared fixtures for portfolio-aggregator tests."""

from typing import Any

import pytest

from portfolio_aggregator.rpc.cache import PriceCache
from portfolio_aggregator.rpc.rate_limit import RateLimiter

WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth
PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"


def pytest_configure(config):
    """Disable ape plugin during tests."""
    # Unregister ape pytest plugin to avoid network connection issues
    config.pluginmanager.set_blocked("ape_test")


class FakeChainState:
    """
    In-memory chain-state provider.

    ``calls`` maps ``(contract_address, method)`` to a return value, an
    exception to raise, or a callable receiving the call arguments. Calls
    that are not configured raise, like a reverted call.

    """

    def __init__(
        self,
        balances: dict[str, int | Exception] | None = None,
        calls: dict[tuple[str, str], Any] | None = None,
        accounts: list[str] | None = None,
    ) -> None:
        self.balances = {address.lower(): value for address, value in (balances or {}).items()}
        self.calls = {(address.lower(), method): value for (address, method), value in (calls or {}).items()}
        self.accounts = accounts or []
        self.call_log: list[tuple[str, str, tuple]] = []

    def set_call(self, contract_address: str, method: str, value: Any) -> None:
        self.calls[contract_address.lower(), method] = value

    async def get_balance(self, address: str) -> int:
        value = self.balances.get(address.lower(), 0)
        if isinstance(value, Exception):
            raise value
        return value

    async def call(self, contract_address: str, abi: list[dict], method: str, *args: Any) -> Any:
        self.call_log.append((contract_address, method, args))
        key = (contract_address.lower(), method)
        if key not in self.calls:
            msg = f"execution reverted: {method}"
            raise RuntimeError(msg)
        value = self.calls[key]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(*args)
        return value

    async def list_accounts(self) -> list[str]:
        return list(self.accounts)


@pytest.fixture
def chain_state() -> FakeChainState:
    """Provider on which every contract call reverts until configured."""
    return FakeChainState()


@pytest.fixture
def price_cache() -> PriceCache:
    """Fresh price cache per test."""
    return PriceCache(ttl=300)


@pytest.fixture
def rate_limiter() -> RateLimiter:
    """Rate limiter that never delays."""
    return RateLimiter(min_interval=0)
