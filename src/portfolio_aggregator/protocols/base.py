"""Base position reader class with common functionality."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, ClassVar, TypeVar

from portfolio_aggregator.core.exceptions import PositionReadError
from portfolio_aggregator.core.models import Position, ProtocolName, ReaderResult, SourceKind
from portfolio_aggregator.data import get_protocol_addresses, get_protocol_assets
from portfolio_aggregator.rpc.provider import ChainStateProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BasePositionReader(ABC):
    """
    Abstract base class for protocol position readers.

    Subclasses implement the live query and the protocol's example position.
    ``read`` wraps both: a live query that raises is replaced by the example
    position and tagged as a fallback.

    Attributes
    ----------
    protocol : ProtocolName
        Protocol this reader covers (must be set in subclass)
    fallback_when_empty : bool
        Also fall back when the live query found nothing

    """

    protocol: ClassVar[ProtocolName]
    fallback_when_empty: ClassVar[bool] = False

    def __init__(self, provider: ChainStateProvider | None = None) -> None:
        """
        Initialize the reader.

        Parameters
        ----------
        provider : ChainStateProvider | None
            Chain-state provider for contract calls

        """
        if not getattr(self, "protocol", None):
            msg = f"{self.__class__.__name__} must define 'protocol' attribute"
            raise ValueError(msg)
        self.provider = provider

    @property
    def name(self) -> str:
        """Protocol identifier."""
        return self.protocol.value

    def get_contract_addresses(self) -> dict[str, str]:
        """
        Get all contract addresses for this protocol.

        Returns
        -------
        dict[str, str]
            Mapping of contract names to addresses

        """
        return get_protocol_addresses(self.name)

    def get_candidate_assets(self) -> list[dict[str, str]]:
        """Get the assets this reader inspects for positions."""
        return get_protocol_assets(self.name)

    async def read(self, user_address: str) -> ReaderResult:
        """
        Fetch positions and tag where they came from.

        Parameters
        ----------
        user_address : str
            User wallet address

        Returns
        -------
        ReaderResult
            Live positions, the example fallback, or nothing when no provider
            is connected

        """
        if self.provider is None:
            return ReaderResult(protocol=self.protocol, source=SourceKind.UNAVAILABLE)

        try:
            positions = await self.fetch_positions(user_address)
        except Exception as e:
            logger.warning("Error getting %s positions, returning example data: %s", self.protocol.display_name, e)
            return self._fallback()

        if not positions and self.fallback_when_empty:
            logger.info("No %s positions found, returning example data", self.protocol.display_name)
            return self._fallback()

        return ReaderResult(protocol=self.protocol, source=SourceKind.LIVE, positions=positions)

    async def get_positions(self, user_address: str) -> list[Position]:
        """
        Fetch positions for a user, falling back to example data on failure.

        Parameters
        ----------
        user_address : str
            User wallet address

        Returns
        -------
        list[Position]
            Positions in protocol order

        """
        return (await self.read(user_address)).positions

    @abstractmethod
    async def fetch_positions(self, user_address: str) -> list[Position]:
        """
        Query the protocol for live positions.

        Must be implemented by subclasses. Raising requests the fallback.

        Parameters
        ----------
        user_address : str
            User wallet address

        Returns
        -------
        list[Position]
            Live positions, possibly empty

        """
        ...

    @abstractmethod
    def fallback_positions(self) -> list[Position]:
        """Return the protocol's static example positions."""
        ...

    def _fallback(self) -> ReaderResult:
        return ReaderResult(protocol=self.protocol, source=SourceKind.FALLBACK, positions=self.fallback_positions())

    async def _call(self, contract_address: str, abi: list[dict], method: str, *args: Any) -> Any:
        """
        Make a contract call using the chain-state provider.

        Raises
        ------
        RuntimeError
            If no provider is configured

        """
        if self.provider is None:
            msg = "Chain-state provider not configured for this reader"
            raise RuntimeError(msg)
        return await self.provider.call(contract_address, abi, method, *args)

    async def _collect(
        self,
        items: Sequence[T],
        fetch_item: Callable[[T], Awaitable[Position | None]],
        describe: Callable[[T], str] = str,
    ) -> list[Position]:
        """
        Fetch one position per item, skipping items that fail.

        Parameters
        ----------
        items : Sequence[T]
            Candidates (NFT indices, reserve assets, ...)
        fetch_item : Callable[[T], Awaitable[Position | None]]
            Fetches the position for one item, None when there is none
        describe : Callable[[T], str]
            Label for an item in log messages

        Returns
        -------
        list[Position]
            Positions of the items that succeeded, in item order

        Raises
        ------
        PositionReadError
            If there were items and every one of them failed
        asyncio.CancelledError
            If an item lookup was cancelled

        """
        results = await asyncio.gather(*(fetch_item(item) for item in items), return_exceptions=True)

        positions: list[Position] = []
        failures = 0
        for item, result in zip(items, results, strict=True):
            match result:
                case Exception() as e:
                    failures += 1
                    logger.info("Error getting %s position for %s: %s", self.protocol.display_name, describe(item), e)
                case Position() as position:
                    positions.append(position)
                case BaseException() as e:
                    raise e

        if items and failures == len(items):
            msg = f"all {len(items)} {self.protocol.display_name} lookups failed"
            raise PositionReadError(msg)
        return positions
