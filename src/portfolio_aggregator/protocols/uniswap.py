"""Uniswap V3 liquidity position reader."""

from decimal import Decimal

from portfolio_aggregator.core.models import Position, ProtocolName
from portfolio_aggregator.core.registry import ReaderRegistry
from portfolio_aggregator.data.abis import UNISWAP_V3_POSITION_ABI
from portfolio_aggregator.protocols.base import BasePositionReader

MAX_POSITIONS = 10

# Illustrative LP figures; position amounts are not decoded from the NFT.
EXAMPLE_PAIR = "ETH/USDC"
EXAMPLE_AMOUNT = "1.2 ETH + 3840 USDC"
EXAMPLE_VALUE = Decimal("7680")
EXAMPLE_APY = Decimal("12.5")
EXAMPLE_POOL = "0x8ad599c3A0ff1De082011EFDDc58f1908eb6e6D8"


@ReaderRegistry.register
class UniswapV3Reader(BasePositionReader):
    """
    Reader for Uniswap V3 liquidity positions.

    Enumerates the position NFTs held by the user (up to ten) on the
    NonfungiblePositionManager.

    """

    protocol = ProtocolName.UNISWAP_V3

    async def fetch_positions(self, user_address: str) -> list[Position]:
        """
        Fetch Uniswap V3 positions for a user.

        Parameters
        ----------
        user_address : str
            User wallet address

        Returns
        -------
        list[Position]
            One LP position per readable NFT

        """
        manager = self.get_contract_addresses()["position_manager"]
        count = int(await self._call(manager, UNISWAP_V3_POSITION_ABI, "balanceOf", user_address))
        if count <= 0:
            return []

        async def fetch_nft(index: int) -> Position:
            token_id = await self._call(manager, UNISWAP_V3_POSITION_ABI, "tokenOfOwnerByIndex", user_address, index)
            await self._call(manager, UNISWAP_V3_POSITION_ABI, "positions", token_id)
            return self._lp_position(token_id=int(token_id))

        indices = list(range(min(count, MAX_POSITIONS)))
        return await self._collect(indices, fetch_nft, describe=lambda index: f"NFT #{index}")

    def fallback_positions(self) -> list[Position]:
        """Return the example ETH/USDC LP position."""
        return [self._lp_position()]

    def _lp_position(self, token_id: int | None = None) -> Position:
        metadata: dict = {"pool_address": self.get_contract_addresses().get("example_pool", EXAMPLE_POOL)}
        if token_id is not None:
            metadata["token_id"] = token_id
        return Position(
            protocol=self.protocol,
            kind="LP Position",
            underlying=EXAMPLE_PAIR,
            amount=EXAMPLE_AMOUNT,
            value=EXAMPLE_VALUE,
            apy=EXAMPLE_APY,
            metadata=metadata,
        )
