"""Aave lending protocol reader."""

from decimal import Decimal

from portfolio_aggregator.core.formatting import format_units
from portfolio_aggregator.core.models import Position, ProtocolName
from portfolio_aggregator.core.registry import ReaderRegistry
from portfolio_aggregator.data.abis import AAVE_LENDING_POOL_ABI
from portfolio_aggregator.protocols.base import BasePositionReader

MIN_BALANCE = Decimal("0.001")

# Illustrative constants, not market data
UNIT_PRICE = Decimal("2000")
SUPPLY_APY = Decimal("3.2")
YIELD_PER_UNIT = Decimal("64")

EXAMPLE_ATOKEN = "0xBcca60bB61934080951369a648Fb03DF4F96263C"


@ReaderRegistry.register
class AaveReader(BasePositionReader):
    """
    Reader for Aave supply positions.

    Queries ``getUserReserveData`` on the lending pool for each configured
    reserve asset (WETH, USDC, DAI).

    """

    protocol = ProtocolName.AAVE

    async def fetch_positions(self, user_address: str) -> list[Position]:
        """
        Fetch Aave supply positions for a user.

        Parameters
        ----------
        user_address : str
            User wallet address

        Returns
        -------
        list[Position]
            Supply positions above the dust threshold

        """
        pool = self.get_contract_addresses()["lending_pool"]

        async def fetch_reserve(asset: dict[str, str]) -> Position | None:
            reserve_data = await self._call(
                pool,
                AAVE_LENDING_POOL_ABI,
                "getUserReserveData",
                asset["address"],
                user_address,
            )
            # First field is the current aToken balance
            return self._supply_position(asset, int(reserve_data[0]))

        return await self._collect(self.get_candidate_assets(), fetch_reserve, describe=lambda asset: asset["symbol"])

    def _supply_position(self, asset: dict[str, str], raw_balance: int) -> Position | None:
        if raw_balance <= 0:
            return None
        readable = format_units(raw_balance, 18)
        balance = Decimal(readable)
        if balance <= MIN_BALANCE:
            return None

        return Position(
            protocol=self.protocol,
            kind="Supply",
            underlying=asset["symbol"],
            amount=f"{readable} {asset['symbol']}",
            value=balance * UNIT_PRICE,
            apy=SUPPLY_APY,
            yield_accrued=balance * YIELD_PER_UNIT,
            metadata={"contract_address": asset["address"]},
        )

    def fallback_positions(self) -> list[Position]:
        """Return the example 2000 USDC supply position."""
        return [
            Position(
                protocol=self.protocol,
                kind="Supply",
                underlying="USDC",
                amount="2000 USDC",
                value=Decimal("2000"),
                apy=SUPPLY_APY,
                yield_accrued=Decimal("64"),
                metadata={"contract_address": self.get_contract_addresses().get("example_atoken", EXAMPLE_ATOKEN)},
            )
        ]
