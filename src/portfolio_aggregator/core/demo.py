"""Static demonstration portfolio shown when live aggregation is off or fails."""

from decimal import Decimal

from portfolio_aggregator.core.models import (
    PortfolioSnapshot,
    Position,
    ProtocolName,
    SourceKind,
    TokenBalance,
)

DEMO_ADDRESS = "0x0000000000000000000000000000000000000000"


def demo_snapshot(address: str = DEMO_ADDRESS) -> PortfolioSnapshot:
    """
    Build the demonstration portfolio.

    Parameters
    ----------
    address : str
        Address to label the snapshot with

    Returns
    -------
    PortfolioSnapshot
        Fresh snapshot with every protocol tagged as fallback data

    """
    tokens = [
        TokenBalance(symbol="ETH", balance="2.5", price=Decimal("3200")),
        TokenBalance(symbol="USDC", balance="5000", price=Decimal("1")),
        TokenBalance(symbol="UNI", balance="100", price=Decimal("24.2")),
    ]
    positions = [
        Position(
            protocol=ProtocolName.UNISWAP_V3,
            kind="LP Position",
            underlying="ETH/USDC",
            amount="1.2 ETH + 3840 USDC",
            value=Decimal("7680"),
            apy=Decimal("12.5"),
        ),
        Position(
            protocol=ProtocolName.AAVE,
            kind="Supply",
            underlying="USDC",
            amount="2000 USDC",
            value=Decimal("2000"),
            apy=Decimal("3.2"),
            yield_accrued=Decimal("64"),
        ),
        Position(
            protocol=ProtocolName.COMPOUND,
            kind="Supply",
            underlying="ETH",
            amount="0.8 ETH",
            value=Decimal("2560"),
            apy=Decimal("2.8"),
            yield_accrued=Decimal("71.68"),
        ),
    ]
    return PortfolioSnapshot(
        address=address,
        tokens=tokens,
        positions=positions,
        sources={protocol: SourceKind.FALLBACK for protocol in ProtocolName},
    )
