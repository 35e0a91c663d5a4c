"""Data models for prices, balances, positions, and portfolio snapshots."""

from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ProtocolName(StrEnum):
    """
    Protocols with a position reader.

    Member order is the merge order of positions in a snapshot.

    """

    UNISWAP_V3 = "uniswap_v3"
    AAVE = "aave"
    COMPOUND = "compound"

    @property
    def display_name(self) -> str:
        """Human readable protocol name."""
        return _DISPLAY_NAMES[self]

    @property
    def rank(self) -> int:
        """Position of this protocol in the merge order."""
        return list(ProtocolName).index(self)


_DISPLAY_NAMES = {
    ProtocolName.UNISWAP_V3: "Uniswap V3",
    ProtocolName.AAVE: "Aave",
    ProtocolName.COMPOUND: "Compound",
}


class SourceKind(StrEnum):
    """Where the data of a reader result came from."""

    LIVE = "live"
    FALLBACK = "fallback"
    UNAVAILABLE = "unavailable"


class AssetPrice(BaseModel):
    """
    Price-source quote for one asset.

    Attributes
    ----------
    usd : Decimal
        Current USD price
    usd_24h_change : Decimal | None
        24 hour change in percent
    usd_market_cap : Decimal | None
        Market capitalisation in USD
    usd_24h_vol : Decimal | None
        24 hour trading volume in USD

    """

    model_config = ConfigDict(frozen=True)

    usd: Decimal
    usd_24h_change: Decimal | None = None
    usd_market_cap: Decimal | None = None
    usd_24h_vol: Decimal | None = None


class MarketData(BaseModel):
    """
    Market detail row for one asset.

    Attributes
    ----------
    id : str
        Price-source asset id
    symbol : str
        Ticker symbol (lower case, as reported)
    name : str
        Asset name
    current_price : Decimal | None
        USD price
    market_cap : Decimal | None
        Market capitalisation in USD
    market_cap_rank : int | None
        Rank by market capitalisation
    total_volume : Decimal | None
        24 hour trading volume in USD
    price_change_percentage_24h : Decimal | None
        24 hour change in percent

    """

    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str
    name: str
    current_price: Decimal | None = None
    market_cap: Decimal | None = None
    market_cap_rank: int | None = None
    total_volume: Decimal | None = None
    price_change_percentage_24h: Decimal | None = None


class TrackedToken(BaseModel):
    """
    ERC-20 token read for every wallet.

    Attributes
    ----------
    address : str
        Token contract address
    symbol : str
        Token symbol (e.g., 'UNI')
    asset_id : str | None
        Price-source identifier for the token

    """

    address: str
    symbol: str
    asset_id: str | None = None


class TokenBalanceResult(BaseModel):
    """Raw result of a single ERC-20 balance lookup."""

    balance: str = "0"
    symbol: str = ""
    decimals: int = 18

    @property
    def is_empty(self) -> bool:
        """True when the lookup yielded nothing worth reporting."""
        return not self.symbol or Decimal(self.balance) <= 0


class HeldToken(BaseModel):
    """A token the wallet holds, before pricing."""

    symbol: str
    balance: str


class TokenBalance(BaseModel):
    """
    Priced token balance row of a snapshot.

    Attributes
    ----------
    symbol : str
        Token symbol
    balance : str
        Human readable balance as a decimal string
    price : Decimal
        USD unit price (0 when no price was found)

    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    balance: str
    price: Decimal = Decimal("0")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value(self) -> Decimal:
        """USD value of the balance."""
        return Decimal(self.balance) * self.price


class Position(BaseModel):
    """
    Yield-bearing or liquidity position in a protocol.

    Attributes
    ----------
    protocol : ProtocolName
        Protocol holding the position
    kind : str
        Position type (e.g., 'Supply', 'LP Position')
    underlying : str
        Underlying asset or pair (e.g., 'ETH/USDC')
    amount : str
        Human readable amount description
    value : Decimal
        USD value
    apy : Decimal | None
        Annual percentage yield
    yield_accrued : Decimal | None
        Accrued yield in USD
    metadata : dict
        Protocol-specific data (pool or contract address); not used in totals

    """

    model_config = ConfigDict(frozen=True)

    protocol: ProtocolName
    kind: str
    underlying: str
    amount: str
    value: Decimal
    apy: Decimal | None = None
    yield_accrued: Decimal | None = None
    metadata: dict = Field(default_factory=dict)


class ReaderResult(BaseModel):
    """Positions returned by one protocol reader, tagged with their origin."""

    protocol: ProtocolName
    source: SourceKind
    positions: list[Position] = Field(default_factory=list)


class PortfolioSnapshot(BaseModel):
    """
    One consistent aggregation result for one address.

    Totals are derived from the rows on every access.

    Attributes
    ----------
    address : str
        Wallet address
    tokens : list[TokenBalance]
        Priced token balances, native asset first
    positions : list[Position]
        Protocol positions in protocol order
    sources : dict[ProtocolName, SourceKind]
        Origin of each protocol's positions

    """

    model_config = ConfigDict(frozen=True)

    address: str
    tokens: list[TokenBalance] = Field(default_factory=list)
    positions: list[Position] = Field(default_factory=list)
    sources: dict[ProtocolName, SourceKind] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_value(self) -> Decimal:
        """Sum of token values and position values."""
        token_total = sum((token.value for token in self.tokens), Decimal("0"))
        position_total = sum((position.value for position in self.positions), Decimal("0"))
        return token_total + position_total

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_yield(self) -> Decimal:
        """Sum of accrued yield, counting missing yield as zero."""
        return sum((position.yield_accrued or Decimal("0") for position in self.positions), Decimal("0"))
