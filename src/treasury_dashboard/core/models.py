"""Data models for wallets, prices, staking, expenses and the dashboard snapshot."""

from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Runway reported when burn is zero, or when the real figure exceeds it.
RUNWAY_CAP_MONTHS = Decimal("999")

# Decimal internally, JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def coerce_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """
    Convert an upstream numeric field to ``Decimal``.

    Malformed, missing, infinite or NaN values collapse to ``default``
    instead of raising. Sources report numbers as ints, floats or strings
    interchangeably, so everything goes through ``str`` first.

    Parameters
    ----------
    value : Any
        Raw field value from an API response
    default : Decimal
        Value returned when ``value`` cannot be parsed

    Returns
    -------
    Decimal
        Parsed value or ``default``

    """
    if value is None or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def coerce_int(value: Any, default: int = 0) -> int:
    """Convert an upstream integer field, defaulting on malformed input."""
    parsed = coerce_decimal(value, Decimal(default))
    return int(parsed)


class Network(StrEnum):
    """Network a treasury wallet lives on."""

    BITTENSOR = "bittensor"
    ETHEREUM = "ethereum"


class TransferType(StrEnum):
    """Direction of a transfer relative to the monitored wallet."""

    SEND = "send"
    RECEIVE = "receive"


class TradeType(StrEnum):
    """Alpha trade action."""

    STAKE = "stake"
    UNSTAKE = "unstake"


class DashboardModel(BaseModel):
    """Immutable base model serialised with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class WalletBalance(DashboardModel):
    """
    Balance of one monitored wallet.

    Attributes
    ----------
    name : str
        Display name from configuration
    address : str
        On-chain address (ss58 or 0x)
    network : Network
        Network the wallet lives on
    balance : Decimal
        Balance in major token units (TAO or ETH)
    balance_usd : Decimal
        Balance converted to USD
    token : str
        Token symbol

    """

    name: str
    address: str
    network: Network
    balance: Money = Decimal("0")
    balance_usd: Money = Field(default=Decimal("0"), alias="balanceUSD")
    token: str = "TAO"


class PricePoint(DashboardModel):
    """Single (timestamp, price) sample, timestamp in epoch milliseconds."""

    timestamp: int
    price: Money


class PriceSnapshot(DashboardModel):
    """
    Current market data for a token.

    Attributes
    ----------
    current : Decimal
        Current USD price
    change_24h : Decimal
        Percent change over 24 hours
    change_7d : Decimal
        Percent change over 7 days
    volume_24h : Decimal
        24 hour USD volume
    market_cap : Decimal
        USD market capitalisation
    history : list[PricePoint]
        Price samples ordered by timestamp

    """

    current: Money = Decimal("0")
    # Explicit aliases: to_camel capitalises letters after digits ("change24H").
    change_24h: Money = Field(default=Decimal("0"), alias="change24h")
    change_7d: Money = Field(default=Decimal("0"), alias="change7d")
    volume_24h: Money = Field(default=Decimal("0"), alias="volume24h")
    market_cap: Money = Decimal("0")
    history: list[PricePoint] = Field(default_factory=list)


class PriceTicker(DashboardModel):
    """Lightweight price + 24h change for the header ticker."""

    price: Money = Decimal("0")
    change_24h: Money = Field(default=Decimal("0"), alias="change24h")


class StakePoint(DashboardModel):
    """Delegated stake at a point in time."""

    timestamp: int
    amount: Money


class StakingSnapshot(DashboardModel):
    """
    Validator staking performance.

    Attributes
    ----------
    total_delegated : Decimal
        Stake delegated to the validator hotkey, in TAO
    total_delegated_usd : Decimal
        Delegated stake in USD
    staker_count : int
        Number of distinct stake positions
    validator_rank : int
        Validator rank, 0 when unknown
    apy : Decimal
        Annual percentage yield, 0 when unknown
    stake_history : list[StakePoint]
        Historical delegated stake

    """

    total_delegated: Money = Decimal("0")
    total_delegated_usd: Money = Field(default=Decimal("0"), alias="totalDelegatedUSD")
    staker_count: int = 0
    validator_rank: int = 0
    apy: Money = Decimal("0")
    stake_history: list[StakePoint] = Field(default_factory=list)


class Expense(DashboardModel):
    """
    One expense row from the expense sheet or the recurring schedule.

    Attributes
    ----------
    date : str
        Date as written in the source (usually ``YYYY-MM-DD``)
    payor : str
        Entity that paid
    item : str
        Expense description
    cost : Decimal
        Cost in USD
    recurring : bool
        Whether the expense repeats monthly
    annualized : Decimal
        Annualised cost, 0 when not provided
    category : str
        Category derived from the item description

    """

    date: str
    payor: str
    item: str
    cost: Money
    recurring: bool = False
    annualized: Money = Decimal("0")
    category: str = "Other"


class CategoryExpense(DashboardModel):
    """Total spend for a category and its share of all spend."""

    category: str
    amount: Money
    percentage: Money


class PayorExpense(DashboardModel):
    """Total spend for a payor and its share of all spend."""

    payor: str
    amount: Money
    percentage: Money


class BurnPoint(DashboardModel):
    """
    Monthly burn sample.

    Attributes
    ----------
    month : str
        Month as ``YYYY-MM``
    burn : Decimal
        Spend during the month
    cumulative_burn : Decimal
        Spend from the first month up to and including this one
    projected_runway : Decimal | None
        Runway in months; only set on the most recent point

    """

    month: str
    burn: Money
    cumulative_burn: Money
    projected_runway: Money | None = None


class BurnSnapshot(DashboardModel):
    """Burn rate, runway and expense breakdowns."""

    monthly_burn: Money = Decimal("0")
    monthly_burn_usd: Money = Field(default=Decimal("0"), alias="monthlyBurnUSD")
    runway_months: Money = Decimal("0")
    expenses_by_category: list[CategoryExpense] = Field(default_factory=list)
    expenses_by_payor: list[PayorExpense] = Field(default_factory=list)
    recent_expenses: list[Expense] = Field(default_factory=list)
    burn_history: list[BurnPoint] = Field(default_factory=list)


class Transaction(DashboardModel):
    """
    TAO transfer touching a monitored wallet.

    Attributes
    ----------
    hash : str
        Transaction hash or extrinsic id
    timestamp : int
        Epoch milliseconds
    from_address : str
        Sender ss58 address
    to_address : str
        Recipient ss58 address
    amount : Decimal
        Amount in TAO
    amount_usd : Decimal
        Amount in USD
    type : TransferType
        Send or receive, relative to ``wallet``
    is_large : bool
        Amount is at or above the large-transaction threshold
    wallet : str
        Name of the monitored wallet

    """

    hash: str
    timestamp: int
    from_address: str = Field(default="", alias="from")
    to_address: str = Field(default="", alias="to")
    amount: Money = Decimal("0")
    amount_usd: Money = Field(default=Decimal("0"), alias="amountUSD")
    type: TransferType
    is_large: bool = False
    wallet: str = ""


class AlphaTrade(DashboardModel):
    """
    Stake or unstake exchanging TAO for the subnet alpha token.

    Attributes
    ----------
    id : str
        Extrinsic id of the trade
    timestamp : int
        Epoch milliseconds
    type : TradeType
        Stake or unstake
    coldkey : str
        Nominator coldkey
    hotkey : str
        Delegate hotkey
    alpha_amount : Decimal
        Alpha tokens exchanged
    tao_amount : Decimal
        TAO exchanged
    amount_usd : Decimal
        TAO amount in USD
    is_large : bool
        TAO amount is at or above the large-transaction threshold

    """

    id: str
    timestamp: int
    type: TradeType
    coldkey: str = ""
    hotkey: str = ""
    alpha_amount: Money = Decimal("0")
    tao_amount: Money = Decimal("0")
    amount_usd: Money = Field(default=Decimal("0"), alias="amountUSD")
    is_large: bool = False


class TreasuryOverview(DashboardModel):
    """
    Treasury totals across all monitored wallets.

    Attributes
    ----------
    total_tao : Decimal
        Sum of TAO wallet balances
    total_eth : Decimal
        Sum of ETH wallet balances
    total_usd : Decimal
        Sum of every wallet's USD balance
    tao_price : Decimal
        TAO price used for every TAO conversion in the snapshot
    eth_price : Decimal
        ETH price used for every ETH conversion in the snapshot
    change_24h : Decimal
        TAO 24h percent change
    change_7d : Decimal
        TAO 7d percent change
    change_30d : Decimal
        TAO 30d percent change, 0 when unavailable
    wallets : list[WalletBalance]
        Per-wallet balances

    """

    total_tao: Money = Field(default=Decimal("0"), alias="totalTAO")
    total_eth: Money = Field(default=Decimal("0"), alias="totalETH")
    total_usd: Money = Field(default=Decimal("0"), alias="totalUSD")
    tao_price: Money = Field(default=Decimal("0"), alias="taoPrice")
    eth_price: Money = Field(default=Decimal("0"), alias="ethPrice")
    change_24h: Money = Field(default=Decimal("0"), alias="change24h")
    change_7d: Money = Field(default=Decimal("0"), alias="change7d")
    change_30d: Money = Field(default=Decimal("0"), alias="change30d")
    wallets: list[WalletBalance] = Field(default_factory=list)


class DashboardSnapshot(DashboardModel):
    """
    Complete read-model handed to the presentation layer.

    Attributes
    ----------
    treasury : TreasuryOverview
        Wallet balances and totals
    price : PriceSnapshot
        TAO market data from the chain indexer
    subnet_price : PriceSnapshot
        Subnet token market data from the price oracle
    tao_price_ticker : PriceTicker
        TAO ticker from the price oracle
    staking : StakingSnapshot
        Validator staking data
    burn_rate : BurnSnapshot
        Burn, runway and expense breakdowns
    transactions : list[Transaction]
        Recent transfers, newest first
    large_transactions : list[Transaction]
        Transfers at or above the threshold, newest first
    alpha_trades : list[AlphaTrade]
        Subnet stake/unstake trades, newest first
    last_updated : int
        Epoch milliseconds when the snapshot was built

    """

    treasury: TreasuryOverview = Field(default_factory=TreasuryOverview)
    price: PriceSnapshot = Field(default_factory=PriceSnapshot)
    subnet_price: PriceSnapshot = Field(default_factory=PriceSnapshot)
    tao_price_ticker: PriceTicker = Field(default_factory=PriceTicker)
    staking: StakingSnapshot = Field(default_factory=StakingSnapshot)
    burn_rate: BurnSnapshot = Field(default_factory=BurnSnapshot)
    transactions: list[Transaction] = Field(default_factory=list)
    large_transactions: list[Transaction] = Field(default_factory=list)
    alpha_trades: list[AlphaTrade] = Field(default_factory=list)
    last_updated: int = 0

    @classmethod
    def empty(cls, last_updated: int = 0) -> "DashboardSnapshot":
        """Placeholder snapshot with every section zeroed."""
        return cls(last_updated=last_updated)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialise with camelCase keys and numeric money fields."""
        return self.model_dump(mode="json", by_alias=True)
