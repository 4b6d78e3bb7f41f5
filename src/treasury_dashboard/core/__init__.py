"""
Core functionality: data models, expense math, aggregator and refresher.

Only the models are re-exported here; source adapters import them, so the
aggregator, context and refresher (which import the adapters) are imported
from their own modules.
"""

from treasury_dashboard.core.models import (
    RUNWAY_CAP_MONTHS,
    AlphaTrade,
    BurnPoint,
    BurnSnapshot,
    CategoryExpense,
    DashboardSnapshot,
    Expense,
    Network,
    PayorExpense,
    PricePoint,
    PriceSnapshot,
    PriceTicker,
    StakePoint,
    StakingSnapshot,
    TradeType,
    Transaction,
    TransferType,
    TreasuryOverview,
    WalletBalance,
)

__all__ = [
    "RUNWAY_CAP_MONTHS",
    "AlphaTrade",
    "BurnPoint",
    "BurnSnapshot",
    "CategoryExpense",
    "DashboardSnapshot",
    "Expense",
    "Network",
    "PayorExpense",
    "PricePoint",
    "PriceSnapshot",
    "PriceTicker",
    "StakePoint",
    "StakingSnapshot",
    "TradeType",
    "Transaction",
    "TransferType",
    "TreasuryOverview",
    "WalletBalance",
]
