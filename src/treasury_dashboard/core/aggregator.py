"""Dashboard aggregator combining every source into one snapshot."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Iterable
from decimal import Decimal
from typing import TypeVar

from treasury_dashboard.core.context import DashboardContext
from treasury_dashboard.core.models import (
    RUNWAY_CAP_MONTHS,
    BurnPoint,
    BurnSnapshot,
    DashboardSnapshot,
    Network,
    PriceSnapshot,
    PriceTicker,
    StakingSnapshot,
    Transaction,
    TreasuryOverview,
    WalletBalance,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSACTIONS_LIMIT = 50


def resolve_tao_price(indexer: PriceSnapshot, ticker: PriceTicker) -> Decimal:
    """
    Pick the TAO price every conversion in a snapshot uses.

    The chain indexer is authoritative; the oracle ticker is used only when
    the indexer has no price.

    Parameters
    ----------
    indexer : PriceSnapshot
        TAO market data from the chain indexer
    ticker : PriceTicker
        TAO ticker from the price oracle

    Returns
    -------
    Decimal
        USD price of one TAO, 0 when neither source has one

    """
    if indexer.current > 0:
        return indexer.current
    return max(ticker.price, Decimal("0"))


def build_treasury(
    wallets: list[WalletBalance],
    price: PriceSnapshot,
    tao_price: Decimal,
    eth_price: Decimal,
) -> TreasuryOverview:
    """
    Sum wallet balances into treasury totals.

    Parameters
    ----------
    wallets : list[WalletBalance]
        Every monitored wallet, already converted to USD
    price : PriceSnapshot
        TAO market data, source of the change percentages
    tao_price : Decimal
        TAO price used for the TAO wallets' USD values
    eth_price : Decimal
        ETH price used for the ETH wallets' USD values

    Returns
    -------
    TreasuryOverview
        Totals per token and in USD

    """
    total_tao = sum((w.balance for w in wallets if w.network == Network.BITTENSOR), Decimal("0"))
    total_eth = sum((w.balance for w in wallets if w.network == Network.ETHEREUM), Decimal("0"))
    total_usd = sum((w.balance_usd for w in wallets), Decimal("0"))
    return TreasuryOverview(
        total_tao=total_tao,
        total_eth=total_eth,
        total_usd=total_usd,
        tao_price=tao_price,
        eth_price=eth_price,
        change_24h=price.change_24h,
        change_7d=price.change_7d,
        wallets=wallets,
    )


def compute_runway(total_usd: Decimal, monthly_burn: Decimal) -> Decimal:
    """
    Months of operation left at the current burn.

    Parameters
    ----------
    total_usd : Decimal
        Treasury value in USD
    monthly_burn : Decimal
        Monthly spend in USD

    Returns
    -------
    Decimal
        ``total_usd / monthly_burn``, or ``RUNWAY_CAP_MONTHS`` when nothing
        is being spent

    """
    if monthly_burn <= 0:
        return RUNWAY_CAP_MONTHS
    return max(total_usd, Decimal("0")) / monthly_burn


def annotate_burn_history(history: list[BurnPoint], runway_months: Decimal) -> list[BurnPoint]:
    """Attach the projected runway to the most recent burn point only."""
    if not history:
        return []
    annotated = [point.model_copy(update={"projected_runway": None}) for point in history[:-1]]
    annotated.append(history[-1].model_copy(update={"projected_runway": runway_months}))
    return annotated


def apply_runway(burn: BurnSnapshot, total_usd: Decimal) -> BurnSnapshot:
    """Return ``burn`` with runway and the annotated history filled in."""
    runway = compute_runway(total_usd, burn.monthly_burn_usd)
    return burn.model_copy(
        update={
            "runway_months": runway,
            "burn_history": annotate_burn_history(burn.burn_history, runway),
        }
    )


def merge_transactions(*groups: Iterable[Transaction], limit: int = TRANSACTIONS_LIMIT) -> list[Transaction]:
    """
    Merge transfer lists, dropping repeated hashes, newest first.

    Parameters
    ----------
    *groups : Iterable[Transaction]
        Transfer lists to merge
    limit : int
        Maximum transfers returned

    Returns
    -------
    list[Transaction]
        Unique transfers sorted by timestamp descending

    """
    seen: set[str] = set()
    merged = []
    candidates = [tx for group in groups for tx in group]
    for tx in sorted(candidates, key=lambda t: t.timestamp, reverse=True):
        if not tx.hash or tx.hash in seen:
            continue
        seen.add(tx.hash)
        merged.append(tx)
    return merged[:limit]


class DashboardAggregator:
    """
    Builds a ``DashboardSnapshot`` from the sources in a context.

    Workflow:
    1. Fetch the TAO price (indexer) and ticker (oracle) concurrently
    2. Resolve one TAO price for the whole snapshot
    3. Fetch wallets, staking, expenses, transfers and trades concurrently,
       converting with that price
    4. Derive treasury totals, runway and the annotated burn history

    A section whose fetch fails unexpectedly degrades to its empty value;
    ``aggregate`` does not raise for partial data.

    Parameters
    ----------
    context : DashboardContext
        Source clients and configuration

    """

    def __init__(self, context: DashboardContext) -> None:
        self.context = context

    async def _section(self, name: str, awaitable: Awaitable[T], fallback: T) -> T:
        try:
            return await awaitable
        except Exception:
            logger.exception("Unexpected error building %s section", name)
            return fallback

    async def aggregate(self) -> DashboardSnapshot:
        """
        Build a fresh snapshot.

        Returns
        -------
        DashboardSnapshot
            Complete snapshot; failed sections are zeroed or empty

        """
        ctx = self.context

        price, ticker = await asyncio.gather(
            self._section("price", ctx.taostats.get_tao_price(), PriceSnapshot()),
            self._section("ticker", ctx.pricing.get_tao_ticker(), PriceTicker()),
        )
        tao_price = resolve_tao_price(price, ticker)
        price = price.model_copy(update={"current": tao_price})

        (
            tao_wallets,
            (eth_wallets, eth_price),
            staking,
            burn,
            transactions,
            large_transactions,
            alpha_trades,
            subnet_price,
        ) = await asyncio.gather(
            self._section("tao wallets", ctx.taostats.get_wallet_balances(tao_price), []),
            self._section("eth wallets", ctx.etherscan.get_wallet_balances(), ([], Decimal("0"))),
            self._section("staking", ctx.taostats.get_staking(tao_price), StakingSnapshot()),
            self._section("burn rate", ctx.sheets.get_expenses(ctx.today()), BurnSnapshot()),
            self._section("transactions", ctx.taostats.get_transactions(tao_price), []),
            self._section("large transactions", ctx.taostats.get_large_transactions(tao_price), []),
            self._section("alpha trades", ctx.taostats.get_alpha_trades(tao_price), []),
            self._section("subnet price", ctx.pricing.get_subnet_price(), PriceSnapshot()),
        )

        treasury = build_treasury(tao_wallets + eth_wallets, price, tao_price, eth_price)

        return DashboardSnapshot(
            treasury=treasury,
            price=price,
            subnet_price=subnet_price,
            tao_price_ticker=ticker,
            staking=staking,
            burn_rate=apply_runway(burn, treasury.total_usd),
            transactions=merge_transactions(transactions),
            large_transactions=merge_transactions(large_transactions),
            alpha_trades=alpha_trades,
            last_updated=int(time.time() * 1000),
        )
