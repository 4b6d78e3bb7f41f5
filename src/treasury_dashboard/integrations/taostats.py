"""Taostats chain-indexer client for TAO price, balances, staking and transfers."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from treasury_dashboard.core.models import (
    AlphaTrade,
    Network,
    PriceSnapshot,
    StakingSnapshot,
    TradeType,
    Transaction,
    TransferType,
    WalletBalance,
    coerce_decimal,
    coerce_int,
)
from treasury_dashboard.data.loader import TAOSTATS_KEY_ENV, WalletConfig
from treasury_dashboard.transport.client import CachedJSONClient
from treasury_dashboard.transport.errors import SourceError

logger = logging.getLogger(__name__)

# 1e9 rao = 1 TAO
RAO_PER_TAO = Decimal("1000000000")


def rao_to_tao(value: Any) -> Decimal:
    """
    Convert a raw rao amount to TAO.

    Parameters
    ----------
    value : Any
        Amount in rao as int, float or string

    Returns
    -------
    Decimal
        Amount in TAO, 0 for malformed input

    Examples
    --------
    >>> rao_to_tao("150000000000")
    Decimal('150')

    """
    return coerce_decimal(value) / RAO_PER_TAO


def parse_timestamp_ms(value: Any) -> int:
    """
    Convert an ISO-8601 timestamp (or epoch seconds/ms) to epoch milliseconds.

    Returns 0 when the value cannot be parsed.
    """
    if isinstance(value, int | float) and not isinstance(value, bool):
        # Anything below 1e12 is epoch seconds.
        return int(value * 1000) if value < 1e12 else int(value)
    if not isinstance(value, str) or not value:
        return 0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return 0
    return int(parsed.timestamp() * 1000)


def _address(value: Any) -> str:
    """Addresses arrive either as plain strings or as ``{"ss58": ...}`` objects."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("ss58") or ""
    return ""


def _first_row(payload: Any) -> dict[str, Any]:
    rows = _rows(payload)
    return rows[0] if rows else {}


def _rows(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    rows = payload.get("data")
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]


def dedupe_by_id(items: list, key: str) -> list:
    """
    Sort newest first and drop entries whose identifier is empty or repeated.

    Parameters
    ----------
    items : list
        Records with a ``timestamp`` attribute
    key : str
        Name of the identifier attribute

    Returns
    -------
    list
        Unique records ordered by timestamp descending

    """
    seen: set[str] = set()
    unique = []
    for item in sorted(items, key=lambda i: i.timestamp, reverse=True):
        identifier = getattr(item, key)
        if not identifier or identifier in seen:
            continue
        seen.add(identifier)
        unique.append(item)
    return unique


class TaostatsClient(CachedJSONClient):
    """
    Client for the Taostats API.

    All requests share one ``RequestThrottle`` so the provider sees at most
    one request per ``min_interval`` no matter how many sections are fetched
    concurrently. Every public method returns zeroed or empty records when
    the API is unavailable.

    Parameters
    ----------
    wallets : list[WalletConfig]
        Bittensor wallets to monitor
    large_tx_threshold : Decimal
        TAO amount at or above which a transfer or trade is flagged large
    subnet_id : int
        Subnet netuid, used for alpha trades
    validator_hotkey : str | None
        Hotkey whose delegated stake is reported
    **kwargs
        Forwarded to ``CachedJSONClient``

    """

    BASE_URL = "https://api.taostats.io/api"

    source = "taostats"
    api_key_env = TAOSTATS_KEY_ENV

    def __init__(
        self,
        wallets: list[WalletConfig],
        large_tx_threshold: Decimal,
        subnet_id: int,
        validator_hotkey: str | None = None,
        base_url: str = BASE_URL,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url, **kwargs)
        self.wallets = wallets
        self.large_tx_threshold = large_tx_threshold
        self.subnet_id = subnet_id
        self.validator_hotkey = validator_hotkey

    def _auth_headers(self) -> dict[str, str]:
        # Taostats expects the raw key, no "Bearer" prefix.
        return {"Authorization": self.api_key or ""}

    async def get_tao_price(self) -> PriceSnapshot:
        """
        Fetch current TAO market data.

        Returns
        -------
        PriceSnapshot
            Current price and changes, zeroed when unavailable. History is
            not requested to keep indexer usage low.

        """
        try:
            payload = await self.fetch_json("/price/latest/v1", {"asset": "tao"})
        except SourceError as e:
            logger.error("Error fetching TAO price: %s", e)
            return PriceSnapshot()

        row = _first_row(payload)
        return PriceSnapshot(
            current=coerce_decimal(row.get("price")),
            change_24h=coerce_decimal(row.get("percent_change_24h")),
            change_7d=coerce_decimal(row.get("percent_change_7d")),
            volume_24h=coerce_decimal(row.get("volume_24h")),
            market_cap=coerce_decimal(row.get("market_cap")),
        )

    async def get_wallet_balances(self, tao_price: Decimal) -> list[WalletBalance]:
        """
        Fetch the balance of every configured wallet.

        Wallets are fetched one after another; a failing wallet is reported
        with a zero balance rather than dropped.

        Parameters
        ----------
        tao_price : Decimal
            USD price of one TAO

        Returns
        -------
        list[WalletBalance]
            One entry per configured wallet, in configuration order

        """
        balances = []
        for wallet in self.wallets:
            balance = Decimal("0")
            try:
                payload = await self.fetch_json("/account/latest/v1", {"address": wallet.address})
                row = _first_row(payload)
                raw = row.get("balance_total")
                if raw is None:
                    raw = row.get("balance_free", "0")
                balance = rao_to_tao(raw)
            except SourceError as e:
                logger.error("Error fetching balance for %s: %s", wallet.name, e)

            balances.append(
                WalletBalance(
                    name=wallet.name,
                    address=wallet.address,
                    network=Network.BITTENSOR,
                    balance=balance,
                    balance_usd=balance * tao_price,
                    token="TAO",
                )
            )
        return balances

    async def get_staking(self, tao_price: Decimal) -> StakingSnapshot:
        """
        Fetch stake delegated to the validator hotkey.

        Parameters
        ----------
        tao_price : Decimal
            USD price of one TAO

        Returns
        -------
        StakingSnapshot
            Delegated stake and staker count, zeroed when unavailable

        """
        if not self.validator_hotkey:
            logger.warning("No validator wallet configured, staking data will be 0")
            return StakingSnapshot()

        try:
            payload = await self.fetch_json(
                "/dtao/stake_balance/latest/v1",
                {"hotkey": self.validator_hotkey},
            )
        except SourceError as e:
            logger.error("Error fetching staking data: %s", e)
            return StakingSnapshot()

        total = Decimal("0")
        for row in _rows(payload):
            value = row.get("balance_as_tao")
            if value is None:
                value = row.get("balance")
            total += coerce_decimal(value)

        # balance_as_tao is sometimes reported in rao despite its name.
        if total > RAO_PER_TAO:
            total = total / RAO_PER_TAO

        pagination = payload.get("pagination") if isinstance(payload, dict) else None
        staker_count = coerce_int(pagination.get("total_items")) if isinstance(pagination, dict) else 0

        return StakingSnapshot(
            total_delegated=total,
            total_delegated_usd=total * tao_price,
            staker_count=staker_count,
        )

    def _parse_transfer(self, tx: dict[str, Any], wallet: WalletConfig, tao_price: Decimal, *, large: bool) -> Transaction:
        amount = rao_to_tao(tx.get("amount", 0))
        from_addr = _address(tx.get("from"))
        return Transaction(
            hash=tx.get("transaction_hash") or tx.get("extrinsic_id") or "",
            timestamp=parse_timestamp_ms(tx.get("timestamp")),
            from_address=from_addr,
            to_address=_address(tx.get("to")),
            amount=amount,
            amount_usd=amount * tao_price,
            type=TransferType.SEND if from_addr == wallet.address else TransferType.RECEIVE,
            is_large=large or amount >= self.large_tx_threshold,
            wallet=wallet.name,
        )

    async def _collect_transfers(
        self,
        tao_price: Decimal,
        params: dict[str, Any],
        *,
        large: bool,
    ) -> list[Transaction]:
        transactions = []
        for wallet in self.wallets:
            try:
                payload = await self.fetch_json("/transfer/v1", {"address": wallet.address, **params})
            except SourceError as e:
                logger.error("Error fetching transactions for %s: %s", wallet.name, e)
                continue
            transactions.extend(self._parse_transfer(tx, wallet, tao_price, large=large) for tx in _rows(payload))
        return dedupe_by_id(transactions, "hash")

    async def get_transactions(self, tao_price: Decimal, limit: int = 20) -> list[Transaction]:
        """
        Fetch recent transfers for all monitored wallets.

        Parameters
        ----------
        tao_price : Decimal
            USD price of one TAO
        limit : int
            Transfers requested per wallet

        Returns
        -------
        list[Transaction]
            Unique transfers, newest first

        """
        return await self._collect_transfers(tao_price, {"limit": limit}, large=False)

    async def get_large_transactions(self, tao_price: Decimal, limit: int = 100) -> list[Transaction]:
        """Fetch transfers at or above the large-transaction threshold, newest first."""
        min_amount = int(self.large_tx_threshold * RAO_PER_TAO)
        return await self._collect_transfers(tao_price, {"amount_min": min_amount, "limit": limit}, large=True)

    async def get_alpha_trades(self, tao_price: Decimal, limit: int = 50) -> list[AlphaTrade]:
        """
        Fetch large stake/unstake trades on the subnet.

        Parameters
        ----------
        tao_price : Decimal
            USD price of one TAO
        limit : int
            Maximum trades requested

        Returns
        -------
        list[AlphaTrade]
            Unique trades, newest first

        """
        min_amount = int(self.large_tx_threshold * RAO_PER_TAO)
        try:
            payload = await self.fetch_json(
                "/delegation/v1",
                {"netuid": self.subnet_id, "amount_min": min_amount, "limit": limit},
            )
        except SourceError as e:
            logger.error("Error fetching alpha trades: %s", e)
            return []

        trades = []
        for row in _rows(payload):
            tao_amount = rao_to_tao(row.get("amount", 0))
            action = str(row.get("action", "")).upper()
            trades.append(
                AlphaTrade(
                    id=row.get("extrinsic_id") or str(row.get("id") or ""),
                    timestamp=parse_timestamp_ms(row.get("timestamp")),
                    type=TradeType.UNSTAKE if action in ("UNDELEGATE", "UNSTAKE") else TradeType.STAKE,
                    coldkey=_address(row.get("nominator")),
                    hotkey=_address(row.get("delegate")),
                    alpha_amount=rao_to_tao(row.get("alpha", 0)),
                    tao_amount=tao_amount,
                    amount_usd=tao_amount * tao_price,
                    is_large=tao_amount >= self.large_tx_threshold,
                )
            )
        return dedupe_by_id(trades, "id")
