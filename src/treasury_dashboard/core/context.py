"""Dependency container handing source clients and configuration to the aggregator."""

from collections.abc import Callable
from datetime import date

import httpx

from treasury_dashboard.data.loader import (
    ETHERSCAN_KEY_ENV,
    TAOSTATS_KEY_ENV,
    DashboardConfig,
    get_api_key,
)
from treasury_dashboard.integrations.etherscan import EtherscanClient
from treasury_dashboard.integrations.sheets import SheetsClient
from treasury_dashboard.integrations.taostats import TaostatsClient
from treasury_dashboard.pricing.coingecko import CoinGeckoPricing
from treasury_dashboard.transport.cache import ResponseCache
from treasury_dashboard.transport.throttle import RequestThrottle


class DashboardContext:
    """
    Everything one aggregation needs, passed in rather than looked up globally.

    Parameters
    ----------
    config : DashboardConfig
        Static configuration
    taostats : TaostatsClient
        Chain-indexer adapter
    etherscan : EtherscanClient
        Block-explorer adapter
    pricing : CoinGeckoPricing
        Price-oracle adapter
    sheets : SheetsClient
        Expense-sheet adapter
    today : Callable[[], date] | None
        Date source for the burn window. Uses ``date.today`` if None.

    """

    def __init__(
        self,
        config: DashboardConfig,
        taostats: TaostatsClient,
        etherscan: EtherscanClient,
        pricing: CoinGeckoPricing,
        sheets: SheetsClient,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.config = config
        self.taostats = taostats
        self.etherscan = etherscan
        self.pricing = pricing
        self.sheets = sheets
        self.today = today or date.today

    async def aclose(self) -> None:
        """Close every client's HTTP connection pool."""
        await self.taostats.aclose()
        await self.etherscan.aclose()
        await self.pricing.aclose()
        await self.sheets.aclose()


def build_context(
    config: DashboardConfig,
    *,
    taostats_api_key: str | None = None,
    etherscan_api_key: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    clock: Callable[[], float] | None = None,
    today: Callable[[], date] | None = None,
) -> DashboardContext:
    """
    Build a context with one cache per source.

    Parameters
    ----------
    config : DashboardConfig
        Static configuration
    taostats_api_key : str | None
        Indexer key. Read from ``$TAOSTATS_API_KEY`` if None.
    etherscan_api_key : str | None
        Explorer key. Read from ``$ETHERSCAN_API_KEY`` if None.
    transport : httpx.AsyncBaseTransport | None
        Transport shared by all clients (tests use ``httpx.MockTransport``)
    clock : Callable[[], float] | None
        Monotonic clock for caches and the throttle
    today : Callable[[], date] | None
        Date source for the burn window

    Returns
    -------
    DashboardContext
        Ready-to-use context; close it with ``aclose``

    """
    ttl = config.cache_ttl
    common = {"timeout": config.http_timeout, "transport": transport}

    taostats = TaostatsClient(
        wallets=config.wallets_for("bittensor"),
        large_tx_threshold=config.large_tx_threshold,
        subnet_id=config.subnet.id,
        validator_hotkey=config.validator_hotkey,
        base_url=config.api_endpoints.taostats,
        cache=ResponseCache(ttl.taostats, clock=clock),
        api_key=taostats_api_key or get_api_key(TAOSTATS_KEY_ENV),
        throttle=RequestThrottle(config.taostats_min_interval, clock=clock),
        **common,
    )
    etherscan = EtherscanClient(
        wallets=config.wallets_for("ethereum"),
        base_url=config.api_endpoints.etherscan,
        cache=ResponseCache(ttl.etherscan, clock=clock),
        api_key=etherscan_api_key or get_api_key(ETHERSCAN_KEY_ENV),
        **common,
    )
    pricing = CoinGeckoPricing(
        coin_id=config.subnet.coingecko_id,
        base_url=config.api_endpoints.coingecko,
        cache=ResponseCache(ttl.coingecko, clock=clock),
        **common,
    )
    sheets = SheetsClient(
        expenses_sheet_id=config.sheets.expenses,
        recurring=config.recurring_expenses,
        base_url=config.sheets.base_url,
        cache=ResponseCache(ttl.sheets, clock=clock),
        **common,
    )
    return DashboardContext(config, taostats, etherscan, pricing, sheets, today=today)
