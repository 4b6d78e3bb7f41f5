"""Pytest configuration for treasury dashboard tests."""

from datetime import date

import httpx
import pytest

from treasury_dashboard.core.context import build_context
from treasury_dashboard.data.loader import DashboardConfig

FOUNDATION = "5DXqqdrvu5FK3dASRVTCdGPZKx4Q9nkAZZSmibKG6PEEeW4j"
VALIDATOR = "5CSrYw5nGquFeZKL1Py8H3vgqcEh2v9pzDaFnrCFySG5m5AY"
ETH_WALLET = "0x8BD57fA41f0165a6e76e21676ACa235240e939bB"
OUTSIDER = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"

TODAY = date(2025, 3, 15)

EXPENSES_CSV = """Date,Payor,Item,Cost,Recurring
2024-11-20,Aurelius Labs,Conference tickets,"$2,000",No
2025-01-15,Aurelius Labs,CTO Salary,"$10,000",Yes

2025-02-20,Aurelius Foundation,Notion subscription,$500,Yes
2025-03-01,Aurelius Labs,Website design,"$1,500",No
,Aurelius Labs,Missing date,$100,No
"""

CONFIG = {
    "subnet": {"id": 37, "name": "Aurelius", "coingecko_id": "finetuning"},
    "large_tx_threshold": 100,
    "wallets": {
        "bittensor": [
            {"name": "Aurelius Foundation", "address": FOUNDATION},
            {"name": "Aurelius Validator", "address": VALIDATOR, "role": "validator"},
        ],
        "ethereum": [{"name": "Aurelius Labs (ETH)", "address": ETH_WALLET}],
    },
    "sheets": {"expenses": "expenses-sheet"},
    "taostats_min_interval": 0,
}


def _transfer(tx_hash: str, timestamp: str, sender: str, recipient: str, rao: int) -> dict:
    return {
        "transaction_hash": tx_hash,
        "extrinsic_id": f"ext-{tx_hash}",
        "timestamp": timestamp,
        "from": {"ss58": sender},
        "to": {"ss58": recipient},
        "amount": str(rao),
    }


TRANSFER_A = _transfer("0xaaa", "2025-03-10T12:00:00Z", FOUNDATION, OUTSIDER, 5_000_000_000)
TRANSFER_B = _transfer("0xbbb", "2025-03-12T12:00:00Z", OUTSIDER, FOUNDATION, 200_000_000_000)
# Between two monitored wallets, so it shows up in both wallets' history.
TRANSFER_C = _transfer("0xccc", "2025-03-11T12:00:00Z", FOUNDATION, VALIDATOR, 10_000_000_000)

TRANSFERS = {
    FOUNDATION: [TRANSFER_A, TRANSFER_B, TRANSFER_C],
    VALIDATOR: [TRANSFER_C],
}
LARGE_TRANSFERS = {
    FOUNDATION: [TRANSFER_B],
    VALIDATOR: [],
}

TRADE_STAKE = {
    "extrinsic_id": "5000000-0007",
    "timestamp": "2025-03-11T00:00:00Z",
    "action": "DELEGATE",
    "nominator": {"ss58": OUTSIDER},
    "delegate": {"ss58": VALIDATOR},
    "amount": "150000000000",
    "alpha": "300000000000",
}
TRADE_UNSTAKE = {
    "extrinsic_id": "5000100-0003",
    "timestamp": "2025-03-13T00:00:00Z",
    "action": "UNDELEGATE",
    "nominator": {"ss58": OUTSIDER},
    "delegate": {"ss58": VALIDATOR},
    "amount": "120000000000",
    "alpha": "240000000000",
}


class FakeUpstream:
    """
    In-process stand-in for every upstream API, served through ``httpx.MockTransport``.

    Hosts listed in ``failing`` answer 500; every request is recorded.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.failing: set[str] = set()
        self.balances = {FOUNDATION: 150_000_000_000, VALIDATOR: 50_000_000_000}
        self.expenses_csv = EXPENSES_CSV
        self.transport = httpx.MockTransport(self.handle)

    def count(self, path_suffix: str) -> int:
        return sum(1 for request in self.requests if request.url.path.endswith(path_suffix))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host in self.failing:
            return httpx.Response(500, json={"error": "upstream down"})
        if host == "api.taostats.io":
            return self._taostats(request)
        if host == "api.etherscan.io":
            return self._etherscan(request)
        if host == "api.coingecko.com":
            return self._coingecko(request)
        if host == "docs.google.com":
            return httpx.Response(200, text=self.expenses_csv)
        return httpx.Response(404)

    def _taostats(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = request.url.params
        if path.endswith("/price/latest/v1"):
            row = {
                "price": "400",
                "percent_change_24h": "2.5",
                "percent_change_7d": "-1.2",
                "volume_24h": "1000000",
                "market_cap": "3000000000",
            }
            return httpx.Response(200, json={"data": [row]})
        if path.endswith("/account/latest/v1"):
            rao = self.balances.get(params["address"], 0)
            return httpx.Response(200, json={"data": [{"balance_total": str(rao)}]})
        if path.endswith("/dtao/stake_balance/latest/v1"):
            rows = [{"balance_as_tao": "1000"}, {"balance_as_tao": "500"}]
            return httpx.Response(200, json={"data": rows, "pagination": {"total_items": 2}})
        if path.endswith("/transfer/v1"):
            source = LARGE_TRANSFERS if "amount_min" in params else TRANSFERS
            return httpx.Response(200, json={"data": source.get(params["address"], [])})
        if path.endswith("/delegation/v1"):
            return httpx.Response(200, json={"data": [TRADE_STAKE, TRADE_UNSTAKE, TRADE_STAKE]})
        return httpx.Response(404)

    def _etherscan(self, request: httpx.Request) -> httpx.Response:
        action = request.url.params.get("action")
        if action == "ethprice":
            return httpx.Response(200, json={"status": "1", "result": {"ethusd": "2000"}})
        if action == "balance":
            return httpx.Response(200, json={"status": "1", "result": "2000000000000000000"})
        return httpx.Response(404)

    def _coingecko(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/simple/price"):
            return httpx.Response(200, json={"bittensor": {"usd": 390, "usd_24h_change": 1.5}})
        if path.endswith("/market_chart"):
            prices = [[1741219200000, 0.010], [1741305600000, 0.011], [1741392000000, 0.012]]
            return httpx.Response(200, json={"prices": prices})
        if path.endswith("/coins/finetuning"):
            market = {
                "current_price": {"usd": 0.012},
                "price_change_percentage_24h": 3.1,
                "price_change_percentage_7d": 9.4,
                "total_volume": {"usd": 25000},
                "market_cap": {"usd": 1200000},
            }
            return httpx.Response(200, json={"market_data": market})
        return httpx.Response(404)


@pytest.fixture
def config() -> DashboardConfig:
    """Dashboard configuration with two TAO wallets and one ETH wallet."""
    return DashboardConfig.model_validate(CONFIG)


@pytest.fixture
def upstream() -> FakeUpstream:
    """Fake upstream APIs."""
    return FakeUpstream()


@pytest.fixture
def make_context(config, upstream):
    """Factory building a fresh context wired to the fake upstream."""

    def factory(**kwargs):
        options = {
            "taostats_api_key": "taostats-key",
            "etherscan_api_key": "etherscan-key",
            "transport": upstream.transport,
            "today": lambda: TODAY,
        }
        options.update(kwargs)
        return build_context(config, **options)

    return factory
