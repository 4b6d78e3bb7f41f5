"""Dashboard configuration loader."""

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

CONFIG_ENV_VAR = "DASHBOARD_CONFIG"
TAOSTATS_KEY_ENV = "TAOSTATS_API_KEY"
ETHERSCAN_KEY_ENV = "ETHERSCAN_API_KEY"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "dashboard.yaml"

# Calendar month as YYYY-MM
MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class WalletConfig(BaseModel):
    """
    Monitored wallet.

    Attributes
    ----------
    name : str
        Display name
    address : str
        On-chain address
    description : str
        Free-form description
    role : str | None
        ``validator`` marks the hotkey whose delegated stake is tracked

    """

    name: str
    address: str
    description: str = ""
    role: str | None = None


class SubnetConfig(BaseModel):
    """Subnet identity."""

    id: int
    name: str
    coingecko_id: str


class SheetsConfig(BaseModel):
    """Published spreadsheet ids."""

    base_url: str = "https://docs.google.com/spreadsheets/d"
    expenses: str
    wallet_tracker: str | None = None


class ApiEndpoints(BaseModel):
    """Upstream API base URLs."""

    taostats: str = "https://api.taostats.io/api"
    etherscan: str = "https://api.etherscan.io/v2/api"
    coingecko: str = "https://api.coingecko.com/api/v3"


class CacheTTLConfig(BaseModel):
    """Per-source cache time-to-live in seconds."""

    taostats: float = 300
    etherscan: float = 600
    coingecko: float = 300
    sheets: float = 3600


class RecurringExpenseConfig(BaseModel):
    """
    Monthly expense that is not recorded in the expense sheet.

    Attributes
    ----------
    item : str
        Expense description
    payor : str
        Paying entity
    cost : Decimal
        Monthly cost in USD
    start : str
        First month, ``YYYY-MM``
    end : str | None
        Last month, ``YYYY-MM``; open-ended when None

    """

    item: str
    payor: str
    cost: Decimal
    start: str = Field(pattern=MONTH_PATTERN)
    end: str | None = Field(default=None, pattern=MONTH_PATTERN)


class DashboardConfig(BaseModel):
    """Static dashboard configuration, loaded once at process start."""

    subnet: SubnetConfig
    large_tx_threshold: Decimal = Decimal("100")
    wallets: dict[str, list[WalletConfig]] = Field(default_factory=dict)
    sheets: SheetsConfig
    api_endpoints: ApiEndpoints = Field(default_factory=ApiEndpoints)
    cache_ttl: CacheTTLConfig = Field(default_factory=CacheTTLConfig)
    refresh_interval: float = 60
    taostats_min_interval: float = 1.0
    http_timeout: float = 30.0
    recurring_expenses: list[RecurringExpenseConfig] = Field(default_factory=list)

    def wallets_for(self, network: str) -> list[WalletConfig]:
        """Wallets configured for a network, empty if none."""
        return self.wallets.get(network, [])

    @property
    def validator_hotkey(self) -> str | None:
        """Address of the bittensor wallet with the ``validator`` role."""
        for wallet in self.wallets_for("bittensor"):
            if wallet.role == "validator":
                return wallet.address
        return None


def load_raw_config(path: Path | None = None) -> dict[str, Any]:
    """
    Load the raw YAML configuration.

    Parameters
    ----------
    path : Path | None
        Config file. Falls back to ``$DASHBOARD_CONFIG`` then the bundled
        ``dashboard.yaml``.

    Returns
    -------
    dict[str, Any]
        Parsed YAML document

    """
    if path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: Path | None = None) -> DashboardConfig:
    """
    Load and validate the dashboard configuration.

    Parameters
    ----------
    path : Path | None
        Config file, see ``load_raw_config``

    Returns
    -------
    DashboardConfig
        Validated configuration

    Raises
    ------
    pydantic.ValidationError
        If the file does not match the expected schema

    """
    return DashboardConfig.model_validate(load_raw_config(path))


def get_api_key(env_var: str) -> str | None:
    """Read an API key from the environment, treating blank values as unset."""
    value = os.getenv(env_var, "").strip()
    return value or None
