"""Static configuration loading."""

from treasury_dashboard.data.loader import (
    CONFIG_ENV_VAR,
    ETHERSCAN_KEY_ENV,
    TAOSTATS_KEY_ENV,
    ApiEndpoints,
    CacheTTLConfig,
    DashboardConfig,
    RecurringExpenseConfig,
    SheetsConfig,
    SubnetConfig,
    WalletConfig,
    get_api_key,
    load_config,
    load_raw_config,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "ETHERSCAN_KEY_ENV",
    "TAOSTATS_KEY_ENV",
    "ApiEndpoints",
    "CacheTTLConfig",
    "DashboardConfig",
    "RecurringExpenseConfig",
    "SheetsConfig",
    "SubnetConfig",
    "WalletConfig",
    "get_api_key",
    "load_config",
    "load_raw_config",
]
