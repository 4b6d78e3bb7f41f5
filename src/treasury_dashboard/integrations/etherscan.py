"""Etherscan client for ETH price and ETH wallet balances."""

import logging
from decimal import Decimal
from typing import Any

from treasury_dashboard.core.models import Network, WalletBalance, coerce_decimal
from treasury_dashboard.data.loader import ETHERSCAN_KEY_ENV, WalletConfig
from treasury_dashboard.transport.client import CachedJSONClient
from treasury_dashboard.transport.errors import MissingCredentialsError, SourceError

logger = logging.getLogger(__name__)

WEI_PER_ETH = Decimal("1000000000000000000")
MAINNET_CHAIN_ID = 1


class EtherscanClient(CachedJSONClient):
    """
    Client for the Etherscan API.

    The API key travels as the ``apikey`` query parameter. Without a key the
    client reports every wallet with a zero balance.

    Parameters
    ----------
    wallets : list[WalletConfig]
        Ethereum wallets to monitor
    base_url : str
        API base URL
    chain_id : int
        EVM chain id sent with every request
    **kwargs
        Forwarded to ``CachedJSONClient``

    """

    BASE_URL = "https://api.etherscan.io/v2/api"

    source = "etherscan"
    api_key_env = ETHERSCAN_KEY_ENV

    def __init__(
        self,
        wallets: list[WalletConfig],
        base_url: str = BASE_URL,
        chain_id: int = MAINNET_CHAIN_ID,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url, **kwargs)
        self.wallets = wallets
        self.chain_id = chain_id

    def _auth_params(self) -> dict[str, str]:
        return {"apikey": self.api_key or ""}

    async def _call(self, module: str, action: str, **params: Any) -> Any:
        query = {"chainid": self.chain_id, "module": module, "action": action, **params}
        payload = await self.fetch_json("", query)
        if not isinstance(payload, dict):
            return None
        return payload.get("result")

    async def get_eth_price(self) -> Decimal:
        """
        Fetch the ETH/USD price.

        Returns
        -------
        Decimal
            USD price, 0 when unavailable

        """
        try:
            result = await self._call("stats", "ethprice")
        except MissingCredentialsError as e:
            logger.warning("%s, ETH balances will be 0", e)
            return Decimal("0")
        except SourceError as e:
            logger.error("Error fetching ETH price: %s", e)
            return Decimal("0")

        if not isinstance(result, dict):
            return Decimal("0")
        return coerce_decimal(result.get("ethusd"))

    async def get_wallet_balances(self) -> tuple[list[WalletBalance], Decimal]:
        """
        Fetch the balance of every configured Ethereum wallet.

        Returns
        -------
        tuple[list[WalletBalance], Decimal]
            One entry per configured wallet, and the ETH price used to
            convert all of them

        """
        eth_price = await self.get_eth_price()
        balances = []
        for wallet in self.wallets:
            balance = Decimal("0")
            try:
                result = await self._call("account", "balance", address=wallet.address, tag="latest")
                balance = coerce_decimal(result) / WEI_PER_ETH
            except MissingCredentialsError:
                # Already reported by get_eth_price.
                pass
            except SourceError as e:
                logger.error("Error fetching ETH balance for %s: %s", wallet.name, e)

            balances.append(
                WalletBalance(
                    name=wallet.name,
                    address=wallet.address,
                    network=Network.ETHEREUM,
                    balance=balance,
                    balance_usd=balance * eth_price,
                    token="ETH",
                )
            )
        return balances, eth_price
