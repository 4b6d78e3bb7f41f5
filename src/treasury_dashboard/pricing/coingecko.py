"""CoinGecko pricing service for the subnet token and the TAO ticker."""

import logging
from typing import Any

from treasury_dashboard.core.models import PricePoint, PriceSnapshot, PriceTicker, coerce_decimal, coerce_int
from treasury_dashboard.transport.client import CachedJSONClient
from treasury_dashboard.transport.errors import SourceError

logger = logging.getLogger(__name__)


def _get(data: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class CoinGeckoClient(CachedJSONClient):
    """Keyless CoinGecko transport."""

    source = "coingecko"


class CoinGeckoPricing:
    """
    Fetches token prices from the CoinGecko public API.

    No API key is required for the endpoints used.

    Parameters
    ----------
    coin_id : str
        CoinGecko id of the subnet token
    tao_id : str
        CoinGecko id of TAO
    base_url : str
        CoinGecko API base URL
    **kwargs
        Forwarded to ``CachedJSONClient``

    """

    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        coin_id: str,
        tao_id: str = "bittensor",
        base_url: str = BASE_URL,
        **kwargs: Any,
    ) -> None:
        self.coin_id = coin_id
        self.tao_id = tao_id
        self.client = CoinGeckoClient(base_url, **kwargs)

    async def get_subnet_price(self, history_days: int = 7) -> PriceSnapshot:
        """
        Fetch subnet token market data and price history.

        Parameters
        ----------
        history_days : int
            Days of history to request

        Returns
        -------
        PriceSnapshot
            Current market data plus history, zeroed when unavailable

        """
        try:
            coin = await self.client.fetch_json(
                f"/coins/{self.coin_id}",
                {
                    "localization": "false",
                    "tickers": "false",
                    "community_data": "false",
                    "developer_data": "false",
                },
            )
            chart = await self.client.fetch_json(
                f"/coins/{self.coin_id}/market_chart",
                {"vs_currency": "usd", "days": history_days},
            )
        except SourceError as e:
            logger.error("Error fetching %s price: %s", self.coin_id, e)
            return PriceSnapshot()

        market = _get(coin, "market_data")
        history = []
        for sample in _get(chart, "prices") or []:
            if isinstance(sample, list | tuple) and len(sample) >= 2:
                history.append(PricePoint(timestamp=coerce_int(sample[0]), price=coerce_decimal(sample[1])))

        return PriceSnapshot(
            current=coerce_decimal(_get(market, "current_price", "usd")),
            change_24h=coerce_decimal(_get(market, "price_change_percentage_24h")),
            change_7d=coerce_decimal(_get(market, "price_change_percentage_7d")),
            volume_24h=coerce_decimal(_get(market, "total_volume", "usd")),
            market_cap=coerce_decimal(_get(market, "market_cap", "usd")),
            history=history,
        )

    async def get_tao_ticker(self) -> PriceTicker:
        """
        Fetch the TAO price and 24h change.

        Returns
        -------
        PriceTicker
            Ticker, zeroed when unavailable

        """
        try:
            data = await self.client.fetch_json(
                "/simple/price",
                {"ids": self.tao_id, "vs_currencies": "usd", "include_24hr_change": "true"},
            )
        except SourceError as e:
            logger.error("Error fetching TAO price ticker: %s", e)
            return PriceTicker()

        return PriceTicker(
            price=coerce_decimal(_get(data, self.tao_id, "usd")),
            change_24h=coerce_decimal(_get(data, self.tao_id, "usd_24h_change")),
        )

    async def aclose(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()
