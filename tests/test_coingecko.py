"""Tests for CoinGecko pricing."""

import asyncio
from decimal import Decimal

from treasury_dashboard.pricing import CoinGeckoPricing
from treasury_dashboard.transport.cache import ResponseCache


def _pricing(upstream) -> CoinGeckoPricing:
    return CoinGeckoPricing(coin_id="finetuning", cache=ResponseCache(300), transport=upstream.transport)


def test_get_subnet_price(upstream):
    """Subnet token market data and history come from the coin and chart endpoints."""
    pricing = _pricing(upstream)

    async def run():
        try:
            return await pricing.get_subnet_price()
        finally:
            await pricing.aclose()

    price = asyncio.run(run())

    assert price.current == Decimal("0.012")
    assert price.change_24h == Decimal("3.1")
    assert price.change_7d == Decimal("9.4")
    assert price.volume_24h == Decimal("25000")
    assert price.market_cap == Decimal("1200000")
    assert [p.timestamp for p in price.history] == [1741219200000, 1741305600000, 1741392000000]
    assert price.history[-1].price == Decimal("0.012")

    chart_request = upstream.requests[1]
    assert chart_request.url.params["days"] == "7"
    assert chart_request.url.params["vs_currency"] == "usd"


def test_get_tao_ticker(upstream):
    """The TAO ticker reads the simple price endpoint."""
    pricing = _pricing(upstream)

    async def run():
        try:
            return await pricing.get_tao_ticker()
        finally:
            await pricing.aclose()

    ticker = asyncio.run(run())

    assert ticker.price == Decimal("390")
    assert ticker.change_24h == Decimal("1.5")
    assert upstream.requests[0].url.params["ids"] == "bittensor"
    assert "x-cg-pro-api-key" not in upstream.requests[0].headers


def test_oracle_failure_returns_zeroed_records(upstream):
    """An unavailable oracle yields zeroed price records."""
    upstream.failing.add("api.coingecko.com")
    pricing = _pricing(upstream)

    async def run():
        try:
            return await pricing.get_subnet_price(), await pricing.get_tao_ticker()
        finally:
            await pricing.aclose()

    price, ticker = asyncio.run(run())

    assert price.current == 0
    assert price.history == []
    assert ticker.price == 0
