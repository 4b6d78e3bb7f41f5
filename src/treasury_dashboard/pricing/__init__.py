"""Pricing services for token USD values."""

from treasury_dashboard.pricing.coingecko import CoinGeckoClient, CoinGeckoPricing

__all__ = [
    "CoinGeckoClient",
    "CoinGeckoPricing",
]
