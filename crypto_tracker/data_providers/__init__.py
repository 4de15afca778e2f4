"""
Market data providers.
"""
from .coingecko_provider import CoinGeckoMarketDataProvider
from .interfaces import MarketDataProvider

__all__ = [
    "CoinGeckoMarketDataProvider",
    "MarketDataProvider",
]
