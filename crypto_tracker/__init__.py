"""
CryptoTracker market data access layer.
"""
from .config import settings
from .data_providers.coingecko_provider import CoinGeckoMarketDataProvider
from .models import ChartPoint, Coin, DataSource, MarketResult

__all__ = [
    "settings",
    "CoinGeckoMarketDataProvider",
    "ChartPoint",
    "Coin",
    "DataSource",
    "MarketResult",
]
