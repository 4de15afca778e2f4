"""
Data Provider Interfaces.
"""
from abc import ABC, abstractmethod
from typing import List

from crypto_tracker.models import ChartPoint, Coin, MarketResult


class MarketDataProvider(ABC):
    """Interface for market data providers (CoinGecko)."""

    @abstractmethod
    async def list_top_coins(self, page: int = 1, per_page: int = 50) -> MarketResult[List[Coin]]:
        """Get coins ranked by descending market cap."""
        pass

    @abstractmethod
    async def get_coin_detail(self, coin_id: str) -> MarketResult[Coin]:
        """Get full market detail for one coin."""
        pass

    @abstractmethod
    async def get_coin_price_history(self, coin_id: str, days: int = 7) -> MarketResult[List[ChartPoint]]:
        """Get the trailing price series for one coin."""
        pass

    @abstractmethod
    async def search_coins(self, query: str) -> MarketResult[List[Coin]]:
        """Search coins by name or symbol."""
        pass

    @abstractmethod
    async def close(self):
        """Release network resources."""
        pass
