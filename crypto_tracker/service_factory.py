"""
Service factory for dependency injection.
Provides centralized service instantiation.
"""
from typing import Optional

from .data_providers.coingecko_provider import CoinGeckoMarketDataProvider
from .data_providers.interfaces import MarketDataProvider
from .services.watchlist_service.service import WatchlistService


class ServiceFactory:
    """Factory for creating service instances."""

    # One provider per process so every caller shares the same throttle
    _market_data_provider: Optional[MarketDataProvider] = None
    _watchlist_service: Optional[WatchlistService] = None

    @classmethod
    def get_market_data_provider(cls) -> MarketDataProvider:
        """Get or create market data provider instance."""
        if cls._market_data_provider is None:
            cls._market_data_provider = CoinGeckoMarketDataProvider()
        return cls._market_data_provider

    @classmethod
    def get_watchlist_service(cls) -> WatchlistService:
        """Get or create watchlist service instance."""
        if cls._watchlist_service is None:
            cls._watchlist_service = WatchlistService()
        return cls._watchlist_service

    @classmethod
    async def close(cls):
        if cls._market_data_provider is not None:
            await cls._market_data_provider.close()
        cls.reset()

    @classmethod
    def reset(cls):
        """Reset all service instances (useful for testing)."""
        cls._market_data_provider = None
        cls._watchlist_service = None


# FastAPI dependency functions
def get_market_data_provider() -> MarketDataProvider:
    """FastAPI dependency for the market data provider."""
    return ServiceFactory.get_market_data_provider()


def get_watchlist_service() -> WatchlistService:
    """FastAPI dependency for watchlist service."""
    return ServiceFactory.get_watchlist_service()
