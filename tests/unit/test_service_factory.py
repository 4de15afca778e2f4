"""
Unit tests for service wiring: factory singletons, Redis degradation and Sentry.
"""
import pytest
import redis

from crypto_tracker import redis_client, sentry_init
from crypto_tracker.data_providers.coingecko_provider import CoinGeckoMarketDataProvider
from crypto_tracker.service_factory import ServiceFactory, get_market_data_provider, get_watchlist_service
from crypto_tracker.services.watchlist_service import service as watchlist_module


@pytest.fixture(autouse=True)
def reset_factory():
    ServiceFactory.reset()
    yield
    ServiceFactory.reset()


@pytest.mark.unit
class TestServiceFactory:

    def test_provider_is_shared(self):
        provider = get_market_data_provider()

        assert isinstance(provider, CoinGeckoMarketDataProvider)
        assert get_market_data_provider() is provider

    def test_watchlist_uses_redis_store(self, monkeypatch, mock_redis):
        monkeypatch.setattr(watchlist_module, "get_redis", lambda: mock_redis)

        service = get_watchlist_service()

        assert service.store is mock_redis
        assert get_watchlist_service() is service

    @pytest.mark.asyncio
    async def test_close_releases_provider(self):
        provider = get_market_data_provider()

        await ServiceFactory.close()

        assert provider.client.is_closed
        assert get_market_data_provider() is not provider


@pytest.mark.unit
class TestRedisClient:

    def test_unreachable_redis_degrades_to_none(self, monkeypatch):
        def refuse(self, *args, **kwargs):
            raise redis.ConnectionError("Connection refused")

        monkeypatch.setattr(redis_client, "_redis_client", None)
        monkeypatch.setattr(redis.Redis, "ping", refuse)

        assert redis_client.get_redis() is None

    def test_lost_connection_returns_none(self, monkeypatch):
        class DroppedRedis:
            def ping(self):
                raise redis.TimeoutError("Timeout reading from socket")

        monkeypatch.setattr(redis_client, "_redis_client", DroppedRedis())

        assert redis_client.get_redis() is None


@pytest.mark.unit
def test_sentry_disabled_without_dsn(monkeypatch):
    monkeypatch.setattr(sentry_init.settings, "SENTRY_DSN", "")

    assert sentry_init.init_sentry() is False
