"""
Pytest configuration and shared fixtures.
"""
import asyncio
import os
import sys
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from crypto_tracker.data_providers.coingecko_provider import CoinGeckoMarketDataProvider


API_PREFIX = "/api/v3"

BITCOIN_MARKET_ITEM = {
    "id": "bitcoin",
    "symbol": "btc",
    "name": "Bitcoin",
    "image": "https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
    "current_price": 67123.5,
    "market_cap": 1321000000000,
    "market_cap_rank": 1,
    "fully_diluted_valuation": 1409000000000,
    "total_volume": 31000000000,
    "high_24h": 68000,
    "low_24h": 66000.25,
    "price_change_24h": -512.3,
    "price_change_percentage_24h": -0.76,
    "market_cap_change_24h": -9000000000,
    "market_cap_change_percentage_24h": -0.68,
    "circulating_supply": 19700000,
    "total_supply": 21000000,
    "max_supply": 21000000,
    "ath": 73738,
    "ath_change_percentage": -8.9,
    "ath_date": "2024-03-14T07:10:36.635Z",
    "atl": 67.81,
    "atl_change_percentage": 98900.1,
    "atl_date": "2013-07-06T00:00:00.000Z",
    "roi": None,
    "last_updated": "2024-06-01T12:00:00.000Z",
    "price_change_percentage_1h_in_currency": 0.12,
    "price_change_percentage_7d_in_currency": 3.4,
}

ETHEREUM_MARKET_ITEM = {
    **BITCOIN_MARKET_ITEM,
    "id": "ethereum",
    "symbol": "eth",
    "name": "Ethereum",
    "current_price": 3800.1,
    "market_cap": 456000000000,
    "market_cap_rank": 2,
    "max_supply": None,
}

RATE_LIMITED = (429, {"status": {"error_code": 429, "error_message": "You've exceeded the Rate Limit."}})


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds

    async def concurrent_sleep(self, seconds: float):
        """Like sleep, but yields so other tasks run before the deadline is reached."""
        self.sleeps.append(seconds)
        deadline = self.now + seconds
        await asyncio.sleep(0)
        self.now = max(self.now, deadline)


Reply = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """
    Scripted CoinGecko stand-in for httpx.MockTransport.

    Replies are keyed by path (without the /api/v3 prefix). Queued replies are
    consumed in order; once a queue is empty the path's default reply is used.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.calls: List[Tuple[float, httpx.Request]] = []
        self._queued: Dict[str, List[Reply]] = {}
        self._defaults: Dict[str, Reply] = {}

    def queue(self, path: str, *replies: Reply):
        self._queued.setdefault(path, []).extend(replies)

    def always(self, path: str, reply: Reply):
        self._defaults[path] = reply

    def paths(self) -> List[str]:
        return [self._path(request) for _, request in self.calls]

    def dispatch_times(self) -> List[float]:
        return [at for at, _ in self.calls]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        return path[len(API_PREFIX):] if path.startswith(API_PREFIX) else path

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((self.clock(), request))
        path = self._path(request)

        queued = self._queued.get(path)
        if queued:
            reply = queued.pop(0)
        else:
            reply = self._defaults.get(path, (404, {"error": "coin not found"}))

        if callable(reply):
            return reply(request)
        status_code, body = reply
        return httpx.Response(status_code, json=body)


class MockRedis:
    """Minimal synchronous stand-in for redis.Redis."""

    def __init__(self):
        self._data = {}

    def get(self, key: str):
        return self._data.get(key)

    def set(self, key: str, value: str, ex: int = None):
        self._data[key] = value
        return True

    def delete(self, key: str):
        return self._data.pop(key, None) is not None

    def exists(self, key: str):
        return key in self._data


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream(clock) -> FakeUpstream:
    return FakeUpstream(clock)


@pytest_asyncio.fixture
async def provider(upstream, clock):
    """Provider wired to the fake upstream with instant sleeps."""
    provider = CoinGeckoMarketDataProvider(
        transport=httpx.MockTransport(upstream),
        clock=clock,
        sleep=clock.sleep,
    )
    yield provider
    await provider.close()


@pytest.fixture
def mock_redis() -> MockRedis:
    """Mock Redis client for tests."""
    return MockRedis()
