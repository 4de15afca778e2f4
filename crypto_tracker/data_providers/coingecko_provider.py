"""
CoinGecko Market Data Provider.
Implements MarketDataProvider with request throttling, retries on 429/5xx and
degradation to bundled fallback data when CoinGecko keeps rate limiting.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from crypto_tracker.config import settings
from crypto_tracker.error_models import (
    ConnectivityError,
    FallbackMissError,
    NotFoundError,
    RateLimitedError,
    RequestTimeoutError,
    ServerError,
)
from crypto_tracker.models import ChartPoint, Coin, DataSource, MarketResult, build_chart_series
from .fallback_data import (
    fallback_top_coins,
    find_fallback_coin,
    generate_fallback_chart,
    search_fallback_coins,
)
from .interfaces import MarketDataProvider

logger = logging.getLogger(__name__)

TOP_COINS_FAILED = "Failed to fetch top coins. Please check your internet connection."
COIN_DETAILS_FAILED = "Failed to fetch coin details. Please check your internet connection."
COIN_CHART_FAILED = "Failed to fetch coin chart. Please check your internet connection."
SEARCH_FAILED = "Failed to search coins. Please check your internet connection."
COIN_NOT_FOUND = "Coin not found. Please check the coin ID."
COIN_NOT_IN_FALLBACK = "Coin not found in fallback data."
COIN_CHART_NOT_FOUND = "Price history not found. Please check the coin ID."


def _is_retryable(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def _status_of(exc: Exception) -> Optional[int]:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


def _expect(data: Any, expected: type, what: str):
    if not isinstance(data, expected):
        raise ValueError(f"Malformed {what} response: expected {expected.__name__}, got {type(data).__name__}")
    return data


class CoinGeckoMarketDataProvider(MarketDataProvider):
    """
    CoinGecko implementation of MarketDataProvider.

    Every dispatch is spaced at least RATE_LIMIT_DELAY seconds after the
    previous one issued by this instance. The last-dispatch time is recorded
    before the request goes out, so concurrent callers are spaced by dispatch
    time but can still overlap while waiting on the network. Two callers that
    both start waiting before either dispatches may go out together.

    Retries wait a fixed RETRY_DELAY (no exponential growth) and only happen
    for 429 and 5xx responses.
    """

    RATE_LIMIT_DELAY = 1.2  # seconds between requests
    MAX_RETRIES = 3
    RETRY_DELAY = 2.0  # seconds, fixed
    REQUEST_TIMEOUT = 15.0
    SEARCH_DETAIL_DELAY = 0.5
    SEARCH_RESULT_LIMIT = 10

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        use_fallback: bool = True,
        clock=time.monotonic,
        sleep=asyncio.sleep,
    ):
        self.base_url = settings.COINGECKO_BASE_URL
        self.api_key = getattr(settings, 'COINGECKO_API_KEY', '') or ''
        self.vs_currency = settings.VS_CURRENCY
        self.use_fallback = use_fallback

        headers = {
            "Accept": "application/json",
            "User-Agent": settings.USER_AGENT,
        }
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.REQUEST_TIMEOUT,
            headers=headers,
            transport=transport,
        )
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: Optional[float] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def _throttle(self):
        """Wait until RATE_LIMIT_DELAY has passed since the last dispatch."""
        if self._last_request_time is not None:
            elapsed = self._clock() - self._last_request_time
            if elapsed < self.RATE_LIMIT_DELAY:
                await self._sleep(self.RATE_LIMIT_DELAY - elapsed)
        self._last_request_time = self._clock()

    async def _request_with_retry(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Dispatch a GET, retrying 429/5xx up to MAX_RETRIES times.

        The caller has already passed the throttle; the retry delay covers
        spacing for re-dispatches.

        Raises:
            httpx.HTTPStatusError: final non-2xx response
            httpx.RequestError: network failure or timeout (never retried)
            ValueError: body is not JSON
        """
        attempts_left = self.MAX_RETRIES
        while True:
            response = await self.client.get(path, params=params)
            if _is_retryable(response.status_code) and attempts_left > 0:
                logger.warning(
                    f"Request to {path} failed with {response.status_code}, "
                    f"retrying... ({attempts_left} attempts left)"
                )
                attempts_left -= 1
                await self._sleep(self.RETRY_DELAY)
                self._last_request_time = self._clock()
                continue

            response.raise_for_status()
            return response.json()

    async def _fetch(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        await self._throttle()
        return await self._request_with_retry(path, params)

    def _rate_limited(self, exc: Exception) -> bool:
        """True when the final answer was 429 and fallback data may be served."""
        if _status_of(exc) != 429:
            return False
        if not self.use_fallback:
            raise RateLimitedError("Rate limited by CoinGecko. Please try again later.") from exc
        return True

    def _failure(self, exc: Exception, message: str) -> ConnectivityError:
        status = _status_of(exc)
        if status is not None and status >= 500:
            return ServerError(message, detail=f"CoinGecko returned {status}")
        if isinstance(exc, httpx.TimeoutException):
            return RequestTimeoutError(message, detail=f"Request timed out after {self.REQUEST_TIMEOUT}s")
        return ConnectivityError(message, detail=f"{type(exc).__name__}: {exc}")

    def _markets_params(self, **extra) -> Dict[str, Any]:
        params = {
            "vs_currency": self.vs_currency,
            "order": "market_cap_desc",
            "sparkline": "false",
            "price_change_percentage": "1h,24h,7d",
        }
        params.update(extra)
        return params

    async def list_top_coins(self, page: int = 1, per_page: int = 50) -> MarketResult[List[Coin]]:
        """Get coins ranked by descending market cap."""
        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be positive")

        try:
            data = await self._fetch("/coins/markets", self._markets_params(per_page=per_page, page=page))
            coins = [Coin.from_market_item(item) for item in _expect(data, list, "markets")]
        except httpx.HTTPStatusError as e:
            logger.error(f"Error fetching top coins: {e}")
            if self._rate_limited(e):
                logger.warning("Using fallback data due to rate limiting")
                return MarketResult(data=fallback_top_coins(page, per_page), source=DataSource.FALLBACK)
            raise self._failure(e, TOP_COINS_FAILED) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching top coins: {e}")
            raise self._failure(e, TOP_COINS_FAILED) from e

        return MarketResult(data=coins[:per_page])

    async def get_coin_detail(self, coin_id: str) -> MarketResult[Coin]:
        """Get full market detail for one coin."""
        if not coin_id:
            raise ValueError("coin_id must not be empty")

        params = {
            "localization": "false",
            "tickers": "false",
            "market_data": "true",
            "community_data": "false",
            "developer_data": "false",
            "sparkline": "false",
        }
        try:
            data = await self._fetch(f"/coins/{quote(coin_id, safe='')}", params)
            coin = Coin.from_coin_detail(_expect(data, dict, "coin detail"), self.vs_currency)
        except httpx.HTTPStatusError as e:
            logger.error(f"Error fetching coin details for {coin_id}: {e}")
            if self._rate_limited(e):
                logger.warning("Using fallback data due to rate limiting")
                fallback_coin = find_fallback_coin(coin_id)
                if fallback_coin is None:
                    raise FallbackMissError(COIN_NOT_IN_FALLBACK, detail=coin_id) from e
                return MarketResult(data=fallback_coin, source=DataSource.FALLBACK)
            if _status_of(e) == 404:
                raise NotFoundError(COIN_NOT_FOUND, detail=coin_id) from e
            raise self._failure(e, COIN_DETAILS_FAILED) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching coin details for {coin_id}: {e}")
            raise self._failure(e, COIN_DETAILS_FAILED) from e

        return MarketResult(data=coin)

    async def get_coin_price_history(self, coin_id: str, days: int = 7) -> MarketResult[List[ChartPoint]]:
        """
        Get the trailing ``days`` of prices for one coin.

        A successful response without a ``prices`` series yields an empty list.
        Under rate limiting a generic placeholder series is returned instead;
        its prices are not scaled to the requested coin.
        """
        if not coin_id:
            raise ValueError("coin_id must not be empty")
        if days < 1:
            raise ValueError("days must be at least 1")

        params = {"vs_currency": self.vs_currency, "days": days}
        try:
            data = await self._fetch(f"/coins/{quote(coin_id, safe='')}/market_chart", params)
            prices = _expect(data, dict, "market chart").get("prices")
            points = build_chart_series(prices) if isinstance(prices, list) else []
        except httpx.HTTPStatusError as e:
            logger.error(f"Error fetching coin chart for {coin_id}: {e}")
            if self._rate_limited(e):
                logger.warning("Using fallback chart data due to rate limiting")
                return MarketResult(data=generate_fallback_chart(days), source=DataSource.FALLBACK)
            if _status_of(e) == 404:
                raise NotFoundError(COIN_CHART_NOT_FOUND, detail=coin_id) from e
            raise self._failure(e, COIN_CHART_FAILED) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching coin chart for {coin_id}: {e}")
            raise self._failure(e, COIN_CHART_FAILED) from e

        return MarketResult(data=points)

    async def search_coins(self, query: str) -> MarketResult[List[Coin]]:
        """
        Search coins by name or symbol.

        The lightweight search hits (top SEARCH_RESULT_LIMIT) are expanded into
        full Coin records with a second, throttled markets call. A blank query
        short-circuits to an empty result; any other query is passed on as given.
        """
        if not (query or "").strip():
            return MarketResult(data=[])

        try:
            data = await self._fetch("/search", {"query": query})
            matches = _expect(_expect(data, dict, "search").get("coins") or [], list, "search")
            coin_ids = [m.get("id") for m in matches[:self.SEARCH_RESULT_LIMIT] if isinstance(m, dict) and m.get("id")]
            if not coin_ids:
                return MarketResult(data=[])

            await self._sleep(self.SEARCH_DETAIL_DELAY)

            details = await self._fetch(
                "/coins/markets",
                self._markets_params(ids=",".join(coin_ids), per_page=self.SEARCH_RESULT_LIMIT),
            )
            coins = [Coin.from_market_item(item) for item in _expect(details, list, "markets")]
        except httpx.HTTPStatusError as e:
            logger.error(f"Error searching coins for '{query}': {e}")
            if self._rate_limited(e):
                logger.warning("Using fallback search data due to rate limiting")
                return MarketResult(data=search_fallback_coins(query), source=DataSource.FALLBACK)
            raise self._failure(e, SEARCH_FAILED) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error searching coins for '{query}': {e}")
            raise self._failure(e, SEARCH_FAILED) from e

        return MarketResult(data=coins)

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
