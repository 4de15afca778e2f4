"""
Market Data Service main application.
Exposes the four market data operations plus favorites and theme to the app screens.
"""
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crypto_tracker.config import configure_logging, settings
from crypto_tracker.data_providers.interfaces import MarketDataProvider
from crypto_tracker.error_models import MarketDataError, error_response_from_exception
from crypto_tracker.models import ChartPoint, Coin, MarketResult
from crypto_tracker.sentry_init import init_sentry
from crypto_tracker.service_factory import (
    ServiceFactory,
    get_market_data_provider,
    get_watchlist_service,
)
from crypto_tracker.services.watchlist_service.models import (
    RemoveWatchlistItemResponse,
    SetThemeRequest,
    ThemeResponse,
    ToggleFavoriteResponse,
    WatchlistResponse,
)
from crypto_tracker.services.watchlist_service.service import WatchlistService

configure_logging()
init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Shutdown: close upstream connections
    await ServiceFactory.close()


app = FastAPI(
    title="CryptoTracker Market Data Service",
    version=settings.APP_VERSION,
    description="Top coins, coin details, price history and search backed by CoinGecko",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError):
    error_response, status_code = error_response_from_exception(exc)
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "market_data_service"}


@app.get("/coins", response_model=MarketResult[List[Coin]])
async def list_top_coins(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=50, ge=1, le=250, description="Number of coins to return"),
    provider: MarketDataProvider = Depends(get_market_data_provider),
):
    """
    Get top coins by market cap.

    ``source`` is ``fallback`` when CoinGecko rate limited the request and
    bundled data was returned instead.
    """
    return await provider.list_top_coins(page=page, per_page=per_page)


@app.get("/coins/search", response_model=MarketResult[List[Coin]])
async def search_coins(
    query: str = Query(default=""),
    provider: MarketDataProvider = Depends(get_market_data_provider),
):
    """Search coins by name or symbol."""
    return await provider.search_coins(query)


@app.get("/coins/{coin_id}", response_model=MarketResult[Coin])
async def get_coin_detail(
    coin_id: str,
    provider: MarketDataProvider = Depends(get_market_data_provider),
):
    """Get full market detail for one coin."""
    return await provider.get_coin_detail(coin_id)


@app.get("/coins/{coin_id}/chart", response_model=MarketResult[List[ChartPoint]])
async def get_coin_chart(
    coin_id: str,
    days: int = Query(default=7, ge=1, le=365, description="Number of days of history"),
    provider: MarketDataProvider = Depends(get_market_data_provider),
):
    """Get price history as [timestamp ms, price] points, oldest first."""
    return await provider.get_coin_price_history(coin_id, days=days)


@app.get("/watchlist", response_model=WatchlistResponse)
async def get_watchlist(watchlist: WatchlistService = Depends(get_watchlist_service)):
    return watchlist.get_watchlist()


@app.post("/watchlist", response_model=WatchlistResponse)
async def add_to_watchlist(coin: Coin, watchlist: WatchlistService = Depends(get_watchlist_service)):
    return watchlist.add_to_favorites(coin)


@app.post("/watchlist/toggle", response_model=ToggleFavoriteResponse)
async def toggle_watchlist(coin: Coin, watchlist: WatchlistService = Depends(get_watchlist_service)):
    return watchlist.toggle_favorite(coin)


@app.delete("/watchlist/{coin_id}", response_model=RemoveWatchlistItemResponse)
async def remove_from_watchlist(coin_id: str, watchlist: WatchlistService = Depends(get_watchlist_service)):
    return watchlist.remove_from_favorites(coin_id)


@app.get("/settings/theme", response_model=ThemeResponse)
async def get_theme(watchlist: WatchlistService = Depends(get_watchlist_service)):
    return ThemeResponse(theme=watchlist.get_theme())


@app.put("/settings/theme", response_model=ThemeResponse)
async def set_theme(request: SetThemeRequest, watchlist: WatchlistService = Depends(get_watchlist_service)):
    return ThemeResponse(theme=watchlist.set_theme(request.theme))


@app.post("/settings/theme/toggle", response_model=ThemeResponse)
async def toggle_theme(watchlist: WatchlistService = Depends(get_watchlist_service)):
    return ThemeResponse(theme=watchlist.toggle_theme())
