"""
Main business logic service for Watchlist.
Favorites and the selected theme are kept in one JSON document in Redis,
restored on construction and written on every mutation.
"""
import logging
from typing import List, Optional

from pydantic import ValidationError

from crypto_tracker.config import settings
from crypto_tracker.models import Coin
from crypto_tracker.redis_client import get_redis
from .models import (
    PersistedState,
    RemoveWatchlistItemResponse,
    Theme,
    ToggleFavoriteResponse,
    WatchlistResponse,
)

logger = logging.getLogger(__name__)

_NOT_LOADED = object()


class WatchlistService:
    """Main service for favorites and theme."""

    def __init__(self, store=_NOT_LOADED, storage_key: Optional[str] = None):
        # store: anything with redis-style get(key) / set(key, value); None keeps state in memory
        self.store = get_redis() if store is _NOT_LOADED else store
        self.storage_key = storage_key or settings.STORAGE_KEY
        self.state = self._restore()

    def _restore(self) -> PersistedState:
        if self.store is None:
            logger.warning("⚠️ No key-value store available. Favorites will not survive a restart.")
            return PersistedState()

        raw = self.store.get(self.storage_key)
        if not raw:
            return PersistedState()

        try:
            return PersistedState.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Discarding unreadable persisted state under {self.storage_key}: {e}")
            return PersistedState()

    def _persist(self):
        if self.store is None:
            return
        self.store.set(self.storage_key, self.state.model_dump_json())

    def get_favorites(self) -> List[Coin]:
        return list(self.state.favorites)

    def get_watchlist(self) -> WatchlistResponse:
        """Get the complete favorites list."""
        items = self.get_favorites()
        return WatchlistResponse(items=items, total_count=len(items))

    def is_favorite(self, coin_id: str) -> bool:
        return any(fav.id == coin_id for fav in self.state.favorites)

    def add_to_favorites(self, coin: Coin) -> WatchlistResponse:
        """Add a coin; already-favorited ids are left untouched."""
        if not self.is_favorite(coin.id):
            self.state.favorites = [*self.state.favorites, coin]
            self._persist()
        return self.get_watchlist()

    def remove_from_favorites(self, coin_id: str) -> RemoveWatchlistItemResponse:
        """Remove a coin from favorites."""
        success = self.is_favorite(coin_id)
        if success:
            self.state.favorites = [fav for fav in self.state.favorites if fav.id != coin_id]
            self._persist()

        return RemoveWatchlistItemResponse(
            success=success,
            message="Item removed from watchlist" if success else "Item not found"
        )

    def toggle_favorite(self, coin: Coin) -> ToggleFavoriteResponse:
        if self.is_favorite(coin.id):
            self.remove_from_favorites(coin.id)
            return ToggleFavoriteResponse(coin_id=coin.id, is_favorite=False)

        self.add_to_favorites(coin)
        return ToggleFavoriteResponse(coin_id=coin.id, is_favorite=True)

    def get_theme(self) -> Theme:
        return self.state.theme

    def set_theme(self, theme: Theme) -> Theme:
        self.state.theme = Theme(theme)
        self._persist()
        return self.state.theme

    def toggle_theme(self) -> Theme:
        return self.set_theme(Theme.LIGHT if self.state.theme == Theme.DARK else Theme.DARK)
