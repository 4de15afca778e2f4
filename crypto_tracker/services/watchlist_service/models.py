"""
Pydantic models for Watchlist Service.
"""
from enum import Enum
from typing import List

from pydantic import BaseModel

from crypto_tracker.models import Coin


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class PersistedState(BaseModel):
    """The document written to the key-value store."""
    favorites: List[Coin] = []
    theme: Theme = Theme.DARK


class WatchlistResponse(BaseModel):
    """Response model for the favorites list."""
    items: List[Coin]
    total_count: int


class RemoveWatchlistItemResponse(BaseModel):
    """Response model for removing a watchlist item."""
    success: bool
    message: str


class ToggleFavoriteResponse(BaseModel):
    coin_id: str
    is_favorite: bool


class ThemeResponse(BaseModel):
    theme: Theme


class SetThemeRequest(BaseModel):
    theme: Theme
