"""
Pydantic models for market data.
Coin snapshots, chart points and the provenance wrapper returned by every
market data operation.
"""
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


class DataSource(str, Enum):
    """Where a result came from."""
    LIVE = "live"
    FALLBACK = "fallback"


class Coin(BaseModel):
    """Snapshot of a coin's market state at fetch time."""
    id: str = Field(..., min_length=1)
    symbol: str
    name: str
    image: str = ""
    current_price: Optional[Decimal] = None
    market_cap: Optional[Decimal] = None
    market_cap_rank: Optional[int] = None
    fully_diluted_valuation: Optional[Decimal] = None
    total_volume: Optional[Decimal] = None
    high_24h: Optional[Decimal] = None
    low_24h: Optional[Decimal] = None
    price_change_24h: Optional[Decimal] = None
    price_change_percentage_24h: Optional[Decimal] = None
    market_cap_change_24h: Optional[Decimal] = None
    market_cap_change_percentage_24h: Optional[Decimal] = None
    circulating_supply: Optional[Decimal] = None
    total_supply: Optional[Decimal] = None
    max_supply: Optional[Decimal] = None  # None means unbounded or unknown
    ath: Optional[Decimal] = None
    ath_change_percentage: Optional[Decimal] = None
    ath_date: Optional[str] = None
    atl: Optional[Decimal] = None
    atl_change_percentage: Optional[Decimal] = None
    atl_date: Optional[str] = None
    roi: Optional[Dict[str, Any]] = None
    last_updated: Optional[str] = None
    price_change_percentage_1h_in_currency: Optional[Decimal] = None
    price_change_percentage_7d_in_currency: Optional[Decimal] = None

    @field_validator("market_cap_rank")
    @classmethod
    def rank_is_positive(cls, v: Optional[int]) -> Optional[int]:
        """Unranked coins come back as null or 0."""
        if v is not None and v < 1:
            return None
        return v

    @classmethod
    def from_market_item(cls, item: Dict[str, Any]) -> "Coin":
        """Build a Coin from a /coins/markets entry."""
        return cls.model_validate(item)

    @classmethod
    def from_coin_detail(cls, payload: Dict[str, Any], vs_currency: str = "usd") -> "Coin":
        """
        Build a Coin from a /coins/{id} payload.

        The detail endpoint nests market figures under ``market_data`` and keys
        most of them by quote currency, so they are flattened here into the
        same shape the markets endpoint returns.
        """
        market = payload.get("market_data") or {}

        def in_currency(key: str):
            value = market.get(key)
            if isinstance(value, dict):
                return value.get(vs_currency)
            return value

        image = payload.get("image")
        if isinstance(image, dict):
            image = image.get("large") or image.get("small") or image.get("thumb") or ""

        return cls(
            id=payload.get("id", ""),
            symbol=payload.get("symbol", ""),
            name=payload.get("name", ""),
            image=image or "",
            current_price=in_currency("current_price"),
            market_cap=in_currency("market_cap"),
            market_cap_rank=payload.get("market_cap_rank", market.get("market_cap_rank")),
            fully_diluted_valuation=in_currency("fully_diluted_valuation"),
            total_volume=in_currency("total_volume"),
            high_24h=in_currency("high_24h"),
            low_24h=in_currency("low_24h"),
            price_change_24h=market.get("price_change_24h"),
            price_change_percentage_24h=market.get("price_change_percentage_24h"),
            market_cap_change_24h=market.get("market_cap_change_24h"),
            market_cap_change_percentage_24h=market.get("market_cap_change_percentage_24h"),
            circulating_supply=market.get("circulating_supply"),
            total_supply=market.get("total_supply"),
            max_supply=market.get("max_supply"),
            ath=in_currency("ath"),
            ath_change_percentage=in_currency("ath_change_percentage"),
            ath_date=in_currency("ath_date"),
            atl=in_currency("atl"),
            atl_change_percentage=in_currency("atl_change_percentage"),
            atl_date=in_currency("atl_date"),
            roi=market.get("roi"),
            last_updated=market.get("last_updated") or payload.get("last_updated"),
            price_change_percentage_1h_in_currency=in_currency("price_change_percentage_1h_in_currency"),
            price_change_percentage_7d_in_currency=in_currency("price_change_percentage_7d_in_currency"),
        )


class ChartPoint(BaseModel):
    """One historical price sample."""
    timestamp: int  # milliseconds since epoch
    price: Decimal


def build_chart_series(pairs: List[List[Any]]) -> List[ChartPoint]:
    """
    Convert [timestamp, price] pairs into an ascending, de-duplicated series.
    A later pair wins when two share a timestamp.

    Raises:
        ValueError: a pair's timestamp or price is not numeric
    """
    points: Dict[int, ChartPoint] = {}
    for pair in pairs:
        if not isinstance(pair, (list, tuple)) or len(pair) < 2 or pair[1] is None:
            continue
        try:
            timestamp = int(pair[0])
            price = Decimal(str(pair[1]))
        except (TypeError, OverflowError, InvalidOperation) as e:
            raise ValueError(f"Malformed market chart response: bad pair {pair!r}") from e
        if not price.is_finite():
            raise ValueError(f"Malformed market chart response: bad pair {pair!r}")
        points[timestamp] = ChartPoint(timestamp=timestamp, price=price)
    return [points[ts] for ts in sorted(points)]


class MarketResult(BaseModel, Generic[T]):
    """Operation result tagged with its provenance."""
    data: T
    source: DataSource = DataSource.LIVE

    @property
    def is_fallback(self) -> bool:
        return self.source == DataSource.FALLBACK
