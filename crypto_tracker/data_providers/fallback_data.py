"""
Static fallback data served when CoinGecko rate limits us.
Only used after the retry budget is spent on a 429.
"""
import random
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from crypto_tracker.models import ChartPoint, Coin

DAY_MS = 24 * 60 * 60 * 1000
FALLBACK_CHART_BASE_PRICE = Decimal("45000")  # Bitcoin base price
FALLBACK_CHART_VARIATION = 0.05  # +/- 5%


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_fallback_coins() -> List[Coin]:
    """Return a fresh copy of the bundled coins, ranked by market cap."""
    last_updated = _now_iso()
    return [
        Coin(
            id="bitcoin",
            symbol="btc",
            name="Bitcoin",
            image="https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
            current_price=Decimal("45000"),
            market_cap=Decimal("850000000000"),
            market_cap_rank=1,
            fully_diluted_valuation=Decimal("850000000000"),
            total_volume=Decimal("25000000000"),
            high_24h=Decimal("46000"),
            low_24h=Decimal("44000"),
            price_change_24h=Decimal("1000"),
            price_change_percentage_24h=Decimal("2.27"),
            market_cap_change_24h=Decimal("20000000000"),
            market_cap_change_percentage_24h=Decimal("2.41"),
            circulating_supply=Decimal("19500000"),
            total_supply=Decimal("21000000"),
            max_supply=Decimal("21000000"),
            ath=Decimal("69000"),
            ath_change_percentage=Decimal("-34.78"),
            ath_date="2021-11-10T14:24:11.849Z",
            atl=Decimal("67.81"),
            atl_change_percentage=Decimal("66263.62"),
            atl_date="2013-07-06T00:00:00.000Z",
            last_updated=last_updated,
            price_change_percentage_1h_in_currency=Decimal("0.5"),
            price_change_percentage_7d_in_currency=Decimal("5.2"),
        ),
        Coin(
            id="ethereum",
            symbol="eth",
            name="Ethereum",
            image="https://assets.coingecko.com/coins/images/279/large/ethereum.png",
            current_price=Decimal("2800"),
            market_cap=Decimal("350000000000"),
            market_cap_rank=2,
            fully_diluted_valuation=Decimal("350000000000"),
            total_volume=Decimal("15000000000"),
            high_24h=Decimal("2850"),
            low_24h=Decimal("2750"),
            price_change_24h=Decimal("50"),
            price_change_percentage_24h=Decimal("1.82"),
            market_cap_change_24h=Decimal("6000000000"),
            market_cap_change_percentage_24h=Decimal("1.74"),
            circulating_supply=Decimal("120000000"),
            total_supply=Decimal("120000000"),
            max_supply=None,
            ath=Decimal("4800"),
            ath_change_percentage=Decimal("-41.67"),
            ath_date="2021-11-10T14:24:11.849Z",
            atl=Decimal("0.432979"),
            atl_change_percentage=Decimal("646165.12"),
            atl_date="2015-10-20T00:00:00.000Z",
            last_updated=last_updated,
            price_change_percentage_1h_in_currency=Decimal("0.3"),
            price_change_percentage_7d_in_currency=Decimal("3.8"),
        ),
        Coin(
            id="binancecoin",
            symbol="bnb",
            name="BNB",
            image="https://assets.coingecko.com/coins/images/825/large/bnb-icon2_2x.png",
            current_price=Decimal("320"),
            market_cap=Decimal("50000000000"),
            market_cap_rank=3,
            fully_diluted_valuation=Decimal("50000000000"),
            total_volume=Decimal("2000000000"),
            high_24h=Decimal("325"),
            low_24h=Decimal("315"),
            price_change_24h=Decimal("5"),
            price_change_percentage_24h=Decimal("1.59"),
            market_cap_change_24h=Decimal("800000000"),
            market_cap_change_percentage_24h=Decimal("1.62"),
            circulating_supply=Decimal("155000000"),
            total_supply=Decimal("155000000"),
            max_supply=Decimal("200000000"),
            ath=Decimal("686"),
            ath_change_percentage=Decimal("-53.35"),
            ath_date="2021-05-10T07:24:17.097Z",
            atl=Decimal("0.0398177"),
            atl_change_percentage=Decimal("803900.12"),
            atl_date="2017-10-19T00:00:00.000Z",
            last_updated=last_updated,
            price_change_percentage_1h_in_currency=Decimal("0.2"),
            price_change_percentage_7d_in_currency=Decimal("2.1"),
        ),
    ]


def fallback_top_coins(page: int, per_page: int) -> List[Coin]:
    """First page only; the fallback set is too small to paginate."""
    if page > 1:
        return []
    return get_fallback_coins()[:per_page]


def find_fallback_coin(coin_id: str):
    """Look up a bundled coin by id, or None."""
    for coin in get_fallback_coins():
        if coin.id == coin_id:
            return coin
    return None


def search_fallback_coins(query: str) -> List[Coin]:
    """Case-insensitive substring match on name or symbol."""
    query_lower = query.lower()
    return [
        coin for coin in get_fallback_coins()
        if query_lower in coin.name.lower() or query_lower in coin.symbol.lower()
    ]


def generate_fallback_chart(days: int = 7, now_ms: int = None) -> List[ChartPoint]:
    """
    Generate a placeholder daily series of ``days + 1`` points ending now.

    Prices jitter around a fixed Bitcoin base price regardless of which coin
    was requested.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    points = []
    for i in range(days, -1, -1):
        variation = random.uniform(-FALLBACK_CHART_VARIATION, FALLBACK_CHART_VARIATION)
        price = FALLBACK_CHART_BASE_PRICE * Decimal(str(1 + variation))
        points.append(ChartPoint(timestamp=now_ms - i * DAY_MS, price=price))

    return points
