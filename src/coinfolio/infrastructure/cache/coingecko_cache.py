# src/coinfolio/infrastructure/cache/coingecko_cache.py
"""
Market-data facade over the price, volume, market-data and OHLC categories.
Read-only cache-aside: callers check here first, fetch on a miss and put
the fresh value back. No method raises.
"""

import logging
from typing import List, Optional

from coinfolio.domain.entities import CacheCategory, CacheStatistics, MarketDataResult, PricePoint
from .manager import CacheManager
from .policy import MARKET_CATEGORIES

log = logging.getLogger(__name__)


class CoinGeckoApiCache:

    def __init__(self, manager: CacheManager):
        self.manager = manager
        self._price = manager.cache(CacheCategory.PRICE)
        self._volume = manager.cache(CacheCategory.VOLUME)
        self._market = manager.cache(CacheCategory.MARKET_DATA)
        self._ohlc = manager.cache(CacheCategory.OHLC)

    # --- Price ---
    def get_cached_price(self, crypto_id: str) -> Optional[float]:
        return self._price.get(crypto_id)

    def cache_price(self, crypto_id: str, price_usd: float) -> bool:
        return self._price.put(crypto_id, price_usd)

    # --- Volume ---
    def get_cached_volume(self, crypto_id: str) -> Optional[float]:
        return self._volume.get(crypto_id)

    def cache_volume(self, crypto_id: str, volume_usd: float) -> bool:
        return self._volume.put(crypto_id, volume_usd)

    # --- Market data ---
    def get_cached_market_data(self, crypto_id: str) -> Optional[MarketDataResult]:
        return self._market.get(crypto_id)

    def cache_market_data(
        self, crypto_id: str, market_cap_usd: float, price_change_7d: float, price_change_24h: float
    ) -> bool:
        try:
            result = MarketDataResult(
                market_cap_usd=float(market_cap_usd),
                price_change_7d=float(price_change_7d),
                price_change_24h=float(price_change_24h),
            )
        except (TypeError, ValueError) as e:
            log.warning("Rejected market data for %s: %s", crypto_id, e)
            return False
        return self._market.put(crypto_id, result)

    # --- OHLC ---
    def get_cached_ohlc_data(self, crypto_id: str) -> Optional[List[PricePoint]]:
        points = self._ohlc.get(crypto_id)
        if points is not None:
            log.debug("OHLC cache hit for %s (%d points)", crypto_id, len(points))
        return points

    def cache_ohlc_data(self, crypto_id: str, ohlc_data: List[PricePoint]) -> bool:
        stored = self._ohlc.put(crypto_id, ohlc_data)
        if stored:
            log.info("Cached OHLC data for %s: %d price points", crypto_id, len(ohlc_data))
        return stored

    # --- Management ---
    def clear_all_caches(self, crypto_id: str) -> bool:
        """Manual refresh: forget everything held for one coin. True if anything was removed."""
        removed = False
        for category in MARKET_CATEGORIES:
            if self.manager.cache(category).clear(crypto_id):
                removed = True
        if removed:
            log.info("Manually cleared all caches for %s", crypto_id)
        return removed

    def clear_expired_entries(self) -> int:
        removed = 0
        for category in MARKET_CATEGORIES:
            try:
                removed += self.manager.cache(category).evict_expired()
            except Exception as e:
                log.error("Error clearing expired %s entries: %s", category.value, e)
        return removed

    def get_cache_info(self, category: CacheCategory, crypto_id: str) -> str:
        if category not in MARKET_CATEGORIES:
            return "No cache info available"
        return self.manager.cache(category).info(crypto_id)

    def get_cache_statistics(self) -> CacheStatistics:
        return self.manager.statistics()

    def get_cache_efficiency(self) -> float:
        """Hit ratio in [0, 1]."""
        return self.manager.statistics().hit_ratio
