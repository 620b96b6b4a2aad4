# src/coinfolio/application/services/report_service.py
"""
Human-facing cache reporting for the status bar and the logs:
efficiency, entry counts, tuning hints and a rough savings estimate.
"""

import logging
from typing import List

from coinfolio.domain.entities import CacheStatistics
from coinfolio.infrastructure.cache.coingecko_cache import CoinGeckoApiCache
from coinfolio.infrastructure.cache.manager import CacheManager

log = logging.getLogger(__name__)

# Conservative per-call estimates for an avoided API request
AVG_RESPONSE_SIZE_KB = 2.0
AVG_RESPONSE_TIME_SECONDS = 1.5

WARMUP_REQUESTS = 10


class CacheReportService:
    def __init__(self, manager: CacheManager, market_cache: CoinGeckoApiCache) -> None:
        self.manager = manager
        self.market_cache = market_cache

    def _stats(self) -> CacheStatistics:
        return self.manager.statistics()

    def log_cache_statistics(self) -> None:
        stats = self._stats()
        log.info("=== Cache Statistics ===")
        log.info("Total Requests: %d", stats.total_requests)
        log.info("Cache Hits: %d (%.1f%%)", stats.total_hits, stats.hit_ratio * 100)
        log.info("Cache Misses: %d (%.1f%%)", stats.total_misses, stats.miss_ratio * 100)
        log.info("--- Cache Sizes ---")
        for name, size in stats.category_sizes.items():
            log.info("%s: %d entries", name, size)
        log.info("Total Cached Entries: %d", stats.total_entries)
        if stats.total_requests > 0:
            log.info("Estimated API calls avoided: %d", stats.total_hits)
            log.info("Estimated time saved: %.1f seconds", stats.total_hits * AVG_RESPONSE_TIME_SECONDS)

    def get_cache_efficiency(self) -> float:
        """Hit ratio as a percentage (0-100)."""
        return self._stats().hit_ratio * 100

    def get_total_cached_entries(self) -> int:
        return self._stats().total_entries

    def get_formatted_cache_stats(self) -> str:
        stats = self._stats()
        if stats.total_requests == 0:
            return "No cache activity yet"
        return (
            f"Cache Efficiency: {stats.hit_ratio * 100:.1f}% "
            f"({stats.total_hits} hits / {stats.total_requests} requests)"
            f" | Entries: {stats.total_entries}"
        )

    def get_cache_recommendations(self) -> List[str]:
        stats = self._stats()
        if stats.total_requests < WARMUP_REQUESTS:
            return ["Cache is warming up - more data needed for recommendations"]

        ratio = stats.hit_ratio
        pct = f"{ratio * 100:.1f}%"
        if ratio > 0.8:
            return [
                f"✅ Excellent cache performance! Hit ratio: {pct}",
                "Cache is effectively reducing API calls and improving performance",
            ]
        if ratio > 0.6:
            return [
                f"✅ Good cache performance. Hit ratio: {pct}",
                "Consider increasing cache TTL for less volatile data to improve hit ratio",
            ]
        if ratio > 0.4:
            return [
                f"⚠️ Moderate cache performance. Hit ratio: {pct}",
                "Consider reviewing cache TTL settings",
                "Check if data is being frequently invalidated unnecessarily",
            ]
        return [
            f"❌ Poor cache performance. Hit ratio: {pct}",
            "Review cache configuration and TTL settings",
            "Consider increasing cache duration for stable data",
            "Check for cache invalidation issues",
        ]

    def get_cache_savings_estimate(self) -> str:
        stats = self._stats()
        if stats.total_hits == 0:
            return "No cache hits yet - savings data not available"
        return (
            f"Estimated savings from {stats.total_hits} cache hits:\n"
            f"• Bandwidth: {stats.total_hits * AVG_RESPONSE_SIZE_KB:.1f} KB\n"
            f"• Time: {stats.total_hits * AVG_RESPONSE_TIME_SECONDS:.1f} seconds\n"
            f"• Reduced API load: {stats.total_hits} requests"
        )

    def clear_crypto_caches(self, crypto_id: str) -> bool:
        removed = self.market_cache.clear_all_caches(crypto_id)
        log.info("Cleared all caches for cryptocurrency: %s", crypto_id)
        return removed

    def clear_expired_caches(self) -> int:
        removed = self.manager.clear_expired()
        log.info("Cleared all expired cache entries (%d removed)", removed)
        return removed
