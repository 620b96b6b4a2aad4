# src/coinfolio/infrastructure/cache/manager.py
"""
CacheManager - owns every category cache, their files, the statistics and
the background sweepers.

Built once at application start and handed to whatever needs caching:

    manager = CacheManager(settings)
    manager.open()
    manager.install_shutdown_hook()
    ...
    manager.close()
"""

import atexit
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from coinfolio.config import Settings, settings as default_settings
from coinfolio.domain.entities import CacheCategory, CacheStatistics, CategorySummary
from coinfolio.infrastructure.monitoring.cache_metrics import CacheMetrics
from .persistence import CacheFile
from .policy import AI_CATEGORIES, DEFAULT_POLICIES, MARKET_CATEGORIES, CategoryPolicy
from .stats import CacheStatsRecorder
from .sweeper import CacheSweeper
from .typed_cache import Clock, TypedCache, system_clock

log = logging.getLogger(__name__)


class CacheManager:

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        policies: Optional[Mapping[CacheCategory, CategoryPolicy]] = None,
    ):
        self.settings = settings or default_settings
        self.cache_dir = Path(self.settings.CACHE_DIR)
        self._clock = clock or system_clock
        self._policies = dict(policies or DEFAULT_POLICIES)
        self.metrics = CacheMetrics() if self.settings.METRICS_ENABLED else None
        self.stats = CacheStatsRecorder(metrics=self.metrics)

        self._caches: Dict[CacheCategory, TypedCache] = {}
        for category, policy in self._policies.items():
            self._caches[category] = TypedCache(
                policy,
                cache_file=CacheFile(self.cache_dir / policy.file_name, policy),
                stats=self.stats,
                clock=self._clock,
            )

        self.sweepers = [
            CacheSweeper(
                "market",
                self._select(MARKET_CATEGORIES),
                self.settings.MARKET_CACHE_SWEEP_SECONDS,
                on_sweep=self._after_sweep,
            ),
            CacheSweeper(
                "ai",
                self._select(AI_CATEGORIES),
                self.settings.AI_CACHE_SWEEP_SECONDS,
                on_sweep=self._after_sweep,
            ),
        ]

        self._state_lock = threading.Lock()
        self._opened = False
        self._closed = False
        self._hook_installed = False

    def _select(self, categories: Iterable[CacheCategory]):
        return [self._caches[c] for c in categories if c in self._caches]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    def open(self) -> "CacheManager":
        """Create the cache directory, load every category and start the sweepers."""
        with self._state_lock:
            if self._opened:
                return self
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                log.error("Failed to create cache directory %s: %s", self.cache_dir, e)
            for cache in self._caches.values():
                cache.load()
            self._refresh_gauges()
            for sweeper in self.sweepers:
                sweeper.start()
            self._opened = True
            self._closed = False
        log.info("✅ Cache manager opened at %s (%d categories)", self.cache_dir, len(self._caches))
        return self

    def close(self) -> None:
        """Stop the sweepers (bounded wait), flush every category, log final statistics."""
        with self._state_lock:
            if self._closed or not self._opened:
                return
            self._closed = True
            self._opened = False
        timeout = self.settings.SHUTDOWN_TIMEOUT_SECONDS
        for sweeper in self.sweepers:
            sweeper.stop(timeout=timeout)
        self.save_all()
        self.log_statistics()
        if self._hook_installed:
            atexit.unregister(self.close)
            self._hook_installed = False
        log.info("🛑 Cache manager closed")

    def install_shutdown_hook(self) -> None:
        """Flush on interpreter exit. Registered at most once."""
        with self._state_lock:
            if self._hook_installed:
                return
            atexit.register(self.close)
            self._hook_installed = True

    def __enter__(self) -> "CacheManager":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def cache(self, category: CacheCategory) -> TypedCache:
        return self._caches[category]

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------
    def save_all(self) -> None:
        for cache in self._caches.values():
            cache.save()

    def clear_expired(self) -> int:
        """Run every sweeper once, in the calling thread."""
        return sum(sweeper.run_once() for sweeper in self.sweepers)

    def _after_sweep(self, category: str, removed: int) -> None:
        if self.metrics is None:
            return
        self.metrics.record_evictions(category, removed)
        self.metrics.set_entries(category, len(self._caches[CacheCategory(category)]))

    def _refresh_gauges(self) -> None:
        if self.metrics is None:
            return
        for category, cache in self._caches.items():
            self.metrics.set_entries(category.value, len(cache))

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def statistics(self) -> CacheStatistics:
        requests, hits, misses = self.stats.totals()
        sizes = {category.value: len(cache) for category, cache in self._caches.items()}
        return CacheStatistics(
            total_requests=requests,
            total_hits=hits,
            total_misses=misses,
            category_sizes=sizes,
        )

    def summaries(self) -> Dict[str, CategorySummary]:
        return {category.value: cache.summary() for category, cache in self._caches.items()}

    def metrics_text(self) -> bytes:
        if self.metrics is None:
            return b""
        self._refresh_gauges()
        return self.metrics.render()

    def log_statistics(self) -> None:
        stats = self.statistics()
        sizes = ", ".join(f"{name}: {size}" for name, size in stats.category_sizes.items())
        log.info(
            "Cache Statistics - Requests: %d, Hits: %d (%.1f%%), Misses: %d (%.1f%%), %s entries",
            stats.total_requests, stats.total_hits, stats.hit_ratio * 100,
            stats.total_misses, stats.miss_ratio * 100, sizes,
        )
