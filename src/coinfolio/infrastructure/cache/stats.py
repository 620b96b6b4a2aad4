# src/coinfolio/infrastructure/cache/stats.py
import logging
import threading
from typing import Dict, Optional, Tuple

from coinfolio.infrastructure.monitoring.cache_metrics import CacheMetrics

log = logging.getLogger(__name__)


class CacheStatsRecorder:
    """
    Request/hit/miss counters, totals and per category.
    Monotonic for the life of the recorder; never persisted.
    """

    def __init__(self, metrics: Optional[CacheMetrics] = None):
        self._lock = threading.Lock()
        self._requests = 0
        self._hits = 0
        self._misses = 0
        self._per_category: Dict[str, Tuple[int, int]] = {}
        self.metrics = metrics

    def record_hit(self, category: str) -> None:
        self._record(category, hit=True)

    def record_miss(self, category: str) -> None:
        self._record(category, hit=False)

    def _record(self, category: str, hit: bool) -> None:
        with self._lock:
            self._requests += 1
            hits, misses = self._per_category.get(category, (0, 0))
            if hit:
                self._hits += 1
                hits += 1
            else:
                self._misses += 1
                misses += 1
            self._per_category[category] = (hits, misses)
        if self.metrics is not None:
            try:
                self.metrics.record_lookup(category, hit)
            except Exception as e:
                log.debug("Metrics update failed for %s: %s", category, e)

    def totals(self) -> Tuple[int, int, int]:
        """(requests, hits, misses) read atomically."""
        with self._lock:
            return self._requests, self._hits, self._misses

    def category_counts(self, category: str) -> Tuple[int, int]:
        """(hits, misses) for one category."""
        with self._lock:
            return self._per_category.get(category, (0, 0))
