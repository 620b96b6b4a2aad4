# src/coinfolio/infrastructure/monitoring/cache_metrics.py
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class CacheMetrics:
    """
    Prometheus view of the cache counters.
    Each instance owns its registry so several managers (tests, tools) can
    coexist in one process without duplicate-collector errors.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self.requests = Counter(
            "coinfolio_cache_requests_total",
            "Cache lookups by category and result",
            ["category", "result"],
            registry=self.registry,
        )
        self.evictions = Counter(
            "coinfolio_cache_evictions_total",
            "Expired entries removed by category",
            ["category"],
            registry=self.registry,
        )
        self.entries = Gauge(
            "coinfolio_cache_entries",
            "Entries currently held by category",
            ["category"],
            registry=self.registry,
        )

    def record_lookup(self, category: str, hit: bool) -> None:
        self.requests.labels(category=category, result="hit" if hit else "miss").inc()

    def record_evictions(self, category: str, count: int) -> None:
        if count > 0:
            self.evictions.labels(category=category).inc(count)

    def set_entries(self, category: str, count: int) -> None:
        self.entries.labels(category=category).set(count)

    def render(self) -> bytes:
        return generate_latest(self.registry)
