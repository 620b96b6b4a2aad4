# src/coinfolio/domain/entities.py
"""
Core cache entities. Everything here is pure data: no I/O, no locks, no clock.
Callers pass `now_ms` explicitly so expiry is deterministic under test.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE

# --- ENUMERATIONS ---

class CacheCategory(Enum):
    """An independent cache partition, one per kind of external data."""
    PRICE = "price"
    VOLUME = "volume"
    MARKET_DATA = "market_data"
    OHLC = "ohlc"
    AI_ADVICE = "ai_advice"
    AI_ANALYSIS = "ai_analysis"

# --- VALUES STORED IN THE CACHE ---

@dataclass(frozen=True)
class PricePoint:
    """One OHLC candle as returned by the market-data API."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class MarketDataResult:
    market_cap_usd: float
    price_change_7d: float
    price_change_24h: float

# --- ENTITIES ---

@dataclass(frozen=True)
class CacheEntry:
    """
    A cached value plus the moment it was created.
    The TTL is not part of the entry; it is supplied by the category policy at
    read time, so a policy change applies to entries already on disk.
    """
    value: Any
    created_at_ms: int
    source_key: str = ""

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.created_at_ms

    def is_expired(self, ttl_ms: int, now_ms: int) -> bool:
        return self.age_ms(now_ms) > ttl_ms

    def age_minutes(self, now_ms: int) -> int:
        return max(self.age_ms(now_ms), 0) // _MS_PER_MINUTE

    def formatted_age(self, now_ms: int) -> str:
        """Coarse, human-readable age for display only."""
        age = max(self.age_ms(now_ms), 0)
        if age < _MS_PER_MINUTE:
            return f"{age // _MS_PER_SECOND} seconds ago"
        if age < _MS_PER_HOUR:
            return f"{age // _MS_PER_MINUTE} minutes ago"
        return f"{age // _MS_PER_HOUR} hours ago"


@dataclass(frozen=True)
class CategorySummary:
    """Age-based snapshot of a single category."""
    total_entries: int = 0
    expired_entries: int = 0
    oldest_entry_age_minutes: int = 0
    newest_entry_age_minutes: int = 0

    def __str__(self) -> str:
        return (
            f"Cache Stats: {self.total_entries} total, {self.expired_entries} expired, "
            f"oldest: {self.oldest_entry_age_minutes} min, newest: {self.newest_entry_age_minutes} min"
        )


@dataclass(frozen=True)
class CacheStatistics:
    """Hit/miss counters for the life of the process plus current sizes."""
    total_requests: int = 0
    total_hits: int = 0
    total_misses: int = 0
    category_sizes: Dict[str, int] = field(default_factory=dict)

    @property
    def hit_ratio(self) -> float:
        return self.total_hits / self.total_requests if self.total_requests > 0 else 0.0

    @property
    def miss_ratio(self) -> float:
        return self.total_misses / self.total_requests if self.total_requests > 0 else 0.0

    @property
    def total_entries(self) -> int:
        return sum(self.category_sizes.values())

    def size_of(self, category: CacheCategory) -> int:
        return self.category_sizes.get(category.value, 0)
