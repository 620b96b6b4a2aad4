# src/coinfolio/domain/__init__.py
from .entities import (
    CacheCategory,
    CacheEntry,
    CacheStatistics,
    CategorySummary,
    MarketDataResult,
    PricePoint,
)
from .value_objects import CacheKey

__all__ = [
    "CacheCategory",
    "CacheEntry",
    "CacheStatistics",
    "CategorySummary",
    "MarketDataResult",
    "PricePoint",
    "CacheKey",
]
