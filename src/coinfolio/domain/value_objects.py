# src/coinfolio/domain/value_objects.py
"""
Value objects for the cache domain.

Key normalization rules:
- The identifier (a coin id such as "bitcoin" or a symbol such as "ETH") is
  trimmed and lower-cased, so "ETH", " eth " and "Eth" share one entry.
- A category discriminator is appended ("bitcoin" -> "bitcoin_price"), which
  keeps keys unique even if two categories were ever stored side by side.
"""
from __future__ import annotations

from dataclasses import dataclass

from .entities import CacheCategory

_CATEGORY_SUFFIX = {
    CacheCategory.PRICE: "_price",
    CacheCategory.VOLUME: "_volume",
    CacheCategory.MARKET_DATA: "_market",
    CacheCategory.OHLC: "_ohlc",
    CacheCategory.AI_ADVICE: "_simple_advice",
    CacheCategory.AI_ANALYSIS: "_detailed_analysis",
}


@dataclass(frozen=True)
class CacheKey:
    """A normalized cache key. Immutable."""
    identifier: str
    category: CacheCategory

    def __post_init__(self) -> None:
        if not isinstance(self.identifier, str) or not self.identifier.strip():
            raise ValueError("Cache key identifier must be a non-empty string.")
        object.__setattr__(self, "identifier", self.identifier.strip().lower())

    @property
    def value(self) -> str:
        return f"{self.identifier}{_CATEGORY_SUFFIX[self.category]}"

    def __str__(self) -> str:
        return self.value
