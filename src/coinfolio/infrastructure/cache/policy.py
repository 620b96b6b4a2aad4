# src/coinfolio/infrastructure/cache/policy.py
"""
Per-category cache policy: TTL, on-disk location, value type and validity.

Volatile data (price) lives for minutes, semi-stable data (volume, market
data, OHLC) for longer, generated text for half a day.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from coinfolio.domain.entities import CacheCategory, MarketDataResult, PricePoint

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS

PRICE_TTL_MS = 2 * MINUTE_MS
VOLUME_TTL_MS = 5 * MINUTE_MS
MARKET_DATA_TTL_MS = 15 * MINUTE_MS
OHLC_TTL_MS = 30 * MINUTE_MS
AI_TEXT_TTL_MS = 12 * HOUR_MS

COINGECKO_SUBDIR = "coingecko"


def is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def is_non_blank_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_market_data(value: Any) -> bool:
    if not isinstance(value, MarketDataResult):
        return False
    fields = (value.market_cap_usd, value.price_change_7d, value.price_change_24h)
    return all(
        not isinstance(f, bool) and isinstance(f, (int, float)) and math.isfinite(f)
        for f in fields
    )


def is_non_empty_ohlc(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(isinstance(p, PricePoint) for p in value)


@dataclass(frozen=True)
class CategoryPolicy:
    category: CacheCategory
    ttl_ms: int
    file_name: str
    value_type: Any
    validator: Callable[[Any], bool]
    description: str

    @property
    def name(self) -> str:
        return self.category.value

    @property
    def ttl_hours(self) -> float:
        return self.ttl_ms / HOUR_MS


DEFAULT_POLICIES: Dict[CacheCategory, CategoryPolicy] = {
    CacheCategory.PRICE: CategoryPolicy(
        category=CacheCategory.PRICE,
        ttl_ms=PRICE_TTL_MS,
        file_name=f"{COINGECKO_SUBDIR}/price_cache.json",
        value_type=float,
        validator=is_positive_number,
        description="Price",
    ),
    CacheCategory.VOLUME: CategoryPolicy(
        category=CacheCategory.VOLUME,
        ttl_ms=VOLUME_TTL_MS,
        file_name=f"{COINGECKO_SUBDIR}/volume_cache.json",
        value_type=float,
        validator=is_positive_number,
        description="Volume",
    ),
    CacheCategory.MARKET_DATA: CategoryPolicy(
        category=CacheCategory.MARKET_DATA,
        ttl_ms=MARKET_DATA_TTL_MS,
        file_name=f"{COINGECKO_SUBDIR}/market_cache.json",
        value_type=MarketDataResult,
        validator=is_market_data,
        description="Market data",
    ),
    CacheCategory.OHLC: CategoryPolicy(
        category=CacheCategory.OHLC,
        ttl_ms=OHLC_TTL_MS,
        file_name=f"{COINGECKO_SUBDIR}/ohlc_cache.json",
        value_type=List[PricePoint],
        validator=is_non_empty_ohlc,
        description="OHLC",
    ),
    CacheCategory.AI_ADVICE: CategoryPolicy(
        category=CacheCategory.AI_ADVICE,
        ttl_ms=AI_TEXT_TTL_MS,
        file_name="ai_simple_advice.json",
        value_type=str,
        validator=is_non_blank_text,
        description="AI advice",
    ),
    CacheCategory.AI_ANALYSIS: CategoryPolicy(
        category=CacheCategory.AI_ANALYSIS,
        ttl_ms=AI_TEXT_TTL_MS,
        file_name="ai_responses.json",
        value_type=str,
        validator=is_non_blank_text,
        description="AI analysis",
    ),
}

MARKET_CATEGORIES = (
    CacheCategory.PRICE,
    CacheCategory.VOLUME,
    CacheCategory.MARKET_DATA,
    CacheCategory.OHLC,
)
AI_CATEGORIES = (CacheCategory.AI_ADVICE, CacheCategory.AI_ANALYSIS)
