# src/coinfolio/infrastructure/cache/__init__.py
from .manager import CacheManager
from .typed_cache import TypedCache, system_clock
from .coingecko_cache import CoinGeckoApiCache
from .ai_response_cache import AiResponseCache

__all__ = [
    "CacheManager",
    "TypedCache",
    "system_clock",
    "CoinGeckoApiCache",
    "AiResponseCache",
]
