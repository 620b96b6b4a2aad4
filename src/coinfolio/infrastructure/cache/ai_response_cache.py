# src/coinfolio/infrastructure/cache/ai_response_cache.py
"""
Cache for generated text, keyed by crypto symbol (case-insensitive).
Two categories: the long detailed analysis and the short three-word advice.
Both expire after 12 hours.
"""

import logging
from typing import Optional

from coinfolio.domain.entities import CacheCategory, CategorySummary
from .manager import CacheManager

log = logging.getLogger(__name__)


class AiResponseCache:

    def __init__(self, manager: CacheManager):
        self.manager = manager
        self._analysis = manager.cache(CacheCategory.AI_ANALYSIS)
        self._advice = manager.cache(CacheCategory.AI_ADVICE)

    # --- Detailed analysis ---
    def get_cached_response(self, crypto_symbol: str) -> Optional[str]:
        response = self._analysis.get(crypto_symbol)
        if response is not None:
            log.info("Using cached AI response for %s (%s)", crypto_symbol, self._analysis.info(crypto_symbol).lower())
        return response

    def cache_response(self, crypto_symbol: str, response: str) -> bool:
        stored = self._analysis.put(crypto_symbol, response)
        if stored:
            log.info("Cached AI response for %s (expires in %.0f hours)", crypto_symbol, self._analysis.policy.ttl_hours)
        return stored

    def has_cached_response(self, crypto_symbol: str) -> bool:
        return self._analysis.contains(crypto_symbol)

    def clear_cache(self, crypto_symbol: str) -> bool:
        return self._analysis.clear(crypto_symbol)

    def get_cache_info(self, crypto_symbol: str) -> str:
        return self._analysis.info(crypto_symbol)

    # --- Three-word advice ---
    def get_cached_simple_advice(self, crypto_symbol: str) -> Optional[str]:
        return self._advice.get(crypto_symbol)

    def cache_simple_advice(self, crypto_symbol: str, advice: str) -> bool:
        return self._advice.put(crypto_symbol, advice)

    def has_cached_simple_advice(self, crypto_symbol: str) -> bool:
        return self._advice.contains(crypto_symbol)

    def clear_simple_advice_cache(self, crypto_symbol: str) -> bool:
        return self._advice.clear(crypto_symbol)

    # --- Management ---
    def clear_all_cache(self) -> int:
        return self._analysis.clear_all() + self._advice.clear_all()

    def get_cache_stats(self) -> CategorySummary:
        """Age summary of the detailed-analysis category."""
        return self._analysis.summary()

    def get_simple_advice_stats(self) -> CategorySummary:
        return self._advice.summary()
