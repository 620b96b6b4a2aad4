# src/coinfolio/application/services/ai_advice_service.py
"""
Cache-aware front for generated advice.

The text generator (a generative-AI endpoint) and the rule-based fallback are
injected collaborators. Only generator output is cached; fallback output is
cheap to recompute and must not mask the AI answer for 12 hours.
"""

import logging
from typing import Awaitable, Callable, Optional

from coinfolio.infrastructure.cache.ai_response_cache import AiResponseCache

log = logging.getLogger(__name__)

TextGenerator = Callable[[str], Awaitable[Optional[str]]]
Fallback = Callable[[str], str]

UNAVAILABLE_MESSAGE = "AI analysis unavailable at the moment. Please try again."


def format_to_three_words(text: str) -> str:
    words = [w.strip(".,!?:;\"'") for w in (text or "").split()]
    words = [w for w in words if w]
    return " ".join(word.capitalize() for word in words[:3])


class AiAdviceService:

    def __init__(self, cache: AiResponseCache, generator: TextGenerator, fallback: Optional[Fallback] = None):
        self.cache = cache
        self.generator = generator
        self.fallback = fallback

    def _fallback(self, symbol: str) -> Optional[str]:
        if self.fallback is None:
            return None
        try:
            return self.fallback(symbol)
        except Exception as e:
            log.error("Rule-based advice failed for %s: %s", symbol, e)
            return None

    async def get_advice(self, symbol: str, prompt: str) -> Optional[str]:
        """Three-word advice: cache, then generator, then fallback."""
        cached = self.cache.get_cached_simple_advice(symbol)
        if cached is not None:
            log.info("Using cached AI advice for %s: %s", symbol, cached)
            return cached

        try:
            raw = await self.generator(prompt)
        except Exception as e:
            log.warning("AI API unavailable for %s, using rule-based advice: %s", symbol, e)
            return self._fallback(symbol)

        advice = format_to_three_words(raw or "")
        if not advice:
            log.warning("AI returned empty advice for %s", symbol)
            return self._fallback(symbol)

        self.cache.cache_simple_advice(symbol, advice)
        log.info("Successfully got and cached AI advice for %s: %s", symbol, advice)
        return advice

    async def get_detailed_analysis(self, symbol: str, prompt: str, force_refresh: bool = False) -> str:
        if force_refresh:
            self.cache.clear_cache(symbol)
        else:
            cached = self.cache.get_cached_response(symbol)
            if cached is not None:
                return cached

        try:
            analysis = await self.generator(prompt)
        except Exception as e:
            log.error("Error getting AI analysis for %s: %s", symbol, e)
            return f"Error getting AI analysis: {e}"

        if not analysis or not analysis.strip():
            log.warning("AI returned empty response for %s", symbol)
            return UNAVAILABLE_MESSAGE

        analysis = analysis.strip()
        self.cache.cache_response(symbol, analysis)
        return analysis

    def cache_info(self, symbol: str) -> str:
        return self.cache.get_cache_info(symbol)
