# src/coinfolio/boot.py
"""
Wiring. The cache manager is built and opened once here and injected into
everything that caches; nothing else constructs one.
"""

import logging
from typing import Any, Dict, Optional

from coinfolio.config import Settings, settings as default_settings
from coinfolio.logging_conf import setup_logging
from coinfolio.application.services import AiAdviceService, CacheReportService, PriceService
from coinfolio.application.services.ai_advice_service import Fallback, TextGenerator
from coinfolio.infrastructure.cache import AiResponseCache, CacheManager, CoinGeckoApiCache
from coinfolio.infrastructure.pricing.coingecko_client import CoinGeckoClient

log = logging.getLogger(__name__)


def build_services(
    settings: Optional[Settings] = None,
    ai_generator: Optional[TextGenerator] = None,
    ai_fallback: Optional[Fallback] = None,
    install_shutdown_hook: bool = True,
) -> Dict[str, Any]:
    """Build, open and wire the cache manager and the services that use it."""
    settings = settings or default_settings
    setup_logging(settings)
    log.info("Building application services...")
    services: Dict[str, Any] = {}

    try:
        cache_manager = CacheManager(settings).open()
        if install_shutdown_hook:
            cache_manager.install_shutdown_hook()
        services["cache_manager"] = cache_manager

        market_cache = CoinGeckoApiCache(cache_manager)
        ai_cache = AiResponseCache(cache_manager)
        services["market_cache"] = market_cache
        services["ai_cache"] = ai_cache

        services["coingecko_client"] = CoinGeckoClient(settings)
        services["price_service"] = PriceService(cache=market_cache, client=services["coingecko_client"])
        services["report_service"] = CacheReportService(cache_manager, market_cache)
        if ai_generator is not None:
            services["ai_advice_service"] = AiAdviceService(ai_cache, ai_generator, ai_fallback)

        log.info("✅ All services built and wired successfully.")
        return services

    except Exception as e:
        log.critical(f"❌ Service building failed: {e}", exc_info=True)
        raise


def shutdown_services(services: Dict[str, Any]) -> None:
    """Flush caches now instead of waiting for interpreter exit."""
    manager = services.get("cache_manager")
    if manager is not None:
        manager.close()
