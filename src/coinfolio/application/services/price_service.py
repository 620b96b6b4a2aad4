# src/coinfolio/application/services/price_service.py
"""
Market data with cache-aside lookups.
Each getter checks CoinGeckoApiCache first, fetches from CoinGecko on a miss
and stores only successful results; a failed fetch is never cached.
"""
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar

from coinfolio.domain.entities import MarketDataResult, PricePoint
from coinfolio.infrastructure.cache.coingecko_cache import CoinGeckoApiCache
from coinfolio.infrastructure.pricing.coingecko_client import CoinGeckoClient

log = logging.getLogger(__name__)

T = TypeVar("T")

# Common symbol -> CoinGecko id fixes
_ID_MAP = {
    "btc": "bitcoin",
    "eth": "ethereum",
    "sol": "solana",
    "xrp": "ripple",
    "bnb": "binancecoin",
    "doge": "dogecoin",
}


@dataclass
class PriceService:
    cache: CoinGeckoApiCache
    client: CoinGeckoClient

    def _normalize_id(self, crypto_id: str) -> str:
        coin_id = (crypto_id or "").strip().lower()
        return _ID_MAP.get(coin_id, coin_id)

    async def _cached(
        self,
        crypto_id: str,
        force_refresh: bool,
        lookup: Callable[[str], Optional[T]],
        fetch: Callable[[str], Awaitable[Optional[T]]],
        store: Callable[[str, T], bool],
        label: str,
    ) -> Optional[T]:
        coin_id = self._normalize_id(crypto_id)
        if not coin_id:
            return None

        if not force_refresh:
            cached = lookup(coin_id)
            if cached is not None:
                return cached

        try:
            live = await fetch(coin_id)
        except Exception as e:
            log.error("CoinGecko %s fetch failed for %s: %s", label, coin_id, e)
            live = None

        if live is None:
            log.error("❌ Unable to fetch %s for %s", label, coin_id)
            return None
        store(coin_id, live)
        return live

    async def get_price(self, crypto_id: str, force_refresh: bool = False) -> Optional[float]:
        return await self._cached(
            crypto_id, force_refresh,
            self.cache.get_cached_price, self.client.get_price, self.cache.cache_price, "price",
        )

    async def get_volume(self, crypto_id: str, force_refresh: bool = False) -> Optional[float]:
        return await self._cached(
            crypto_id, force_refresh,
            self.cache.get_cached_volume, self.client.get_volume, self.cache.cache_volume, "volume",
        )

    async def get_market_data(self, crypto_id: str, force_refresh: bool = False) -> Optional[MarketDataResult]:
        def store(coin_id: str, result: MarketDataResult) -> bool:
            return self.cache.cache_market_data(
                coin_id, result.market_cap_usd, result.price_change_7d, result.price_change_24h
            )

        return await self._cached(
            crypto_id, force_refresh,
            self.cache.get_cached_market_data, self.client.get_market_data, store, "market data",
        )

    async def get_ohlc(self, crypto_id: str, force_refresh: bool = False) -> Optional[List[PricePoint]]:
        return await self._cached(
            crypto_id, force_refresh,
            self.cache.get_cached_ohlc_data, self.client.get_ohlc, self.cache.cache_ohlc_data, "OHLC",
        )

    def refresh(self, crypto_id: str) -> bool:
        """Manual refresh: drop every cached value for the coin so the next call refetches."""
        return self.cache.clear_all_caches(self._normalize_id(crypto_id))
