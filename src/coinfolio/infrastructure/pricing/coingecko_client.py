# src/coinfolio/infrastructure/pricing/coingecko_client.py
# Rate-limited CoinGecko client. Caching is NOT done here: callers go through
# CoinGeckoApiCache first and only reach this client on a miss.

import logging
import asyncio
import time
import httpx
from typing import Any, List, Optional

from coinfolio.config import Settings, settings as default_settings
from coinfolio.domain.entities import MarketDataResult, PricePoint

log = logging.getLogger(__name__)


class CoinGeckoClient:
    """
    Thin async client for the public CoinGecko API.
    Every method returns None on any transport or HTTP failure.
    """

    def __init__(self, settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or default_settings
        self.base_url = self.settings.COINGECKO_BASE_URL.rstrip("/")
        self._request_interval = self.settings.COINGECKO_REQUEST_INTERVAL
        self._timeout = self.settings.COINGECKO_TIMEOUT
        self._http_client = http_client
        self._last_request_time = 0.0
        self._lock: Optional[asyncio.Lock] = None

    async def _wait_for_rate_limit(self):
        """Enforces a delay between requests."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            now = time.monotonic()
            time_since_last = now - self._last_request_time
            if time_since_last < self._request_interval:
                wait_time = self._request_interval - time_since_last
                log.debug("CoinGecko rate limit: waiting %.2fs", wait_time)
                await asyncio.sleep(wait_time)
            self._last_request_time = time.monotonic()

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Optional[Any]:
        await self._wait_for_rate_limit()
        url = f"{self.base_url}{path}"
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, params=params, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, params=params, timeout=self._timeout)

            if response.status_code == 429:
                log.warning("CoinGecko 429 (Too Many Requests) for %s. Backing off.", path)
                self._request_interval += 2.0
                return None

            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            log.error("CoinGecko HTTP error for %s: %s", path, e.response.status_code)
        except Exception as e:
            log.error("CoinGecko request failed for %s: %s", path, e)
        return None

    async def get_price(self, coin_id: str) -> Optional[float]:
        data = await self._get_json("/simple/price", {"ids": coin_id, "vs_currencies": "usd"})
        try:
            return float(data[coin_id]["usd"])
        except (TypeError, KeyError, ValueError):
            log.warning("Price for '%s' not found in CoinGecko.", coin_id)
            return None

    async def get_volume(self, coin_id: str) -> Optional[float]:
        data = await self._get_json(
            "/simple/price",
            {"ids": coin_id, "vs_currencies": "usd", "include_24hr_vol": "true"},
        )
        try:
            return float(data[coin_id]["usd_24h_vol"])
        except (TypeError, KeyError, ValueError):
            log.warning("24h volume for '%s' not found in CoinGecko.", coin_id)
            return None

    async def get_market_data(self, coin_id: str) -> Optional[MarketDataResult]:
        data = await self._get_json(
            "/coins/markets",
            {"vs_currency": "usd", "ids": coin_id, "price_change_percentage": "24h,7d"},
        )
        try:
            row = data[0]
            return MarketDataResult(
                market_cap_usd=float(row.get("market_cap") or 0.0),
                price_change_7d=float(row.get("price_change_percentage_7d_in_currency") or 0.0),
                price_change_24h=float(row.get("price_change_percentage_24h") or 0.0),
            )
        except (TypeError, KeyError, IndexError, ValueError, AttributeError):
            log.warning("Market data for '%s' not found in CoinGecko.", coin_id)
            return None

    async def get_ohlc(self, coin_id: str, days: int = 30) -> Optional[List[PricePoint]]:
        data = await self._get_json(f"/coins/{coin_id}/ohlc", {"vs_currency": "usd", "days": str(days)})
        if not isinstance(data, list):
            return None
        points: List[PricePoint] = []
        for row in data:
            try:
                ts, o, h, l, c = row[:5]
                points.append(PricePoint(timestamp=int(ts), open=float(o), high=float(h), low=float(l), close=float(c)))
            except (TypeError, ValueError):
                continue
        return points or None
