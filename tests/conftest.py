# tests/conftest.py
"""
Fixtures and test setup for the Pytest suite.
Every cache here lives in a per-test temporary directory and runs on a fake
clock, so expiry is driven explicitly instead of by sleeping.
"""

import os

import pytest

# Set test environment variables BEFORE any application code is imported.
os.environ["ENV"] = "test"
os.environ["LOG_DIR"] = ""

from coinfolio.config import Settings
from coinfolio.infrastructure.cache import AiResponseCache, CacheManager, CoinGeckoApiCache

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = START_MS):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, *, ms: int = 0, seconds: float = 0, minutes: float = 0, hours: float = 0) -> None:
        self.now_ms += int(ms + seconds * 1000 + minutes * 60_000 + hours * 3_600_000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def settings(cache_dir) -> Settings:
    return Settings(
        ENV="test",
        CACHE_DIR=str(cache_dir),
        LOG_DIR=None,
        MARKET_CACHE_SWEEP_SECONDS=3600,
        AI_CACHE_SWEEP_SECONDS=3600,
        SHUTDOWN_TIMEOUT_SECONDS=2.0,
        COINGECKO_REQUEST_INTERVAL=0.0,
    )


@pytest.fixture
def make_manager(settings, clock):
    """Factory for managers sharing the same directory, as a 'fresh process' would."""
    created = []

    def _make(**overrides) -> CacheManager:
        manager = CacheManager(overrides.pop("settings", settings), clock=overrides.pop("clock", clock))
        created.append(manager)
        return manager

    yield _make
    for manager in created:
        manager.close()


@pytest.fixture
def manager(make_manager) -> CacheManager:
    return make_manager().open()


@pytest.fixture
def market_cache(manager) -> CoinGeckoApiCache:
    return CoinGeckoApiCache(manager)


@pytest.fixture
def ai_cache(manager) -> AiResponseCache:
    return AiResponseCache(manager)
