import pytest
from unittest.mock import AsyncMock, MagicMock

from coinfolio.application.services import AiAdviceService, CacheReportService, PriceService
from coinfolio.application.services.ai_advice_service import UNAVAILABLE_MESSAGE, format_to_three_words
from coinfolio.domain.entities import MarketDataResult, PricePoint

# --- PriceService ---

@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.get_price = AsyncMock(return_value=65000.0)
    client.get_volume = AsyncMock(return_value=3.2e10)
    client.get_market_data = AsyncMock(return_value=MarketDataResult(1.3e12, 4.0, -1.0))
    client.get_ohlc = AsyncMock(return_value=[PricePoint(timestamp=1, open=1.0, high=2.0, low=0.5, close=1.5)])
    return client


@pytest.fixture
def price_service(market_cache, mock_client) -> PriceService:
    return PriceService(cache=market_cache, client=mock_client)


@pytest.mark.asyncio
async def test_price_is_fetched_once_then_served_from_cache(price_service, mock_client):
    assert await price_service.get_price("bitcoin") == 65000.0
    assert await price_service.get_price("Bitcoin") == 65000.0
    mock_client.get_price.assert_awaited_once_with("bitcoin")


@pytest.mark.asyncio
async def test_symbol_is_mapped_to_coin_id(price_service, mock_client, market_cache):
    await price_service.get_price("BTC")
    mock_client.get_price.assert_awaited_once_with("bitcoin")
    assert market_cache.get_cached_price("bitcoin") == 65000.0


@pytest.mark.asyncio
async def test_price_refetched_after_expiry(price_service, mock_client, clock):
    await price_service.get_price("bitcoin")
    clock.advance(minutes=2, seconds=1)
    await price_service.get_price("bitcoin")
    assert mock_client.get_price.await_count == 2


@pytest.mark.asyncio
async def test_force_refresh_bypasses_cache(price_service, mock_client):
    await price_service.get_price("bitcoin")
    mock_client.get_price.return_value = 66000.0
    assert await price_service.get_price("bitcoin", force_refresh=True) == 66000.0
    assert await price_service.get_price("bitcoin") == 66000.0


@pytest.mark.asyncio
async def test_failed_fetch_is_not_cached(price_service, mock_client, market_cache):
    mock_client.get_price.return_value = None
    assert await price_service.get_price("bitcoin") is None
    mock_client.get_price.side_effect = RuntimeError("boom")
    assert await price_service.get_price("bitcoin") is None
    assert market_cache.get_cached_price("bitcoin") is None


@pytest.mark.asyncio
async def test_empty_id_never_reaches_client(price_service, mock_client):
    assert await price_service.get_price("  ") is None
    mock_client.get_price.assert_not_awaited()


@pytest.mark.asyncio
async def test_other_market_data_getters_use_their_caches(price_service, mock_client, market_cache):
    assert await price_service.get_volume("ethereum") == 3.2e10
    assert await price_service.get_market_data("ethereum") == MarketDataResult(1.3e12, 4.0, -1.0)
    assert len(await price_service.get_ohlc("ethereum")) == 1
    await price_service.get_volume("ethereum")
    await price_service.get_market_data("ethereum")
    await price_service.get_ohlc("ethereum")
    mock_client.get_volume.assert_awaited_once()
    mock_client.get_market_data.assert_awaited_once()
    mock_client.get_ohlc.assert_awaited_once()
    assert market_cache.get_cached_market_data("ethereum") is not None


@pytest.mark.asyncio
async def test_refresh_clears_coin(price_service, mock_client):
    await price_service.get_price("ETH")
    assert price_service.refresh("ETH") is True
    await price_service.get_price("ETH")
    assert mock_client.get_price.await_count == 2

# --- AiAdviceService ---

@pytest.fixture
def generator() -> AsyncMock:
    return AsyncMock(return_value="buy the dip now please")


@pytest.fixture
def advice_service(ai_cache, generator) -> AiAdviceService:
    return AiAdviceService(ai_cache, generator, fallback=lambda symbol: "Hold And Wait")


def test_format_to_three_words():
    assert format_to_three_words("buy the dip, now!") == "Buy The Dip"
    assert format_to_three_words("  ") == ""


@pytest.mark.asyncio
async def test_advice_is_generated_once_and_cached(advice_service, generator, ai_cache):
    assert await advice_service.get_advice("ETH", "prompt") == "Buy The Dip"
    assert await advice_service.get_advice("eth", "prompt") == "Buy The Dip"
    generator.assert_awaited_once_with("prompt")
    assert ai_cache.get_cached_simple_advice("ETH") == "Buy The Dip"


@pytest.mark.asyncio
async def test_fallback_advice_is_not_cached(advice_service, generator, ai_cache):
    generator.side_effect = RuntimeError("rate limited")
    assert await advice_service.get_advice("BTC", "prompt") == "Hold And Wait"
    assert ai_cache.has_cached_simple_advice("BTC") is False


@pytest.mark.asyncio
async def test_empty_generation_uses_fallback(advice_service, generator, ai_cache):
    generator.return_value = ""
    assert await advice_service.get_advice("BTC", "prompt") == "Hold And Wait"
    assert ai_cache.has_cached_simple_advice("BTC") is False


@pytest.mark.asyncio
async def test_detailed_analysis_cached_and_force_refreshed(advice_service, generator, ai_cache):
    generator.return_value = "  Long analysis  "
    assert await advice_service.get_detailed_analysis("SOL", "p") == "Long analysis"
    assert await advice_service.get_detailed_analysis("sol", "p") == "Long analysis"
    assert generator.await_count == 1

    generator.return_value = "Fresh analysis"
    assert await advice_service.get_detailed_analysis("SOL", "p", force_refresh=True) == "Fresh analysis"
    assert ai_cache.get_cached_response("SOL") == "Fresh analysis"
    assert advice_service.cache_info("SOL") == "Cached 0 seconds ago"


@pytest.mark.asyncio
async def test_detailed_analysis_failures_are_not_cached(advice_service, generator, ai_cache):
    generator.return_value = "   "
    assert await advice_service.get_detailed_analysis("SOL", "p") == UNAVAILABLE_MESSAGE
    generator.side_effect = RuntimeError("timeout")
    assert (await advice_service.get_detailed_analysis("SOL", "p")).startswith("Error getting AI analysis")
    assert ai_cache.has_cached_response("SOL") is False

# --- CacheReportService ---

@pytest.fixture
def report_service(manager, market_cache) -> CacheReportService:
    return CacheReportService(manager, market_cache)


def test_report_without_activity(report_service):
    assert report_service.get_formatted_cache_stats() == "No cache activity yet"
    assert report_service.get_cache_savings_estimate() == "No cache hits yet - savings data not available"
    assert report_service.get_cache_recommendations() == ["Cache is warming up - more data needed for recommendations"]
    assert report_service.get_cache_efficiency() == 0.0


def test_formatted_stats_and_savings(report_service, market_cache):
    market_cache.cache_price("bitcoin", 1.0)
    for _ in range(3):
        market_cache.get_cached_price("bitcoin")
    market_cache.get_cached_price("ethereum")
    assert report_service.get_formatted_cache_stats() == "Cache Efficiency: 75.0% (3 hits / 4 requests) | Entries: 1"
    assert report_service.get_total_cached_entries() == 1
    assert report_service.get_cache_efficiency() == 75.0
    estimate = report_service.get_cache_savings_estimate()
    assert "Bandwidth: 6.0 KB" in estimate
    assert "Time: 4.5 seconds" in estimate
    assert "Reduced API load: 3 requests" in estimate
    report_service.log_cache_statistics()


@pytest.mark.parametrize("hits, expected_prefix", [
    (9, "✅ Excellent"),
    (7, "✅ Good"),
    (5, "⚠️ Moderate"),
    (2, "❌ Poor"),
])
def test_recommendations_follow_hit_ratio(report_service, market_cache, hits, expected_prefix):
    market_cache.cache_price("bitcoin", 1.0)
    for _ in range(hits):
        market_cache.get_cached_price("bitcoin")
    for _ in range(10 - hits):
        market_cache.get_cached_price("nothing-here")
    assert report_service.get_cache_recommendations()[0].startswith(expected_prefix)


def test_clear_helpers(report_service, market_cache, clock):
    market_cache.cache_price("bitcoin", 1.0)
    market_cache.cache_price("ethereum", 1.0)
    assert report_service.clear_crypto_caches("bitcoin") is True
    clock.advance(minutes=3)
    assert report_service.clear_expired_caches() == 1
    assert report_service.get_total_cached_entries() == 0
