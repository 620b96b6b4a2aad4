import json
import threading

import pytest

from coinfolio.domain.entities import CacheCategory, MarketDataResult, PricePoint
from coinfolio.infrastructure.cache import AiResponseCache, CoinGeckoApiCache
from coinfolio.infrastructure.cache.persistence import FILE_FORMAT_VERSION, CacheFile
from coinfolio.infrastructure.cache.policy import DEFAULT_POLICIES


def _price_file(cache_dir):
    return cache_dir / "coingecko" / "price_cache.json"


def _read(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def test_put_writes_category_file(manager, cache_dir):
    CoinGeckoApiCache(manager).cache_price("bitcoin", 65000.0)
    document = _read(_price_file(cache_dir))
    assert document["format"] == FILE_FORMAT_VERSION
    assert document["category"] == "price"
    assert document["entries"]["bitcoin_price"]["value"] == 65000.0
    assert document["entries"]["bitcoin_price"]["source_key"] == "bitcoin"


def test_no_temp_files_left_behind(manager, cache_dir):
    market = CoinGeckoApiCache(manager)
    for i in range(5):
        market.cache_price(f"coin{i}", float(i + 1))
    leftovers = [p.name for p in (cache_dir / "coingecko").iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_round_trip_into_fresh_manager(make_manager, clock):
    first = make_manager().open()
    market = CoinGeckoApiCache(first)
    ai = AiResponseCache(first)
    candles = [PricePoint(timestamp=1, open=1.0, high=2.0, low=0.5, close=1.5, volume=10.0)]
    market.cache_price("bitcoin", 65000.0)
    market.cache_volume("bitcoin", 1.2e10)
    market.cache_market_data("bitcoin", 1.3e12, -2.5, 0.7)
    market.cache_ohlc_data("bitcoin", candles)
    ai.cache_response("ETH", "Long form analysis")
    ai.cache_simple_advice("ETH", "Buy The Dip")
    first.close()

    second = make_manager().open()
    market2 = CoinGeckoApiCache(second)
    ai2 = AiResponseCache(second)
    assert market2.get_cached_price("bitcoin") == 65000.0
    assert market2.get_cached_volume("bitcoin") == 1.2e10
    assert market2.get_cached_market_data("bitcoin") == MarketDataResult(1.3e12, -2.5, 0.7)
    assert market2.get_cached_ohlc_data("bitcoin") == candles
    assert ai2.get_cached_response("eth") == "Long form analysis"
    assert ai2.get_cached_simple_advice("eth") == "Buy The Dip"


def test_entries_expired_between_save_and_load_are_dropped_and_file_rewritten(make_manager, clock, cache_dir):
    first = make_manager().open()
    market = CoinGeckoApiCache(first)
    market.cache_price("bitcoin", 65000.0)
    market.cache_volume("bitcoin", 5.0)
    first.close()

    clock.advance(minutes=3)
    second = make_manager().open()
    market2 = CoinGeckoApiCache(second)
    assert market2.get_cached_price("bitcoin") is None
    assert market2.get_cached_volume("bitcoin") == 5.0
    assert _read(_price_file(cache_dir))["entries"] == {}


@pytest.mark.parametrize("garbage", [b"\x00\x01\x02garbage", b"{not json", b"", "été".encode("latin-1")])
def test_corrupt_file_starts_empty(make_manager, cache_dir, garbage):
    path = _price_file(cache_dir)
    path.parent.mkdir(parents=True)
    path.write_bytes(garbage)

    manager = make_manager().open()
    assert len(manager.cache(CacheCategory.PRICE)) == 0
    # The cache keeps working and overwrites the bad file on the next put.
    assert CoinGeckoApiCache(manager).cache_price("bitcoin", 1.0)
    assert _read(path)["entries"]["bitcoin_price"]["value"] == 1.0


def test_corrupt_file_does_not_affect_other_categories(make_manager, cache_dir):
    first = make_manager().open()
    CoinGeckoApiCache(first).cache_volume("bitcoin", 10.0)
    AiResponseCache(first).cache_response("BTC", "analysis")
    first.close()

    _price_file(cache_dir).write_bytes(b"garbage")
    second = make_manager().open()
    assert CoinGeckoApiCache(second).get_cached_volume("bitcoin") == 10.0
    assert AiResponseCache(second).get_cached_response("btc") == "analysis"


def test_unknown_format_version_starts_empty(make_manager, cache_dir, clock):
    path = _price_file(cache_dir)
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({
        "format": FILE_FORMAT_VERSION + 1,
        "category": "price",
        "entries": {"bitcoin_price": {"value": 1.0, "created_at_ms": clock(), "source_key": "bitcoin"}},
    }))
    manager = make_manager().open()
    assert len(manager.cache(CacheCategory.PRICE)) == 0


def test_undecodable_entries_are_skipped(make_manager, cache_dir, clock):
    path = _price_file(cache_dir)
    path.parent.mkdir(parents=True)
    now = clock()
    path.write_text(json.dumps({
        "format": FILE_FORMAT_VERSION,
        "category": "price",
        "saved_at_ms": now,
        "entries": {
            "bitcoin_price": {"value": 65000.0, "created_at_ms": now, "source_key": "bitcoin"},
            "ethereum_price": {"value": "not a number", "created_at_ms": now},
            "solana_price": {"value": -3.0, "created_at_ms": now},
            "ripple_price": {"value": 0.5},
            "dogecoin_price": "just a string",
        },
    }))
    manager = make_manager().open()
    cache = manager.cache(CacheCategory.PRICE)
    assert len(cache) == 1
    assert cache.get("bitcoin") == 65000.0


def test_file_for_another_category_is_ignored(tmp_path, clock):
    path = tmp_path / "volume_cache.json"
    path.write_text(json.dumps({
        "format": FILE_FORMAT_VERSION,
        "category": "price",
        "entries": {"bitcoin_volume": {"value": 1.0, "created_at_ms": clock()}},
    }))
    assert CacheFile(path, DEFAULT_POLICIES[CacheCategory.VOLUME]).load() == {}


def test_save_failure_is_swallowed_and_memory_stays_authoritative(manager, cache_dir):
    path = _price_file(cache_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.mkdir()  # a directory where the file should be makes os.replace fail

    market = CoinGeckoApiCache(manager)
    assert market.cache_price("bitcoin", 65000.0) is True
    assert market.get_cached_price("bitcoin") == 65000.0
    assert manager.cache(CacheCategory.PRICE).save() is False


def test_missing_file_loads_empty(tmp_path):
    cache_file = CacheFile(tmp_path / "nope" / "price_cache.json", DEFAULT_POLICIES[CacheCategory.PRICE])
    assert cache_file.load() == {}


def test_concurrent_puts_all_reach_the_file(manager, cache_dir):
    price = manager.cache(CacheCategory.PRICE)
    n_threads, per_thread = 8, 10

    def writer(thread_no: int):
        for i in range(per_thread):
            price.put(f"coin-{thread_no}-{i}", float(i + 1))

    threads = [threading.Thread(target=writer, args=(t,)) for t in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    entries = _read(_price_file(cache_dir))["entries"]
    assert len(entries) == n_threads * per_thread
    assert set(entries) == {f"coin-{t}-{i}_price" for t in range(n_threads) for i in range(per_thread)}
