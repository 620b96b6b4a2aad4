# src/coinfolio/infrastructure/cache/typed_cache.py
"""
One category's live store: a key -> CacheEntry mapping behind a lock, with
lazy expiry on read, a sweep for the background evictor, and a whole-file
snapshot after every mutation.

Nothing in here raises to the caller. Bad input is logged and ignored, I/O
failures are logged and leave the in-memory state authoritative.
"""

import logging
import threading
import time
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from coinfolio.domain.entities import CacheEntry, CategorySummary
from coinfolio.domain.value_objects import CacheKey
from .persistence import CacheFile
from .policy import CategoryPolicy
from .stats import CacheStatsRecorder

log = logging.getLogger(__name__)

V = TypeVar("V")
Clock = Callable[[], int]


def system_clock() -> int:
    """Wall-clock epoch milliseconds."""
    return int(time.time() * 1000)


class TypedCache(Generic[V]):
    """TTL cache for a single category, safe to call from any thread."""

    def __init__(
        self,
        policy: CategoryPolicy,
        cache_file: Optional[CacheFile] = None,
        stats: Optional[CacheStatsRecorder] = None,
        clock: Optional[Clock] = None,
    ):
        self.policy = policy
        self.cache_file = cache_file
        self.stats = stats or CacheStatsRecorder()
        self._clock = clock or system_clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._save_lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.policy.name

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def key_for(self, identifier: str) -> Optional[str]:
        try:
            return CacheKey(identifier, self.policy.category).value
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------
    def get(self, identifier: str) -> Optional[V]:
        """Return the live value or None. Counts a hit or a miss; drops a stale entry."""
        key = self.key_for(identifier)
        if key is None:
            return None
        try:
            now = self._clock()
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and entry.is_expired(self.policy.ttl_ms, now):
                    del self._entries[key]
                    log.info("%s cache expired for %s (age: %s)", self.policy.description, identifier, entry.formatted_age(now))
                    entry = None
                    expired = True
                else:
                    expired = False
            if entry is None:
                self.stats.record_miss(self.name)
                if not expired:
                    log.debug("%s cache miss for %s", self.policy.description, identifier)
                return None
            self.stats.record_hit(self.name)
            log.debug("%s cache hit for %s (cached %s)", self.policy.description, identifier, entry.formatted_age(now))
            return entry.value
        except Exception as e:
            log.error("%s cache lookup failed for %s: %s", self.policy.description, identifier, e)
            return None

    def peek(self, identifier: str) -> Optional[CacheEntry]:
        """The stored entry, expired or not, without touching the counters."""
        key = self.key_for(identifier)
        if key is None:
            return None
        with self._lock:
            return self._entries.get(key)

    def contains(self, identifier: str) -> bool:
        entry = self.peek(identifier)
        return entry is not None and not entry.is_expired(self.policy.ttl_ms, self._clock())

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------
    def put(self, identifier: str, value: V) -> bool:
        """Store `value` (last write wins) and snapshot the category. False if rejected."""
        key = self.key_for(identifier)
        if key is None:
            log.warning("Cannot cache %s without a key", self.policy.description.lower())
            return False
        try:
            if not self.policy.validator(value):
                log.warning("Rejected invalid %s value for %s: %r", self.policy.description.lower(), identifier, value)
                return False
            entry = CacheEntry(value=value, created_at_ms=self._clock(), source_key=identifier.strip())
            with self._lock:
                self._entries[key] = entry
            log.debug("Cached %s for %s", self.policy.description.lower(), identifier)
            self.save()
            return True
        except Exception as e:
            log.error("Failed to cache %s for %s: %s", self.policy.description.lower(), identifier, e)
            return False

    def clear(self, identifier: str) -> bool:
        """Drop one key. Saves only when something was removed."""
        key = self.key_for(identifier)
        if key is None:
            return False
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is None:
            log.debug("No %s cache to clear for %s", self.policy.description.lower(), identifier)
            return False
        log.info("Manually cleared %s cache for %s", self.policy.description.lower(), identifier)
        self.save()
        return True

    def clear_all(self) -> int:
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
        log.info("Cleared all cached %s entries (%d entries)", self.policy.description.lower(), size)
        self.save()
        return size

    def remove_if_expired(self, key: str) -> bool:
        """Atomic check-then-remove on a normalized key."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(self.policy.ttl_ms, now):
                del self._entries[key]
                return True
        return False

    def evict_expired(self) -> int:
        """Remove every stale entry; snapshot if anything went."""
        with self._lock:
            keys = list(self._entries.keys())
        removed = sum(1 for key in keys if self.remove_if_expired(key))
        if removed:
            log.info("Cleaned up %d expired %s cache entries", removed, self.policy.description.lower())
            self.save()
        return removed

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> int:
        """
        Replace the in-memory map with the on-disk snapshot minus expired
        entries. If anything was discarded the filtered set is written back.
        Returns the number of live entries loaded.
        """
        if self.cache_file is None:
            return 0
        try:
            loaded = self.cache_file.load()
        except Exception as e:
            log.warning("Failed to load %s cache: %s - starting with empty cache", self.name, e)
            loaded = {}
        now = self._clock()
        valid = {k: e for k, e in loaded.items() if not e.is_expired(self.policy.ttl_ms, now)}
        expired_count = len(loaded) - len(valid)
        with self._lock:
            self._entries = valid
        log.info(
            "Loaded %s cache from disk: %d valid entries, %d expired entries discarded",
            self.name, len(valid), expired_count,
        )
        if expired_count > 0:
            self.save()
        return len(valid)

    def save(self) -> bool:
        if self.cache_file is None:
            return False
        # Snapshot and write in one step so the newest state is written last.
        with self._save_lock:
            return self.cache_file.save(self.snapshot(), self._clock())

    def snapshot(self) -> Dict[str, CacheEntry]:
        with self._lock:
            return dict(self._entries)

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------
    def info(self, identifier: str) -> str:
        if self.key_for(identifier) is None:
            return "No cache info available"
        entry = self.peek(identifier)
        if entry is None:
            return "No cached data"
        now = self._clock()
        if entry.is_expired(self.policy.ttl_ms, now):
            return f"Cache expired ({entry.formatted_age(now)})"
        return f"Cached {entry.formatted_age(now)}"

    def summary(self) -> CategorySummary:
        now = self._clock()
        entries: List[CacheEntry] = list(self.snapshot().values())
        if not entries:
            return CategorySummary()
        ages = [e.age_minutes(now) for e in entries]
        return CategorySummary(
            total_entries=len(entries),
            expired_entries=sum(1 for e in entries if e.is_expired(self.policy.ttl_ms, now)),
            oldest_entry_age_minutes=max(ages),
            newest_entry_age_minutes=min(ages),
        )
