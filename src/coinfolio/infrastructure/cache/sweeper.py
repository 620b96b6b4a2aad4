# src/coinfolio/infrastructure/cache/sweeper.py
import logging
import threading
from typing import Callable, Optional, Sequence

from .typed_cache import TypedCache

log = logging.getLogger(__name__)


class CacheSweeper:
    """
    Periodic eviction for one cache subsystem.
    Runs on its own daemon thread so it never keeps the process alive and
    never waits on request threads beyond each category's short lock.
    """

    def __init__(
        self,
        name: str,
        caches: Sequence[TypedCache],
        interval_seconds: float,
        on_sweep: Optional[Callable[[str, int], None]] = None,
    ):
        self.name = name
        self.caches = list(caches)
        self.interval_seconds = interval_seconds
        self._on_sweep = on_sweep
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            log.warning("Cache sweeper '%s' already running.", self.name)
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"{self.name}-cache-cleanup", daemon=True)
        self._thread.start()
        log.info("Cache sweeper '%s' started (every %.0fs)", self.name, self.interval_seconds)

    def _run(self) -> None:
        # First sweep after one full interval, like a fixed-rate schedule.
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()

    def run_once(self) -> int:
        """Sweep every cache once. Returns the total number of entries removed."""
        total = 0
        for cache in self.caches:
            try:
                removed = cache.evict_expired()
            except Exception:
                log.exception("Error during %s cache cleanup", cache.name)
                continue
            total += removed
            if self._on_sweep is not None:
                try:
                    self._on_sweep(cache.name, removed)
                except Exception as e:
                    log.debug("Sweep callback failed for %s: %s", cache.name, e)
        if total:
            log.info("Sweeper '%s' removed %d expired entries", self.name, total)
        return total

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Signal the thread and wait at most `timeout` seconds. True if it exited."""
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return True
        if thread is not threading.current_thread():
            thread.join(timeout)
        stopped = not thread.is_alive()
        if stopped:
            self._thread = None
            log.info("Cache sweeper '%s' stopped", self.name)
        else:
            log.warning("Cache sweeper '%s' did not stop within %.1fs, abandoning it", self.name, timeout or 0.0)
        return stopped
