"""
Purpose: Time-bounded caches for route and geocode lookups.
What it does:
- TtlCache: key -> value with a write timestamp. Entries are served while
  younger than the TTL. A writer may back-date an entry (age_fraction) so
  it expires sooner, which is how fallback estimates get re-validated.
- CacheSweeper: periodic eviction of expired entries across several caches.
  run_cycle() does one sweep (tests call it directly); start() runs it on a
  daemon thread every `interval_seconds`.

Both take an injectable clock (seconds, monotonic by default) so tests can
move time without sleeping.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Event, Lock, Thread
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, TypeVar
import logging
import time

logger = logging.getLogger(__name__)

V = TypeVar("V")
Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[V]):
    value: V
    written_at: float


class TtlCache(Generic[V]):
    def __init__(self, ttl_seconds: float, *, name: str = "cache", clock: Optional[Clock] = None):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self.ttl_seconds = ttl_seconds
        self.name = name
        self.clock = clock or time.monotonic
        self._entries: Dict[Hashable, CacheEntry[V]] = {}
        self._lock = Lock()

    def get(self, key: Hashable) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or self._is_expired(entry, self.clock()):
            return None
        return entry.value

    def set(self, key: Hashable, value: V, *, age_fraction: float = 0.0) -> None:
        """
        Store `value`. age_fraction=0.8 writes the entry as if it were already
        80% through its TTL.
        """
        if not 0.0 <= age_fraction < 1.0:
            raise ValueError("age_fraction must be in [0, 1)")
        written_at = self.clock() - self.ttl_seconds * age_fraction
        with self._lock:
            self._entries[key] = CacheEntry(value=value, written_at=written_at)

    def evict_expired(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def _is_expired(self, entry: CacheEntry[V], now: float) -> bool:
        return now - entry.written_at >= self.ttl_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CacheSweeper:
    """
    The periodic "heartbeat" that keeps caches bounded.
    """
    def __init__(self, caches: List[TtlCache[Any]], interval_seconds: float = 15 * 60):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.caches = caches
        self.interval_seconds = interval_seconds
        self._stop = Event()
        self._thread: Optional[Thread] = None

    def run_cycle(self) -> int:
        evicted = 0
        for cache in self.caches:
            removed = cache.evict_expired()
            if removed:
                logger.debug("swept %d expired entr%s from %s", removed, "y" if removed == 1 else "ies", cache.name)
            evicted += removed
        return evicted

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(target=self._loop, name="cache-sweeper", daemon=True)
        self._thread.start()
        logger.info("cache sweeper started (every %ss over %d cache(s))", self.interval_seconds, len(self.caches))

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        # Event.wait returns True once stop() is called
        while not self._stop.wait(self.interval_seconds):
            try:
                self.run_cycle()
            except Exception:
                logger.exception("cache sweep failed")
