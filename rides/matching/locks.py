"""
Purpose: In-process exclusion regions keyed by an arbitrary string.
What it does:
lock(key) is a context manager; two threads holding the same key are
serialized, different keys run in parallel. Per-key locks are reference
counted and dropped once nobody holds or waits on them, so the table does
not grow with every address pair ever requested.

The same interface (lock(key) as a context manager) can be backed by a
distributed lock when several processes share one store.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, Iterator


@dataclass
class _KeyedEntry:
    lock: Lock = field(default_factory=Lock)
    holders: int = 0


class KeyedLockManager:
    def __init__(self):
        self._guard = Lock()
        self._entries: Dict[str, _KeyedEntry] = {}

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, _KeyedEntry())
            entry.holders += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]

    def active_keys(self) -> int:
        with self._guard:
            return len(self._entries)
