"""Short-lived cache of account lookups keyed by lower-cased name."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ReMove.models import Identity

logger = logging.getLogger(__name__)

DEFAULT_TTL = 5 * 60


@dataclass(frozen=True)
class CacheEntry:
    key: str
    result: Identity | None  # None records "account not found"
    fetched_at: float


class ValidationCache:
    """Maps normalized account names to lookup outcomes for ``ttl`` seconds.

    Positive and negative results expire alike. Expired entries are
    dropped lazily whenever the cache is touched. Lookups may run on
    worker threads, so every access holds ``_lock``.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def normalize(name: str) -> str:
        return name.strip().lower()

    def get(self, name: str) -> CacheEntry | None:
        with self._lock:
            self._evict(self._clock())
            entry = self._entries.get(self.normalize(name))
        if entry is not None:
            logger.debug("Validation cache hit for %s", entry.key)
        return entry

    def put(self, name: str, result: Identity | None) -> CacheEntry:
        key = self.normalize(name)
        with self._lock:
            now = self._clock()
            self._evict(now)
            entry = CacheEntry(key=key, result=result, fetched_at=now)
            self._entries[key] = entry
        return entry

    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed."""
        with self._lock:
            return self._evict(self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict(self, now: float) -> int:
        # Caller holds _lock.
        expired = [
            key
            for key, entry in self._entries.items()
            if now - entry.fetched_at > self.ttl
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)
