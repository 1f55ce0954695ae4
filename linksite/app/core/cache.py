"""Bounded in-memory counter cache with per-entry expiry.

Backs the rate limiter: each bucket owns one cache mapping a client key to
the number of requests seen in the current window.
"""

from collections import OrderedDict
from dataclasses import dataclass
import threading
import time
from typing import Callable


@dataclass
class _CacheEntry:
    """Internal cache entry with TTL tracking."""

    value: int
    stored_at: float

    def is_expired(self, now: float, ttl: float) -> bool:
        """Check if the entry is older than the TTL."""
        return now - self.stored_at > ttl


class ExpiringLRUCache:
    """Key to counter mapping with a fixed TTL and LRU eviction.

    Entries older than ``ttl`` seconds are treated as absent and dropped on
    access. When an insert pushes the size past ``max_entries`` the least
    recently used entry is evicted. Writing a key resets its age to zero.

    All operations take an internal lock, so the cache can be shared by
    handlers running in FastAPI's threadpool.

    Note: This cache is not distributed and data is lost when the
    application restarts.
    """

    def __init__(
        self,
        max_entries: int,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            max_entries: Maximum number of keys held at once.
            ttl: Time-to-live in seconds, measured from the last write.
            clock: Monotonic time source, replaceable in tests.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock
        self._data: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def _lookup(self, key: str, now: float) -> _CacheEntry | None:
        # Caller holds the lock.
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.is_expired(now, self.ttl):
            del self._data[key]
            return None
        self._data.move_to_end(key)
        return entry

    def _store(self, key: str, value: int, now: float) -> None:
        # Caller holds the lock.
        self._data[key] = _CacheEntry(value=value, stored_at=now)
        self._data.move_to_end(key)
        while len(self._data) > self.max_entries:
            self._data.popitem(last=False)

    def get(self, key: str) -> int | None:
        """Return the stored count, or None if never set or expired."""
        with self._lock:
            entry = self._lookup(key, self._clock())
            return None if entry is None else entry.value

    def set(self, key: str, value: int) -> None:
        """Store or overwrite a count and reset its age to zero."""
        with self._lock:
            self._store(key, value, self._clock())

    def increment_below(self, key: str, limit: int) -> int | None:
        """Increment the count for ``key`` unless it already reached ``limit``.

        Read, compare and write happen under one lock acquisition so
        concurrent callers cannot lose updates. An absent or expired entry
        counts as zero.

        Returns:
            The new count, or None when the stored count is already at or
            above ``limit`` (nothing is written in that case).
        """
        with self._lock:
            now = self._clock()
            entry = self._lookup(key, now)
            current = 0 if entry is None else entry.value
            if current >= limit:
                return None
            self._store(key, current + 1, now)
            return current + 1

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        """Clear all entries from the cache."""
        with self._lock:
            self._data.clear()

    def cleanup_expired(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, entry in self._data.items()
                if entry.is_expired(now, self.ttl)
            ]
            for key in expired_keys:
                del self._data[key]
            return len(expired_keys)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            entry = self._data.get(key)
            return entry is not None and not entry.is_expired(self._clock(), self.ttl)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
