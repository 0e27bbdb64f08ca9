"""In-process counter store.

Follows the same command contract as RedisStore so buckets behave the same
against either backend. Data is not shared between processes and is lost
when the process exits.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from leakybucket.storage.base import StoreClient


@dataclass
class _CounterEntry:
    """Internal counter entry with expiry tracking."""

    value: int = 0
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        if self.expires_at is None:
            return False
        return now >= self.expires_at


class InMemoryStore(StoreClient):
    """In-memory counter store with TTL support.

    Args:
        clock: Monotonic clock in seconds, replaceable in tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._data: dict[str, _CounterEntry] = {}
        self._clock = clock
        self._lock = asyncio.Lock()

    def _live_entry(self, key: str) -> _CounterEntry | None:
        """Return the entry for key, dropping it first if it has expired.

        Must be called with the lock held.
        """
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._data[key]
            return None
        return entry

    def _increment(self, key: str, amount: int) -> int:
        entry = self._live_entry(key)
        if entry is None:
            entry = self._data[key] = _CounterEntry()
        entry.value += amount
        return entry.value

    async def get_counter(self, key: str) -> int | None:
        async with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry is not None else None

    async def increment_by(self, key: str, amount: int) -> int:
        async with self._lock:
            return self._increment(key, amount)

    async def set_expiry(self, key: str, duration: timedelta) -> bool:
        async with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False
            entry.expires_at = self._clock() + duration.total_seconds()
            return True

    async def get_ttl(self, key: str) -> timedelta | None:
        async with self._lock:
            entry = self._live_entry(key)
            if entry is None or entry.expires_at is None:
                return None
            return timedelta(seconds=max(0.0, entry.expires_at - self._clock()))

    async def consume_if_room(
        self, key: str, amount: int, capacity: int, expiry: timedelta
    ) -> tuple[bool, int]:
        async with self._lock:
            entry = self._live_entry(key)
            current = entry.value if entry is not None else 0
            if amount > capacity - min(current, capacity):
                return False, current
            total = self._increment(key, amount)
            if total == amount:
                self._data[key].expires_at = self._clock() + expiry.total_seconds()
            return True, total

    async def cleanup_expired(self) -> int:
        """Remove all expired counters.

        Returns:
            Number of counters removed.
        """
        async with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, entry in self._data.items() if entry.is_expired(now)
            ]
            for key in expired_keys:
                del self._data[key]
            return len(expired_keys)
