"""Bucket creation against a shared counter store."""

from datetime import timedelta
from typing import Optional, Union

from leakybucket.core.config import Settings
from leakybucket.core.logging import get_log_context, get_logger
from leakybucket.storage.base import StoreClient
from leakybucket.storage.factory import create_store

from .bucket import Bucket, remaining_for, store_deadline, utcnow

logger = get_logger(__name__)


def _as_timedelta(rate: Union[timedelta, int, float]) -> timedelta:
    if isinstance(rate, timedelta):
        return rate
    return timedelta(seconds=rate)


class BucketFactory:
    """Creates buckets whose counters live in a shared store.

    The factory holds nothing but its store reference and options, so one
    instance can be shared freely. Buckets created from it are not
    thread-safe (see Bucket).

    Args:
        store: Counter store; owned by the caller, who must close it.
        key_prefix: Prepended to bucket names to form store keys.
        atomic: Check and consume in one store-side script instead of a
            read followed by an increment.
        default_timeout: Deadline in seconds for calls that pass none.

    Example:
        >>> factory = BucketFactory(RedisStore.from_url("redis://localhost"))
        >>> bucket = await factory.create("api:alice", 10, timedelta(seconds=1))
        >>> state = await bucket.add(1)
    """

    def __init__(
        self,
        store: StoreClient,
        key_prefix: str = "",
        atomic: bool = False,
        default_timeout: Optional[float] = None,
    ) -> None:
        self._store = store
        self._key_prefix = key_prefix
        self._atomic = atomic
        self._default_timeout = default_timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BucketFactory":
        """Build a factory and its store from configuration."""
        if settings is None:
            from leakybucket.core import config

            settings = config.settings
        return cls(
            create_store(settings),
            key_prefix=settings.key_prefix,
            atomic=settings.atomic_consume,
            default_timeout=settings.default_timeout,
        )

    @property
    def store(self) -> StoreClient:
        return self._store

    def make_key(self, name: str) -> str:
        return f"{self._key_prefix}{name}"

    async def create(
        self,
        name: str,
        capacity: int,
        rate: Union[timedelta, int, float],
        timeout: Optional[float] = None,
    ) -> Bucket:
        """Create a bucket, attaching to any counter already in the store.

        Nothing is written to the store; the window starts with the first
        successful add.

        Args:
            name: Identifier the bucket limits
            capacity: Units admissible per window
            rate: Window length, as a timedelta or seconds
            timeout: Deadline in seconds for the store calls

        Raises:
            StoreError: the store failed to answer.
        """
        rate = _as_timedelta(rate)
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        if rate <= timedelta(0):
            raise ValueError("rate must be positive")
        if timeout is None:
            timeout = self._default_timeout

        key = self.make_key(name)
        async with store_deadline(timeout):
            count = await self._store.get_counter(key)
            if count is None:
                remaining = capacity
                reset = utcnow() + rate
            else:
                ttl = await self._store.get_ttl(key)
                remaining = remaining_for(capacity, count)
                reset = utcnow() + (ttl or timedelta(0))

        logger.debug(
            f"Created bucket {name}: {remaining}/{capacity} remaining, "
            f"{'existing' if count is not None else 'new'} counter",
            extra=get_log_context(
                bucket=name, capacity=capacity, remaining=remaining, store_key=key
            ),
        )
        return Bucket(
            name=name,
            capacity=capacity,
            rate=rate,
            remaining=remaining,
            reset=reset,
            store=self._store,
            key=key,
            atomic=self._atomic,
            default_timeout=self._default_timeout,
        )

    async def close(self) -> None:
        """Close the underlying store."""
        await self._store.close()
