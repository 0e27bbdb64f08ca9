"""Fixed-window bucket backed by a shared counter store.

The store holds the authoritative counter for each bucket name, with an
expiry equal to the window length. A Bucket only caches a view of that
counter, refreshed on every add.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Optional

from leakybucket.core.logging import get_log_context, get_logger
from leakybucket.exceptions import BucketFullError, StoreError, StoreTimeoutError
from leakybucket.storage.base import StoreClient

from .models import BucketState

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def remaining_for(capacity: int, count: int) -> int:
    """Units left under capacity for a raw store count.

    The store counter can exceed capacity when concurrent adds race, so it
    is clipped here rather than at the store.
    """
    return capacity - min(capacity, max(count, 0))


@asynccontextmanager
async def store_deadline(timeout: Optional[float]) -> AsyncIterator[None]:
    """Bound the enclosed store calls by timeout seconds (None = no limit)."""
    try:
        async with asyncio.timeout(timeout):
            yield
    except TimeoutError as e:
        raise StoreTimeoutError(
            f"Store operation exceeded its {timeout}s deadline"
        ) from e


class Bucket:
    """Quota for one identifier over a fixed window.

    Not safe for concurrent use by several tasks: the cached fields are
    plain attributes and add() spans several store round trips. Separate
    Bucket objects for the same name, in this or other processes, are fine.

    Buckets are normally obtained from BucketFactory.create().
    """

    def __init__(
        self,
        name: str,
        capacity: int,
        rate: timedelta,
        remaining: int,
        reset: datetime,
        store: StoreClient,
        key: Optional[str] = None,
        atomic: bool = False,
        default_timeout: Optional[float] = None,
    ) -> None:
        self._name = name
        self._capacity = capacity
        self._rate = rate
        self._remaining = remaining
        self._reset = reset
        self._store = store
        self._key = key if key is not None else name
        self._atomic = atomic
        self._default_timeout = default_timeout

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> str:
        """Store key holding this bucket's counter."""
        return self._key

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def rate(self) -> timedelta:
        """Window length."""
        return self._rate

    @property
    def remaining(self) -> int:
        """Remaining units as of the last create or add."""
        return self._remaining

    @property
    def reset(self) -> datetime:
        """When the bucket is expected to be drained."""
        return self._reset

    @property
    def state(self) -> BucketState:
        return BucketState(
            capacity=self._capacity, remaining=self._remaining, reset=self._reset
        )

    def __repr__(self) -> str:
        return (
            f"Bucket(name={self._name!r}, capacity={self._capacity}, "
            f"remaining={self._remaining}, reset={self._reset.isoformat()})"
        )

    async def _refresh_reset(self, deadline: Optional[float] = None) -> None:
        """Re-read the window end from the store once the cached one has passed.

        Store errors and an elapsed deadline are logged and dropped; reset
        keeps its old value.

        Args:
            deadline: Event loop time after which the lookup is abandoned
        """
        if self._reset > utcnow():
            return
        try:
            async with asyncio.timeout_at(deadline):
                ttl = await self._store.get_ttl(self._key)
        except (StoreError, TimeoutError) as e:
            logger.debug(
                f"Reset refresh failed for bucket {self._name}: {e!r}",
                extra=get_log_context(
                    bucket=self._name, command=getattr(e, "command", "PTTL")
                ),
            )
            return
        # A missing key or one without expiry has no pending window
        self._reset = utcnow() + (ttl or timedelta(0))

    async def add(self, amount: int, timeout: Optional[float] = None) -> BucketState:
        """Consume amount units from the bucket.

        The deadline covers the read and the consumption. Whatever is left
        of it bounds the reset refresh, which never fails the add.

        Args:
            amount: Units to consume, must not be negative
            timeout: Deadline in seconds for the whole operation; defaults
                to the factory's default_timeout

        Returns:
            The bucket state after consumption.

        Raises:
            BucketFullError: amount exceeds the remaining units; nothing
                was consumed.
            StoreError: the store failed; StoreTimeoutError when the
                deadline elapsed before the consumption committed.
        """
        if amount < 0:
            raise ValueError("amount must not be negative")
        if timeout is None:
            timeout = self._default_timeout
        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout

        async with store_deadline(timeout):
            if self._atomic:
                admitted = await self._consume_atomic(amount)
            else:
                admitted = await self._consume(amount)

        await self._refresh_reset(deadline)

        if not admitted:
            self._log_full(amount)
            raise BucketFullError(self.state)
        self._log_accepted(amount)
        return self.state

    async def _consume(self, amount: int) -> bool:
        count = await self._store.get_counter(self._key)
        self._remaining = remaining_for(self._capacity, count or 0)

        if amount > self._remaining:
            return False

        # Another caller may increment between the read above and this call
        total = await self._store.increment_by(self._key, amount)
        self._remaining = remaining_for(self._capacity, total)
        if total == amount:
            # This add created the counter, so the window starts now
            await self._store.set_expiry(self._key, self._rate)
        return True

    async def _consume_atomic(self, amount: int) -> bool:
        admitted, count = await self._store.consume_if_room(
            self._key, amount, self._capacity, self._rate
        )
        self._remaining = remaining_for(self._capacity, count)
        return admitted

    def _log_accepted(self, amount: int) -> None:
        logger.debug(
            f"Bucket {self._name} accepted {amount}: "
            f"{self._remaining}/{self._capacity} remaining",
            extra=get_log_context(
                bucket=self._name,
                amount=amount,
                capacity=self._capacity,
                remaining=self._remaining,
            ),
        )

    def _log_full(self, amount: int) -> None:
        logger.debug(
            f"Bucket {self._name} full: requested {amount}, "
            f"{self._remaining}/{self._capacity} remaining",
            extra=get_log_context(
                bucket=self._name,
                amount=amount,
                capacity=self._capacity,
                remaining=self._remaining,
            ),
        )
