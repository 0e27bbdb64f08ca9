"""Redis-backed counter store.

Maps the StoreClient contract onto GET / INCRBY / PEXPIRE / PTTL, plus an
EVAL script for atomic consumption. Replies are converted to Python types
here so callers never inspect raw Redis values.
"""

from datetime import timedelta
from typing import Any, Awaitable, Callable

from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from leakybucket.core.logging import get_logger
from leakybucket.exceptions import StoreError, StoreTimeoutError
from leakybucket.storage.base import StoreClient
from leakybucket.storage.redis_lua import CONSUME_IF_ROOM_SCRIPT

logger = get_logger(__name__)


def _to_milliseconds(duration: timedelta) -> int:
    # PEXPIRE 0 deletes the key, so never round a positive window down to zero
    return max(1, int(duration.total_seconds() * 1000))


def _parse_int(command: str, key: str, value: Any) -> int:
    """Convert a Redis reply to int, raising StoreError on malformed data."""
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise StoreError(
            f"Unexpected {command} reply for {key!r}: {value!r}",
            command=command,
            key=key,
        ) from e


class RedisStore(StoreClient):
    """Redis implementation of the counter store.

    The client is injected and owned by whoever built this store; use
    from_url() to have the store create one.

    Example:
        >>> store = RedisStore.from_url("redis://localhost:6379/0")
        >>> await store.increment_by("api:alice", 1)
    """

    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str, **kwargs: Any) -> "RedisStore":
        """Create a store with a new redis.asyncio client.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
            **kwargs: Passed through to redis.asyncio.from_url
        """
        import redis.asyncio as aioredis

        logger.info(f"Creating Redis store for {redis_url}")
        return cls(aioredis.from_url(redis_url, **kwargs))

    @property
    def _client(self) -> Any:
        if self._redis is None:
            raise StoreError("store is closed")
        return self._redis

    async def _execute(
        self, command: str, key: str, method: Callable[..., Awaitable[Any]], *args: Any
    ) -> Any:
        """Run a single Redis call against key, translating client errors."""
        try:
            return await method(key, *args)
        except RedisTimeoutError as e:
            raise StoreTimeoutError(
                f"Redis {command} timed out for {key!r}: {e}", command=command, key=key
            ) from e
        except RedisError as e:
            raise StoreError(
                f"Redis {command} failed for {key!r}: {e}", command=command, key=key
            ) from e

    async def get_counter(self, key: str) -> int | None:
        value = await self._execute("GET", key, self._client.get)
        if value is None:
            return None
        return _parse_int("GET", key, value)

    async def increment_by(self, key: str, amount: int) -> int:
        value = await self._execute("INCRBY", key, self._client.incrby, amount)
        return _parse_int("INCRBY", key, value)

    async def set_expiry(self, key: str, duration: timedelta) -> bool:
        value = await self._execute(
            "PEXPIRE", key, self._client.pexpire, _to_milliseconds(duration)
        )
        return bool(_parse_int("PEXPIRE", key, value))

    async def get_ttl(self, key: str) -> timedelta | None:
        value = _parse_int("PTTL", key, await self._execute("PTTL", key, self._client.pttl))
        # -2: key missing, -1: key has no expiry
        if value < 0:
            return None
        return timedelta(milliseconds=value)

    async def _eval_consume(self, key: str, *args: Any) -> Any:
        return await self._client.eval(CONSUME_IF_ROOM_SCRIPT, 1, key, *args)

    async def consume_if_room(
        self, key: str, amount: int, capacity: int, expiry: timedelta
    ) -> tuple[bool, int]:
        result = await self._execute(
            "EVAL",
            key,
            self._eval_consume,
            capacity,  # ARGV[1]
            amount,  # ARGV[2]
            _to_milliseconds(expiry),  # ARGV[3]
        )
        if not isinstance(result, (list, tuple)) or len(result) != 2:
            raise StoreError(
                f"Unexpected EVAL reply for {key!r}: {result!r}", command="EVAL", key=key
            )
        admitted = _parse_int("EVAL", key, result[0])
        count = _parse_int("EVAL", key, result[1])
        return bool(admitted), count

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            # Use aclose() for proper async cleanup in redis-py 5.0+
            await self._redis.aclose()
            self._redis = None
