"""Shared fixtures for leakybucket tests."""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from leakybucket.bucket import BucketFactory
from leakybucket.storage import InMemoryStore, RedisStore


class FakeClock:
    """Manually advanced monotonic clock for InMemoryStore."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_redis():
    """Create a mock redis.asyncio client backed by dicts.

    ``data`` holds counters as strings and ``ttls`` holds absolute expiry
    times. GET yields to the event loop after reading, so concurrent adds
    can interleave between their read and their increment.
    """
    redis = MagicMock()
    redis.data = {}
    redis.ttls = {}

    def expire_if_due(key):
        if key in redis.ttls and redis.ttls[key] <= time.time():
            redis.data.pop(key, None)
            redis.ttls.pop(key, None)

    def set_counter(key, value, ttl_ms=None):
        redis.data[key] = str(value)
        if ttl_ms is not None:
            redis.ttls[key] = time.time() + ttl_ms / 1000
        else:
            redis.ttls.pop(key, None)

    def expire(key):
        redis.data.pop(key, None)
        redis.ttls.pop(key, None)

    async def mock_get(key):
        expire_if_due(key)
        value = redis.data.get(key)
        await asyncio.sleep(0)
        return value.encode() if value is not None else None

    async def mock_incrby(key, amount):
        expire_if_due(key)
        new_val = int(redis.data.get(key, "0")) + amount
        redis.data[key] = str(new_val)
        return new_val

    async def mock_pexpire(key, ms):
        expire_if_due(key)
        if key not in redis.data:
            return 0
        redis.ttls[key] = time.time() + ms / 1000
        return 1

    async def mock_pttl(key):
        expire_if_due(key)
        if key not in redis.data:
            return -2
        if key not in redis.ttls:
            return -1
        return int((redis.ttls[key] - time.time()) * 1000)

    async def mock_eval(script, num_keys, *args):
        """Simulate CONSUME_IF_ROOM_SCRIPT: KEYS[1], capacity, amount, expiry_ms."""
        key = args[0]
        capacity, amount, expiry_ms = (int(a) for a in args[1:4])
        expire_if_due(key)
        current = int(redis.data.get(key, "0"))
        if amount > capacity - min(current, capacity):
            return [0, current]
        total = current + amount
        redis.data[key] = str(total)
        if total == amount:
            redis.ttls[key] = time.time() + expiry_ms / 1000
        return [1, total]

    redis.get = AsyncMock(side_effect=mock_get)
    redis.incrby = AsyncMock(side_effect=mock_incrby)
    redis.pexpire = AsyncMock(side_effect=mock_pexpire)
    redis.pttl = AsyncMock(side_effect=mock_pttl)
    redis.eval = AsyncMock(side_effect=mock_eval)
    redis.aclose = AsyncMock()
    redis.set_counter = set_counter
    redis.expire = expire

    return redis


@pytest.fixture
def redis_store(mock_redis):
    return RedisStore(mock_redis)


@pytest.fixture
def factory(redis_store):
    return BucketFactory(redis_store)


@pytest.fixture
def atomic_factory(redis_store):
    return BucketFactory(redis_store, atomic=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return InMemoryStore(clock=clock)
