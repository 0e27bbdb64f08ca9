"""Distributed fixed-window quota buckets backed by Redis."""

from leakybucket.bucket import Bucket, BucketFactory, BucketState
from leakybucket.exceptions import (
    BucketFullError,
    LeakyBucketException,
    StoreError,
    StoreTimeoutError,
)
from leakybucket.storage import InMemoryStore, RedisStore, StoreClient, create_store

__all__ = [
    "Bucket",
    "BucketFactory",
    "BucketState",
    "BucketFullError",
    "LeakyBucketException",
    "StoreError",
    "StoreTimeoutError",
    "StoreClient",
    "InMemoryStore",
    "RedisStore",
    "create_store",
]
