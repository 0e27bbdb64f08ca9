"""Fixed-window buckets over a shared counter store."""

from .bucket import Bucket
from .factory import BucketFactory
from .models import BucketState

__all__ = [
    "Bucket",
    "BucketFactory",
    "BucketState",
]
