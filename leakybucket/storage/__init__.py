"""Counter stores that hold the authoritative bucket state."""

from .base import StoreClient
from .factory import create_store
from .memory import InMemoryStore
from .redis_lua import CONSUME_IF_ROOM_SCRIPT
from .redis_store import RedisStore

__all__ = [
    "StoreClient",
    "InMemoryStore",
    "RedisStore",
    "CONSUME_IF_ROOM_SCRIPT",
    "create_store",
]
