"""Store construction from configuration."""

from leakybucket.core.config import Settings
from leakybucket.core.logging import get_logger
from leakybucket.storage.base import StoreClient
from leakybucket.storage.memory import InMemoryStore
from leakybucket.storage.redis_store import RedisStore

logger = get_logger(__name__)


def create_store(
    settings: Settings | None = None,
    backend: str | None = None,
    redis_url: str | None = None,
) -> StoreClient:
    """Create a new store for the configured backend.

    Every call returns a fresh store; the caller owns it and is responsible
    for closing it.

    Args:
        settings: Settings to read from (defaults to the module settings).
        backend: 'redis' or 'memory', overriding settings.store_backend.
        redis_url: Redis connection URL, overriding settings.redis_url.

    Example:
        >>> store = create_store(backend="memory")
        >>> factory = BucketFactory(store)
    """
    if settings is None:
        from leakybucket.core import config

        settings = config.settings

    backend = (backend or settings.store_backend).lower()

    if backend == "memory":
        logger.debug("Using in-memory store backend")
        return InMemoryStore()
    if backend == "redis":
        kwargs = {}
        if settings.redis_socket_timeout is not None:
            kwargs["socket_timeout"] = settings.redis_socket_timeout
        logger.info("Using Redis store backend")
        return RedisStore.from_url(redis_url or settings.redis_url, **kwargs)
    raise ValueError(f"Unknown store backend: {backend!r}")
