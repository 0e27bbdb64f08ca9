"""Tests for create_store."""

from unittest.mock import MagicMock, patch

import pytest

from leakybucket.core.config import Settings
from leakybucket.storage import InMemoryStore, RedisStore, create_store


def test_memory_backend():
    settings = Settings(_env_file=None, store_backend="memory")

    assert isinstance(create_store(settings), InMemoryStore)


def test_each_call_returns_new_store():
    settings = Settings(_env_file=None, store_backend="memory")

    assert create_store(settings) is not create_store(settings)


def test_redis_backend_uses_settings():
    settings = Settings(
        _env_file=None,
        store_backend="redis",
        redis_url="redis://cache:6379/2",
        redis_socket_timeout=1.5,
    )
    with patch("redis.asyncio.from_url", return_value=MagicMock()) as from_url:
        store = create_store(settings)

    assert isinstance(store, RedisStore)
    from_url.assert_called_once_with("redis://cache:6379/2", socket_timeout=1.5)


def test_arguments_override_settings():
    settings = Settings(_env_file=None, store_backend="memory")
    with patch("redis.asyncio.from_url", return_value=MagicMock()) as from_url:
        store = create_store(settings, backend="redis", redis_url="redis://other/0")

    assert isinstance(store, RedisStore)
    from_url.assert_called_once_with("redis://other/0")


def test_module_settings_used_by_default():
    with patch("leakybucket.core.config.settings", Settings(_env_file=None, store_backend="memory")):
        store = create_store()

    assert isinstance(store, InMemoryStore)


def test_unknown_backend():
    with pytest.raises(ValueError):
        create_store(Settings(_env_file=None), backend="memcached")
