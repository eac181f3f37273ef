"""tests for the key-value store adapters"""
import json
from unittest import mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from noticeboard.core.config import Settings
from noticeboard.core.exceptions import StoreError
from noticeboard.core.store import MemoryStore, RedisStore, build_store

pytestmark = pytest.mark.anyio


def fake_redis(keys=(), values=None):
    client = mock.AsyncMock()
    values = values or {}

    async def scan_iter(match=None, count=None):
        for key in keys:
            yield key

    client.scan_iter = scan_iter
    client.get.side_effect = lambda key: values.get(key)
    return client


async def test_memory_store_round_trip():
    """test put/get/delete/list on the memory store"""
    store = MemoryStore()
    await store.put("a", {"id": "a", "title": "T"})
    assert await store.get("a") == {"id": "a", "title": "T"}
    assert await store.list_keys(10) == ["a"]
    await store.delete("a")
    await store.delete("a")
    assert await store.get("a") is None


async def test_redis_store_uses_namespace():
    """test keys are prefixed on write and read"""
    client = fake_redis(values={"nb:a": json.dumps({"id": "a"})})
    store = RedisStore(client, namespace="nb:")

    assert await store.get("a") == {"id": "a"}
    await store.put("b", {"id": "b", "title": "Ünïcode"})
    client.set.assert_awaited_once()
    key, payload = client.set.await_args.args
    assert key == "nb:b"
    assert json.loads(payload)["title"] == "Ünïcode"

    await store.delete("b")
    client.delete.assert_awaited_once_with("nb:b")


async def test_redis_store_lists_without_prefix_and_respects_limit():
    """test key listing strips the namespace and stops at the limit"""
    store = RedisStore(fake_redis(keys=["nb:a", "nb:b", "nb:c"]), namespace="nb:")
    assert await store.list_keys(2) == ["a", "b"]


async def test_redis_store_wraps_backend_errors():
    """test redis failures surface as StoreError"""
    client = fake_redis()
    client.get.side_effect = RedisConnectionError("down")
    client.set.side_effect = RedisConnectionError("down")
    store = RedisStore(client, namespace="nb:")

    with pytest.raises(StoreError):
        await store.get("a")
    with pytest.raises(StoreError):
        await store.put("a", {"id": "a"})


async def test_redis_store_rejects_non_json_values():
    """test a non-JSON value is a StoreError, not a crash"""
    store = RedisStore(fake_redis(values={"a": "plain text"}))
    with pytest.raises(StoreError):
        await store.get("a")


async def test_redis_ping_failure_is_reported():
    """test ping returns False instead of raising"""
    client = fake_redis()
    client.ping.side_effect = RedisConnectionError("down")
    assert await RedisStore(client).ping() is False


def test_build_store_selects_backend():
    """test backend selection from settings"""
    assert isinstance(build_store(Settings(KV_BACKEND="memory")), MemoryStore)
    assert build_store(Settings(KV_BACKEND="redis", REDIS_URL="")) is None
    assert isinstance(build_store(Settings(KV_BACKEND="redis", REDIS_URL="redis://localhost:6379/0")), RedisStore)


def test_settings_reject_unknown_backend():
    """test KV_BACKEND is validated"""
    with pytest.raises(ValueError):
        Settings(KV_BACKEND="sqlite")
