"""
Key-value store adapters. Values are JSON objects keyed by announcement id.
Backend failures surface as StoreError; a missing key is None, never an error.
Listing order is whatever the backend yields.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from noticeboard.core.config import Settings
from noticeboard.core.exceptions import StoreError

logger = logging.getLogger(__name__)


class KVStore(Protocol):
    async def get(self, key: str) -> Optional[Dict[str, Any]]: ...
    async def put(self, key: str, value: Dict[str, Any]) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def list_keys(self, limit: int) -> List[str]: ...
    async def ping(self) -> bool: ...
    async def close(self) -> None: ...


def _serialize(value: Dict[str, Any]) -> str:
    return json.dumps(value, ensure_ascii=False)


def _deserialize(key: str, raw: Any) -> Dict[str, Any]:
    s = raw.decode() if isinstance(raw, bytes) else raw
    try:
        data = json.loads(s)
    except (json.JSONDecodeError, TypeError) as e:
        raise StoreError(f"Value for {key!r} is not valid JSON") from e
    if not isinstance(data, dict):
        raise StoreError(f"Value for {key!r} is not a JSON object")
    return data


class MemoryStore:
    """In-process store for local runs and tests. Values are kept serialized."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return _deserialize(key, raw)

    async def put(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = _serialize(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list_keys(self, limit: int) -> List[str]:
        return list(self._data)[:limit]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class RedisStore:
    """
    Redis-backed store. Keys live under a namespace prefix so the board can
    share a database; the prefix never leaks to callers.
    """

    def __init__(self, client: Redis, namespace: str = ""):
        self._redis = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "") -> "RedisStore":
        return cls(Redis.from_url(url, decode_responses=True), namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self._redis.get(self._key(key))
        except RedisError as e:
            raise StoreError(f"Failed to read {key!r}: {e}") from e
        if raw is None:
            return None
        return _deserialize(key, raw)

    async def put(self, key: str, value: Dict[str, Any]) -> None:
        try:
            await self._redis.set(self._key(key), _serialize(value))
        except RedisError as e:
            raise StoreError(f"Failed to write {key!r}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except RedisError as e:
            raise StoreError(f"Failed to delete {key!r}: {e}") from e

    async def list_keys(self, limit: int) -> List[str]:
        keys: List[str] = []
        try:
            async for name in self._redis.scan_iter(match=f"{self._namespace}*", count=min(limit, 1000)):
                keys.append(name[len(self._namespace):])
                if len(keys) >= limit:
                    break
        except RedisError as e:
            raise StoreError(f"Failed to list keys: {e}") from e
        return keys

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def close(self) -> None:
        try:
            await self._redis.aclose()
        except RedisError as e:
            logger.warning("Redis close error: %s", e)


def build_store(settings: Settings) -> Optional[KVStore]:
    """Store for the configured backend, or None when nothing is bound."""
    if settings.KV_BACKEND == "memory":
        logger.info("Using in-memory key-value store")
        return MemoryStore()

    url = settings.REDIS_URL.strip()
    if not url:
        logger.warning("REDIS_URL is empty, announcements store is unavailable")
        return None
    logger.info("Using Redis key-value store: %s", url.split("@")[-1] if "@" in url else url)
    return RedisStore.from_url(url, namespace=settings.KV_NAMESPACE)
