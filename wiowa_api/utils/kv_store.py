"""Key/value stores that back client-side style persistence (match data).

Values are plain strings, mirroring browser local storage: callers are
responsible for serialization. Redis is used when ``REDIS_URL`` is set and
reachable, else an in-memory store.
"""
import logging
from abc import ABC, abstractmethod
from threading import Lock
from typing import Optional

import redis

logger = logging.getLogger(__name__)


class StorageError(OSError):
    """Raised when a value cannot be written to the store."""


class KeyValueStore(ABC):
    """Minimal string key/value interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for ``key`` or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""

    def namespaced(self, namespace: str) -> "KeyValueStore":
        """Return a view of this store whose keys are prefixed with ``namespace``."""
        return NamespacedKeyValueStore(self, namespace)


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, used in development and tests."""

    def __init__(self):
        self._data: dict[str, str] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class RedisKeyValueStore(KeyValueStore):
    """Store shared by all workers, kept in Redis under ``wiowa:<key>``."""

    prefix = "wiowa"

    def __init__(self, client: redis.Redis):
        self.redis = client

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            return self.redis.get(self._key(key))
        except redis.RedisError as exc:
            logger.error(f"Failed to read key {key} from Redis: {exc}")
            return None

    def set(self, key: str, value: str) -> None:
        try:
            self.redis.set(self._key(key), value)
        except redis.RedisError as exc:
            logger.error(f"Failed to write key {key} to Redis: {exc}")
            raise StorageError(f"Could not write {key}") from exc

    def delete(self, key: str) -> None:
        try:
            self.redis.delete(self._key(key))
        except redis.RedisError as exc:
            logger.error(f"Failed to delete key {key} from Redis: {exc}")
            raise StorageError(f"Could not delete {key}") from exc


class NamespacedKeyValueStore(KeyValueStore):
    """Prefix every key with a namespace (one namespace per user)."""

    def __init__(self, inner: KeyValueStore, namespace: str):
        self.inner = inner
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[str]:
        return self.inner.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        self.inner.set(self._key(key), value)

    def delete(self, key: str) -> None:
        self.inner.delete(self._key(key))


def create_store(redis_url: Optional[str]) -> KeyValueStore:
    """Use Redis if available, else an in-memory store."""
    if not redis_url:
        logger.info("Using in-memory match storage (Redis URL not provided)")
        return InMemoryKeyValueStore()

    try:
        client = redis.from_url(redis_url, decode_responses=True)
        client.ping()
    except redis.RedisError as e:
        logger.warning(f"Redis not available, using in-memory match storage: {e}")
        return InMemoryKeyValueStore()

    logger.info("Using Redis for match storage")
    return RedisKeyValueStore(client)
