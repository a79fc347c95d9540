"""Redis cache backend implementing ICacheBackend."""

from __future__ import annotations

from typing import Any, Callable

import redis

from recordbridge.core.config import RedisConfig
from recordbridge.core.exceptions import CacheError


class RedisCacheBackend:
    """Production ICacheBackend backed by Redis.

    Keys are namespaced with ``key_prefix`` so several tools can share one db.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        key_prefix: str = "recordbridge:",
    ) -> None:
        self._prefix = key_prefix
        self._client = redis.Redis(host=host, port=port, db=db, decode_responses=True)

    @classmethod
    def from_config(cls, config: RedisConfig) -> "RedisCacheBackend":
        return cls(host=config.host, port=config.port, db=config.db)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _call(self, op: str, key: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except Exception as exc:
            raise CacheError(f"Redis {op} failed for key={key!r}: {exc}") from exc

    def get(self, key: str) -> str | None:
        return self._call("GET", key, lambda: self._client.get(self._key(key)))

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._call("SETEX", key, lambda: self._client.setex(self._key(key), ttl, value))

    def delete(self, key: str) -> None:
        self._call("DELETE", key, lambda: self._client.delete(self._key(key)))

    def ping(self) -> bool:
        return bool(self._call("PING", "-", self._client.ping))
