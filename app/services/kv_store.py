"""
Key-Value Store - Durable get/put with per-key expiry.

All state that outlives a single webhook call lives here:
- loc:<sender>      last shared location (2 h)
- dbid:<name>       database name -> ID cache (30 days)
- preview:<token>   staged save requests (10 min)

Components never keep process-lifetime caches of their own; they are
handed a KeyValueStore and expiry is delegated to it.

Two implementations:
- InMemoryKeyValueStore: dict with TTL, for development and tests
- RedisKeyValueStore: redis.asyncio, for multi-worker deployments

Usage:
    from app.services.kv_store import InMemoryKeyValueStore

    store = InMemoryKeyValueStore()
    await store.put_json("loc:U123", {"latitude": 35.6}, ttl_seconds=7200)
    cached = await store.get_json("loc:U123")
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.environments.base import UpstreamError


logger = logging.getLogger("notebridge.services.kv_store")


class KeyValueStore(ABC):
    """
    Abstract get/put store with per-key TTL and single-key atomicity.

    Implementations raise UpstreamError when the backing store cannot be
    reached.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if missing or expired."""
        pass

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store value under key, expiring after ttl_seconds."""
        pass

    @abstractmethod
    async def pop(self, key: str) -> Optional[str]:
        """Return the value for key and delete it in one step."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if something was removed."""
        pass

    async def get_json(self, key: str) -> Optional[Any]:
        return self._loads(key, await self.get(key))

    async def pop_json(self, key: str) -> Optional[Any]:
        return self._loads(key, await self.pop(key))

    async def put_json(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        await self.put(key, json.dumps(value, ensure_ascii=False), ttl_seconds=ttl_seconds)

    @staticmethod
    def _loads(key: str, raw: Optional[str]) -> Optional[Any]:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring unreadable JSON under key {key}")
            return None


class InMemoryKeyValueStore(KeyValueStore):
    """
    In-process store with TTL.

    Thread-safety note: fine for a single worker. With several workers
    each one sees its own data; use RedisKeyValueStore instead.
    """

    def __init__(self):
        # key -> (value, expires_at or None)
        self._data: Dict[str, Tuple[str, Optional[datetime]]] = {}

    def _live(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and datetime.now(timezone.utc) >= expires_at:
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live(key)

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = None
        if ttl_seconds:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        self._data[key] = (value, expires_at)

    async def pop(self, key: str) -> Optional[str]:
        value = self._live(key)
        self._data.pop(key, None)
        return value

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = datetime.now(timezone.utc)
        expired = [
            key for key, (_, expires_at) in self._data.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._data[key]

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired keys")
        return len(expired)

    def clear_all(self):
        """Clear every key. Use for testing only."""
        self._data.clear()


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed store; expiry is handled by Redis itself."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        logger.info("Using Redis key-value store")
        return cls(redis.from_url(url, decode_responses=True))

    async def _call(self, command: str, *args, **kwargs) -> Any:
        """
        Run one Redis command.

        Raises:
            UpstreamError: Redis is unreachable or rejected the command
        """
        try:
            return await getattr(self._client, command)(*args, **kwargs)
        except (RedisError, OSError) as e:
            logger.error(f"Redis {command.upper()} failed: {e}")
            raise UpstreamError(f"Key-value store unavailable: {e}")

    async def get(self, key: str) -> Optional[str]:
        return await self._call("get", key)

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        await self._call("set", key, value, ex=ttl_seconds or None)

    async def pop(self, key: str) -> Optional[str]:
        return await self._call("getdel", key)

    async def delete(self, key: str) -> bool:
        return bool(await self._call("delete", key))

    async def close(self) -> None:
        await self._client.aclose()
