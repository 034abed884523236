"""
Tests for the key-value stores.

These tests verify:
- In-memory get/put/pop/delete with TTL
- JSON helpers
- Cleanup of expired entries
- Redis store delegates to the redis.asyncio client
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.environments.base import UpstreamError
from app.services.kv_store import InMemoryKeyValueStore, RedisKeyValueStore


def expire(store: InMemoryKeyValueStore, key: str):
    """Move a key's expiry into the past."""
    value, _ = store._data[key]
    store._data[key] = (value, datetime.now(timezone.utc) - timedelta(seconds=1))


# ---------------------------------------------------------------------------
# IN-MEMORY STORE
# ---------------------------------------------------------------------------

class TestInMemoryKeyValueStore:
    """Tests for InMemoryKeyValueStore."""

    @pytest.mark.asyncio
    async def test_put_and_get(self, kv_store):
        await kv_store.put("k", "v", ttl_seconds=60)

        assert await kv_store.get("k") == "v"

    @pytest.mark.asyncio
    async def test_missing_key(self, kv_store):
        assert await kv_store.get("nope") is None

    @pytest.mark.asyncio
    async def test_expired_key_reads_as_missing(self, kv_store):
        await kv_store.put("k", "v", ttl_seconds=60)
        expire(kv_store, "k")

        assert await kv_store.get("k") is None
        assert "k" not in kv_store._data

    @pytest.mark.asyncio
    async def test_no_ttl_never_expires(self, kv_store):
        await kv_store.put("k", "v")

        assert kv_store._data["k"][1] is None
        assert await kv_store.get("k") == "v"

    @pytest.mark.asyncio
    async def test_pop_returns_once(self, kv_store):
        await kv_store.put("k", "v", ttl_seconds=60)

        assert await kv_store.pop("k") == "v"
        assert await kv_store.pop("k") is None

    @pytest.mark.asyncio
    async def test_pop_expired(self, kv_store):
        await kv_store.put("k", "v", ttl_seconds=60)
        expire(kv_store, "k")

        assert await kv_store.pop("k") is None

    @pytest.mark.asyncio
    async def test_delete(self, kv_store):
        await kv_store.put("k", "v")

        assert await kv_store.delete("k") is True
        assert await kv_store.delete("k") is False

    @pytest.mark.asyncio
    async def test_json_round_trip_keeps_unicode(self, kv_store):
        await kv_store.put_json("loc:U1", {"name": "渋谷", "lat": 35.6})

        assert "渋谷" in kv_store._data["loc:U1"][0]
        assert await kv_store.get_json("loc:U1") == {"name": "渋谷", "lat": 35.6}
        assert await kv_store.pop_json("loc:U1") == {"name": "渋谷", "lat": 35.6}
        assert await kv_store.get_json("loc:U1") is None

    @pytest.mark.asyncio
    async def test_unreadable_json_is_none(self, kv_store):
        await kv_store.put("k", "{not json")

        assert await kv_store.get_json("k") is None

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, kv_store):
        await kv_store.put("old", "1", ttl_seconds=60)
        await kv_store.put("new", "2", ttl_seconds=60)
        expire(kv_store, "old")

        assert kv_store.cleanup_expired() == 1
        assert list(kv_store._data) == ["new"]


# ---------------------------------------------------------------------------
# REDIS STORE
# ---------------------------------------------------------------------------

@pytest.fixture
def redis_client():
    client = MagicMock()
    client.get = AsyncMock(return_value="v")
    client.set = AsyncMock(return_value=True)
    client.getdel = AsyncMock(return_value="v")
    client.delete = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client


class TestRedisKeyValueStore:
    """Tests for RedisKeyValueStore against a mocked client."""

    @pytest.mark.asyncio
    async def test_put_sets_expiry(self, redis_client):
        store = RedisKeyValueStore(redis_client)

        await store.put("preview:t", "{}", ttl_seconds=600)

        redis_client.set.assert_awaited_once_with("preview:t", "{}", ex=600)

    @pytest.mark.asyncio
    async def test_put_without_ttl(self, redis_client):
        store = RedisKeyValueStore(redis_client)

        await store.put("k", "v")

        redis_client.set.assert_awaited_once_with("k", "v", ex=None)

    @pytest.mark.asyncio
    async def test_get(self, redis_client):
        store = RedisKeyValueStore(redis_client)

        assert await store.get("k") == "v"
        redis_client.get.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_pop_uses_getdel(self, redis_client):
        store = RedisKeyValueStore(redis_client)

        assert await store.pop("k") == "v"
        redis_client.getdel.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_delete(self, redis_client):
        store = RedisKeyValueStore(redis_client)

        assert await store.delete("k") is True

    @pytest.mark.asyncio
    async def test_json_helpers(self, redis_client):
        redis_client.get.return_value = '{"a": 1}'
        store = RedisKeyValueStore(redis_client)

        assert await store.get_json("k") == {"a": 1}

    @pytest.mark.asyncio
    async def test_connection_error_becomes_upstream_error(self, redis_client):
        redis_client.getdel.side_effect = RedisConnectionError("Connection refused")
        store = RedisKeyValueStore(redis_client)

        with pytest.raises(UpstreamError):
            await store.pop("preview:t")

    @pytest.mark.asyncio
    async def test_socket_timeout_becomes_upstream_error(self, redis_client):
        redis_client.set.side_effect = TimeoutError("timed out")
        store = RedisKeyValueStore(redis_client)

        with pytest.raises(UpstreamError):
            await store.put("k", "v", ttl_seconds=60)

    @pytest.mark.asyncio
    async def test_close(self, redis_client):
        store = RedisKeyValueStore(redis_client)

        await store.close()

        redis_client.aclose.assert_awaited_once()
