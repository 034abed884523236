"""
Tests for the preview store.

These tests verify:
- Staged requests come back unchanged
- Tokens are single use and unique
- Expired or unreadable previews read as missing
"""

import pytest

from app.schemas.save_request import DestinationKind, DestinationReference, SaveRequest
from app.services.preview_store import PREVIEW_PREFIX, PreviewStore


@pytest.fixture
def previews(kv_store):
    return PreviewStore(kv_store)


@pytest.fixture
def request_():
    return SaveRequest(
        destination=DestinationReference.free_text("アニメ一覧"),
        properties={"名前": "鬼滅の刃", "評価": 9, "視聴": True, "タグ": ["a", "b"], "比率": 4.5},
    )


class TestPreviewStore:
    """Tests for PreviewStore."""

    @pytest.mark.asyncio
    async def test_stage_then_consume(self, previews, request_):
        token = await previews.stage(request_)

        assert await previews.consume(token) == request_

    @pytest.mark.asyncio
    async def test_value_types_survive(self, previews, request_):
        token = await previews.stage(request_)

        restored = await previews.consume(token)

        assert restored.properties["評価"] == 9
        assert restored.properties["視聴"] is True
        assert restored.properties["比率"] == 4.5

    @pytest.mark.asyncio
    async def test_second_consume_is_none(self, previews, request_):
        token = await previews.stage(request_)
        await previews.consume(token)

        assert await previews.consume(token) is None

    @pytest.mark.asyncio
    async def test_unknown_token(self, previews):
        assert await previews.consume("never-issued") is None

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self, previews):
        request = SaveRequest(destination=DestinationReference.symbolic(DestinationKind.TASKS))

        tokens = {await previews.stage(request) for _ in range(20)}

        assert len(tokens) == 20

    @pytest.mark.asyncio
    async def test_stored_with_ttl(self, kv_store, request_):
        previews = PreviewStore(kv_store, ttl_seconds=600)

        token = await previews.stage(request_)

        assert kv_store._data[f"{PREVIEW_PREFIX}{token}"][1] is not None

    @pytest.mark.asyncio
    async def test_unreadable_preview_is_none(self, kv_store, previews):
        await kv_store.put(f"{PREVIEW_PREFIX}bad", '{"destination": {}}', ttl_seconds=600)

        assert await previews.consume("bad") is None
