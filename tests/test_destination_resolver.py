"""
Tests for the destination resolver.

These tests verify:
- Symbolic references go through configuration
- Free-text names are searched once, then served from the name cache
- Exact title matches win over the most recent result
- Missing names and missing configuration raise typed errors
- The schema is fetched fresh on every resolution
"""

import pytest

from app.environments.base import ConfigError, NotFoundError, UpstreamError
from app.environments.notion.schemas import DatabaseSearchResult
from app.schemas.save_request import DestinationKind, DestinationReference
from app.services.destination_resolver import (
    NAME_CACHE_PREFIX,
    DestinationResolver,
    pick_search_result,
)

ANIME_DB_ID = "33333333333333333333333333333333"
TASKS_DB_ID = "11111111111111111111111111111111"


def result(db_id: str, title: str) -> DatabaseSearchResult:
    return DatabaseSearchResult(id=db_id, title=title)


# ---------------------------------------------------------------------------
# SEARCH RESULT SELECTION
# ---------------------------------------------------------------------------

class TestPickSearchResult:
    """Tests for pick_search_result."""

    def test_exact_match_wins(self):
        results = [result("a", "アニメ一覧 2023"), result("b", "アニメ一覧")]

        assert pick_search_result("アニメ一覧", results).id == "b"

    def test_name_is_stripped(self):
        assert pick_search_result(" Books ", [result("x", "Books")]).id == "x"

    def test_most_recent_when_no_exact_match(self):
        results = [result("new", "アニメ一覧 2024"), result("old", "アニメ一覧 2023")]

        assert pick_search_result("アニメ", results).id == "new"

    def test_no_results(self):
        assert pick_search_result("x", []) is None


# ---------------------------------------------------------------------------
# RESOLUTION
# ---------------------------------------------------------------------------

class TestSymbolicResolution:
    """Tests for configured destinations."""

    @pytest.mark.asyncio
    async def test_tasks(self, resolver, mock_notion):
        handle = await resolver.resolve(DestinationReference.symbolic(DestinationKind.TASKS))

        assert handle.database_id == TASKS_DB_ID
        assert handle.title_column == "Name"
        mock_notion.search_databases.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unconfigured_kind_raises_config_error(self, resolver, mock_notion):
        with pytest.raises(ConfigError):
            await resolver.resolve(DestinationReference(name="Journal", by_name=False))

        mock_notion.get_database.assert_not_awaited()


class TestNameResolution:
    """Tests for free-text destinations."""

    @pytest.mark.asyncio
    async def test_search_then_cache(self, resolver, mock_notion, kv_store):
        mock_notion.search_databases.return_value = [result(ANIME_DB_ID, "アニメ一覧")]

        handle = await resolver.resolve_by_name("アニメ一覧")

        assert handle.title == "アニメ一覧"
        assert handle.title_column == "名前"
        assert await kv_store.get(f"{NAME_CACHE_PREFIX}アニメ一覧") == ANIME_DB_ID

    @pytest.mark.asyncio
    async def test_cache_hit_skips_search(self, resolver, mock_notion):
        mock_notion.search_databases.return_value = [result(ANIME_DB_ID, "アニメ一覧")]

        await resolver.resolve_by_name("アニメ一覧")
        await resolver.resolve_by_name("アニメ一覧")

        assert mock_notion.search_databases.await_count == 1
        assert mock_notion.get_database.await_count == 2

    @pytest.mark.asyncio
    async def test_cached_id_used_directly(self, resolver, mock_notion, kv_store):
        await kv_store.put(f"{NAME_CACHE_PREFIX}アニメ", ANIME_DB_ID)

        handle = await resolver.resolve(DestinationReference.free_text("アニメ"))

        assert handle.database_id == ANIME_DB_ID
        mock_notion.search_databases.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found(self, resolver, mock_notion, kv_store):
        mock_notion.search_databases.return_value = []

        with pytest.raises(NotFoundError):
            await resolver.resolve_by_name("存在しない")

        assert await kv_store.get(f"{NAME_CACHE_PREFIX}存在しない") is None

    @pytest.mark.asyncio
    async def test_stale_cache_surfaces_upstream_error(self, resolver, mock_notion, kv_store):
        await kv_store.put(f"{NAME_CACHE_PREFIX}消えたDB", "f" * 32)
        mock_notion.get_database.side_effect = UpstreamError("Notion request failed: 404", status_code=404)

        with pytest.raises(UpstreamError):
            await resolver.resolve_by_name("消えたDB")

    @pytest.mark.asyncio
    async def test_cache_uses_configured_ttl(self, mock_notion, kv_store):
        resolver = DestinationResolver(
            notion=mock_notion,
            store=kv_store,
            destination_id_for=lambda kind: TASKS_DB_ID,
            name_cache_ttl=60,
        )
        mock_notion.search_databases.return_value = [result(ANIME_DB_ID, "アニメ一覧")]

        await resolver.resolve_id_by_name("アニメ一覧")

        assert kv_store._data[f"{NAME_CACHE_PREFIX}アニメ一覧"][1] is not None
