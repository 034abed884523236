"""
Destination Resolver - Turn a destination reference into a live handle.

Resolution paths:
=================
1. Symbolic ("Tasks")      -> NOTION_DB_TASKS from settings -> fetch schema
2. Free text, cached       -> dbid:<name> from the KV store   -> fetch schema
3. Free text, not cached   -> /search, exact title match or most recently
                              edited result -> cache ID -> fetch schema

The schema itself is never cached: every resolution fetches it fresh so a
save always sees the columns as they are right now. Cached IDs are never
invalidated here; a deleted or unshared database surfaces as an
UpstreamError when its schema is fetched.
"""

import logging
from typing import Callable, List, Optional

from app.environments.base import NotFoundError
from app.environments.notion.client import NotionClient
from app.environments.notion.schemas import DatabaseSearchResult, DestinationHandle
from app.schemas.save_request import DestinationReference
from app.services.kv_store import KeyValueStore


logger = logging.getLogger("notebridge.services.destination_resolver")

NAME_CACHE_PREFIX = "dbid:"


def pick_search_result(
    name: str,
    results: List[DatabaseSearchResult],
) -> Optional[DatabaseSearchResult]:
    """
    Choose one database from ordered search results.

    An exact title match wins; otherwise the first result (most recently
    edited) is used. Returns None when there are no results.
    """
    wanted = name.strip()
    for result in results:
        if result.title == wanted:
            return result

    if results:
        logger.info(
            f"No exact title match for '{wanted}', using most recent result '{results[0].title}'"
        )
        return results[0]
    return None


class DestinationResolver:
    """
    Resolves DestinationReference values to DestinationHandle values.

    Attributes:
        notion: Client used for search and schema fetches
        store: Durable store holding the name -> ID cache
        destination_id_for: Maps a symbolic kind to a configured ID,
            raising ConfigError when it is not configured
        name_cache_ttl: Lifetime of dbid:<name> entries in seconds
    """

    def __init__(
        self,
        notion: NotionClient,
        store: KeyValueStore,
        destination_id_for: Callable[[str], str],
        name_cache_ttl: int = 60 * 60 * 24 * 30,
    ):
        self.notion = notion
        self.store = store
        self.destination_id_for = destination_id_for
        self.name_cache_ttl = name_cache_ttl

    async def resolve(self, reference: DestinationReference) -> DestinationHandle:
        """
        Resolve a reference to a handle with a freshly fetched schema.

        Raises:
            ConfigError: Symbolic reference without a configured ID
            NotFoundError: No database matches the free-text name
            AuthError / UpstreamError: Notion call failed
        """
        if reference.by_name:
            database_id = await self.resolve_id_by_name(reference.name)
        else:
            database_id = self.destination_id_for(reference.name)

        return await self.notion.get_database(database_id)

    async def resolve_by_name(self, name: str) -> DestinationHandle:
        return await self.resolve(DestinationReference.free_text(name))

    async def resolve_id_by_name(self, name: str) -> str:
        """
        Resolve a database name to its ID, consulting the cache first.

        Raises:
            NotFoundError: Search returned no databases
        """
        cache_key = f"{NAME_CACHE_PREFIX}{name}"
        cached = await self.store.get(cache_key)
        if cached:
            logger.info(f"Name cache hit for '{name}'")
            return cached

        results = await self.notion.search_databases(name)
        found = pick_search_result(name, results)
        if found is None:
            raise NotFoundError(f"Database not found by name: {name}")

        await self.store.put(cache_key, found.id, ttl_seconds=self.name_cache_ttl)
        logger.info(f"Cached database ID for '{name}'")
        return found.id
