"""
Dependencies module - reusable FastAPI dependencies for route handlers.

Each dependency builds one collaborator from settings. Tests replace them
through app.dependency_overrides, e.g.:

    app.dependency_overrides[get_kv_store] = lambda: InMemoryKeyValueStore()
"""

from functools import lru_cache

from fastapi import Depends

from app.core.config import settings
from app.environments.line.client import LineMessagingClient
from app.environments.notion.client import NotionClient
from app.services.destination_resolver import DestinationResolver
from app.services.kv_store import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from app.services.location_service import LocationService
from app.services.message_service import MessageService
from app.services.preview_store import PreviewStore


@lru_cache
def get_kv_store() -> KeyValueStore:
    """
    Shared key-value store.

    Redis when REDIS_URL is set, otherwise an in-process store (the same
    instance for every request so previews survive between webhook calls).
    """
    if settings.REDIS_URL:
        return RedisKeyValueStore.from_url(settings.REDIS_URL)
    return InMemoryKeyValueStore()


def get_notion_client() -> NotionClient:
    return NotionClient(
        api_key=settings.NOTION_API_KEY,
        notion_version=settings.NOTION_VERSION,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def get_line_client() -> LineMessagingClient:
    return LineMessagingClient(
        channel_token=settings.LINE_CHANNEL_TOKEN,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def get_message_service(
    store: KeyValueStore = Depends(get_kv_store),
    notion: NotionClient = Depends(get_notion_client),
) -> MessageService:
    """Wire the message service for one request."""
    resolver = DestinationResolver(
        notion=notion,
        store=store,
        destination_id_for=settings.destination_id_for,
        name_cache_ttl=settings.NAME_CACHE_TTL_SECONDS,
    )
    return MessageService(
        resolver=resolver,
        previews=PreviewStore(store, ttl_seconds=settings.PREVIEW_TTL_SECONDS),
        locations=LocationService(store, ttl_seconds=settings.LOCATION_TTL_SECONDS),
        notion=notion,
    )
