"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- In-memory key-value store
- Notion database payload factories and handles
- A mocked Notion client
- Test client (FastAPI TestClient) with dependencies overridden
"""

from typing import Any, Dict, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.environments.base import ConfigError
from app.deps import get_kv_store, get_line_client, get_message_service, get_notion_client
from app.environments.notion.client import NotionClient
from app.environments.notion.schemas import CreatedPage, DestinationHandle
from app.main import app
from app.services.destination_resolver import DestinationResolver
from app.services.kv_store import InMemoryKeyValueStore
from app.services.location_service import LocationService
from app.services.message_service import MessageService
from app.services.preview_store import PreviewStore


TASKS_DB_ID = "11111111111111111111111111111111"
KNOWLEDGE_DB_ID = "22222222222222222222222222222222"
ANIME_DB_ID = "33333333333333333333333333333333"


# ---------------------------------------------------------------------------
# NOTION PAYLOAD FACTORIES
# ---------------------------------------------------------------------------

def make_database(db_id: str, title: str, properties: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Build a GET /databases/{id} response body."""
    return {
        "object": "database",
        "id": f"{db_id[:8]}-{db_id[8:12]}-{db_id[12:16]}-{db_id[16:20]}-{db_id[20:]}",
        "title": [{"type": "text", "plain_text": title}],
        "properties": properties,
    }


def options(*names: str) -> Dict[str, Any]:
    return {"options": [{"name": name} for name in names]}


def tasks_database() -> Dict[str, Any]:
    return make_database(TASKS_DB_ID, "Tasks", {
        "Name": {"type": "title", "title": {}},
        "Status": {"type": "status", "status": options("未着手", "進行中", "完了")},
        "Priority": {"type": "select", "select": options("高", "中", "低")},
    })


def knowledge_database() -> Dict[str, Any]:
    return make_database(KNOWLEDGE_DB_ID, "Knowledge", {
        "Title": {"type": "title", "title": {}},
        "Summary": {"type": "rich_text", "rich_text": {}},
        "Category": {"type": "select", "select": options("メモ", "記事")},
    })


def anime_database() -> Dict[str, Any]:
    return make_database(ANIME_DB_ID, "アニメ一覧", {
        "名前": {"type": "title", "title": {}},
        "感想": {"type": "rich_text", "rich_text": {}},
        "評価": {"type": "number", "number": {"format": "number"}},
        "ジャンル": {"type": "select", "select": options("アクション", "コメディ")},
        "視聴日": {"type": "date", "date": {}},
    })


# ---------------------------------------------------------------------------
# HANDLE FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def tasks_handle() -> DestinationHandle:
    return DestinationHandle.from_api(tasks_database())


@pytest.fixture
def knowledge_handle() -> DestinationHandle:
    return DestinationHandle.from_api(knowledge_database())


@pytest.fixture
def anime_handle() -> DestinationHandle:
    return DestinationHandle.from_api(anime_database())


@pytest.fixture
def make_handle():
    """Factory for ad-hoc destinations: make_handle({"Name": {"type": "title"}})."""
    def _make(properties: Dict[str, Dict[str, Any]], title: str = "Scratch") -> DestinationHandle:
        return DestinationHandle.from_api(make_database("4" * 32, title, properties))
    return _make


# ---------------------------------------------------------------------------
# SERVICE FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def kv_store() -> Generator[InMemoryKeyValueStore, None, None]:
    """Fresh in-memory store for each test."""
    store = InMemoryKeyValueStore()
    yield store
    store.clear_all()


class UnreachableKeyValueStore(InMemoryKeyValueStore):
    """Store whose backend connection is down."""

    async def get(self, key: str):
        raise ConnectionError("store down")

    async def put(self, key: str, value: str, ttl_seconds=None):
        raise ConnectionError("store down")

    async def pop(self, key: str):
        raise ConnectionError("store down")


@pytest.fixture
def failing_store() -> UnreachableKeyValueStore:
    return UnreachableKeyValueStore()


@pytest.fixture
def mock_notion() -> MagicMock:
    """
    Notion client whose databases are the three sample schemas.

    get_database is keyed by ID; search returns whatever the test sets on
    search_databases.return_value (empty by default).
    """
    databases = {
        TASKS_DB_ID: tasks_database(),
        KNOWLEDGE_DB_ID: knowledge_database(),
        ANIME_DB_ID: anime_database(),
    }

    async def get_database(database_id: str) -> DestinationHandle:
        return DestinationHandle.from_api(databases[database_id.replace("-", "")])

    notion = MagicMock(spec=NotionClient)
    notion.get_database = AsyncMock(side_effect=get_database)
    notion.search_databases = AsyncMock(return_value=[])
    notion.create_page = AsyncMock(
        return_value=CreatedPage(id="page-1", url="https://www.notion.so/page-1")
    )
    notion.validate_access = AsyncMock(return_value=True)
    notion.service_name = "notion"
    return notion


def destination_ids(kind: str) -> str:
    ids = {"Tasks": TASKS_DB_ID, "Knowledge": KNOWLEDGE_DB_ID}
    if kind not in ids:
        raise ConfigError(f"No database configured for destination '{kind}'")
    return ids[kind]


@pytest.fixture
def resolver(mock_notion, kv_store) -> DestinationResolver:
    return DestinationResolver(
        notion=mock_notion,
        store=kv_store,
        destination_id_for=destination_ids,
    )


@pytest.fixture
def message_service(resolver, kv_store, mock_notion) -> MessageService:
    return MessageService(
        resolver=resolver,
        previews=PreviewStore(kv_store),
        locations=LocationService(kv_store),
        notion=mock_notion,
    )


@pytest.fixture
def mock_line() -> MagicMock:
    line = MagicMock()
    line.reply = AsyncMock(return_value=True)
    line.reply_text = AsyncMock(return_value=True)
    line.reply_flex = AsyncMock(return_value=True)
    line.validate_access = AsyncMock(return_value=True)
    line.service_name = "line"
    return line


@pytest.fixture
def client(kv_store, mock_notion, mock_line, message_service) -> Generator[TestClient, None, None]:
    """
    Create a test client with all external collaborators mocked.
    """
    app.dependency_overrides[get_kv_store] = lambda: kv_store
    app.dependency_overrides[get_notion_client] = lambda: mock_notion
    app.dependency_overrides[get_line_client] = lambda: mock_line
    app.dependency_overrides[get_message_service] = lambda: message_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
