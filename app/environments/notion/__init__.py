"""
Notion Module - Database integration.

Features:
=========
- Fetch live database schemas
- Search databases by name
- Create records with schema-aware property encoding
- Render schemas as text for the "schema:" command
"""

from app.environments.notion.client import NotionClient
from app.environments.notion.schemas import (
    ColumnDefinition,
    ColumnType,
    CreatedPage,
    DatabaseSearchResult,
    DestinationHandle,
    normalize_id,
)
from app.environments.notion.serializer import serialize_properties
from app.environments.notion.renderer import SchemaRenderer

__all__ = [
    "NotionClient",
    "ColumnDefinition",
    "ColumnType",
    "CreatedPage",
    "DatabaseSearchResult",
    "DestinationHandle",
    "normalize_id",
    "serialize_properties",
    "SchemaRenderer",
]
