"""
Notion Schemas - Data structures for destination databases.

These Pydantic models represent Notion API responses in a clean, typed
format for use throughout the application. Only the parts of a database
object the bot needs are kept: identity, title, and the column schema.

Reference: https://developers.notion.com/reference/database
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def normalize_id(raw_id: Optional[str]) -> str:
    """Strip separator dashes so IDs compare in their canonical form."""
    return (raw_id or "").replace("-", "")


def plain_text(rich_text: Any) -> str:
    """Join the plain_text of a Notion rich text array."""
    if not isinstance(rich_text, list):
        return ""
    return "".join(
        (part or {}).get("plain_text") or "" for part in rich_text
    ).strip()


class ColumnType(str, Enum):
    """
    Column type tags the bot knows how to write.

    Anything else Notion reports (formula, relation, rollup, files, ...)
    is parsed as UNKNOWN and never written.
    """
    TITLE = "title"
    RICH_TEXT = "rich_text"
    SELECT = "select"
    STATUS = "status"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    PEOPLE = "people"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ColumnType":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


# Column types whose definition carries a list of permitted options
ENUMERATED_TYPES = (ColumnType.SELECT, ColumnType.MULTI_SELECT, ColumnType.STATUS)


class ColumnDefinition(BaseModel):
    """A single column of a destination's schema."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType
    raw_type: str = Field("unknown", description="Type tag exactly as Notion reported it")
    options: List[str] = Field(default_factory=list, description="Option labels for enumerated types")

    @classmethod
    def from_api(cls, name: str, raw: Dict[str, Any]) -> "ColumnDefinition":
        raw = raw or {}
        raw_type = raw.get("type") or "unknown"
        column_type = ColumnType.parse(raw_type)

        options: List[str] = []
        if column_type in ENUMERATED_TYPES:
            config = raw.get(raw_type) or {}
            options = [
                option["name"]
                for option in config.get("options") or []
                if option and option.get("name")
            ]

        return cls(name=name, type=column_type, raw_type=raw_type, options=options)


class DestinationHandle(BaseModel):
    """
    Resolved identity of a destination database.

    Built fresh on every resolution and never mutated. `columns` keeps the
    order in which the API returned the properties.
    """
    model_config = ConfigDict(frozen=True)

    database_id: str
    title: str = ""
    title_column: str = "Name"
    columns: Dict[str, ColumnDefinition] = Field(default_factory=dict)

    def has_column(self, name: str) -> bool:
        return name in self.columns

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "DestinationHandle":
        """
        Build a handle from a GET /databases/{id} response.

        The title column is the first column tagged "title"; "Name" is
        used when the schema has none.
        """
        properties = raw.get("properties") or {}
        columns = {
            name: ColumnDefinition.from_api(name, definition)
            for name, definition in properties.items()
        }
        title_column = next(
            (name for name, column in columns.items() if column.type == ColumnType.TITLE),
            "Name",
        )
        return cls(
            database_id=normalize_id(raw.get("id")),
            title=plain_text(raw.get("title")),
            title_column=title_column,
            columns=columns,
        )


class DatabaseSearchResult(BaseModel):
    """One candidate returned by POST /search."""
    id: str
    title: str = ""
    last_edited_time: Optional[datetime] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "DatabaseSearchResult":
        return cls(
            id=normalize_id(raw.get("id")),
            title=plain_text(raw.get("title")),
            last_edited_time=raw.get("last_edited_time"),
        )


class CreatedPage(BaseModel):
    """The record created by POST /pages."""
    id: str
    url: Optional[str] = None
