"""
Property Serializer - Convert candidate values into Notion's wire format.

The destination schema decides how each value is encoded. Values whose
column is missing from the schema, or whose column type is not writable,
are dropped instead of being sent, so a user editing their database never
causes a save to fail on a type mismatch.

Wire shapes:
============
    title         {"title": [{"text": {"content": "..."}}]}
    rich_text     {"rich_text": [{"text": {"content": "..."}}]}
    select        {"select": {"name": "..."}} | {"select": None}
    status        {"status": {"name": "..."}} | {"status": None}
    multi_select  {"multi_select": [{"name": "..."}, ...]}
    date          {"date": {"start": "YYYY-MM-DD"}} | {"date": None}
    url / email / phone_number   {"<type>": "..."} | {"<type>": None}
    number        {"number": 9} | {"number": None}
    checkbox      {"checkbox": True}
    people        {"people": [{"id": "..."}]}  (only if every entry has an id)
"""

import logging
from typing import Any, Dict, Optional, Union

from app.environments.notion.schemas import ColumnDefinition, ColumnType
from app.schemas.save_request import PropertySet, PropertyValue


logger = logging.getLogger("notebridge.environments.notion.serializer")

UNTITLED = "(untitled)"

# Notion rejects text objects longer than this
MAX_TEXT_LENGTH = 2000


def _text(value: Any) -> list:
    content = "" if value is None else str(value)
    return [{"text": {"content": content[:MAX_TEXT_LENGTH]}}]


def _named(value: Any) -> Optional[dict]:
    # single-choice columns take the first entry of a list
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return {"name": str(value)} if value else None


def _plain(value: Any) -> Optional[str]:
    return str(value) if value else None


def _to_number(value: Any) -> Optional[Union[int, float]]:
    if value is None or value == "" or isinstance(value, (list, dict)):
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        logger.info(f"Dropping non-numeric value for number column: {value!r}")
        return None
    return int(number) if number.is_integer() else number


def _people(value: Any) -> Optional[list]:
    if isinstance(value, list) and all(isinstance(person, dict) and person.get("id") for person in value):
        return value
    return None


def serialize_properties(
    properties: PropertySet,
    title_column: str,
    columns: Dict[str, ColumnDefinition],
) -> Dict[str, Any]:
    """
    Encode a candidate property set for POST /pages.

    Args:
        properties: Candidate column -> value assignments
        title_column: Name of the destination's title column
        columns: Live column schema of the destination

    Returns:
        Properties in Notion wire format, always with exactly one title
    """
    out: Dict[str, Any] = {}
    title_set = False

    for key, value in (properties or {}).items():
        if key == title_column:
            column_type = ColumnType.TITLE
        elif key in columns:
            column_type = columns[key].type
        else:
            logger.info(f"Dropping '{key}': no such column in destination")
            continue

        if column_type == ColumnType.TITLE:
            # A second title-typed column cannot be written; keep the first.
            if title_set:
                logger.info(f"Dropping '{key}': title already set")
                continue
            out[title_column] = {"title": _text(value)}
            title_set = True
        elif column_type == ColumnType.RICH_TEXT:
            out[key] = {"rich_text": _text(value)}
        elif column_type == ColumnType.SELECT:
            out[key] = {"select": _named(value)}
        elif column_type == ColumnType.STATUS:
            out[key] = {"status": _named(value)}
        elif column_type == ColumnType.MULTI_SELECT:
            names = value if isinstance(value, list) else []
            out[key] = {"multi_select": [{"name": str(name)} for name in names]}
        elif column_type == ColumnType.DATE:
            out[key] = {"date": {"start": str(value)} if value else None}
        elif column_type in (ColumnType.URL, ColumnType.EMAIL, ColumnType.PHONE_NUMBER):
            out[key] = {column_type.value: _plain(value)}
        elif column_type == ColumnType.NUMBER:
            out[key] = {"number": _to_number(value)}
        elif column_type == ColumnType.CHECKBOX:
            out[key] = {"checkbox": bool(value)}
        elif column_type == ColumnType.PEOPLE:
            people = _people(value)
            if people is None:
                logger.info(f"Dropping '{key}': people values need Notion user ids")
                continue
            out[key] = {"people": people}
        else:
            logger.info(f"Dropping '{key}': unsupported column type '{columns[key].raw_type}'")

    if not title_set:
        first = next(iter(properties.values()), UNTITLED) if properties else UNTITLED
        logger.info(f"Synthesizing title for column '{title_column}'")
        out[title_column] = {"title": _text(_title_text(first))}

    return out


def _title_text(value: PropertyValue) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value) or UNTITLED
    text = str(value)
    return text if text else UNTITLED
