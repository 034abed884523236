"""
Property Builder - Guess column values from free-form text.

Given the live schema of a destination and the text a user sent, propose
a value for each column the bot knows how to fill. Columns are matched by
name first (per-slot candidate lists) and, for type-sensitive slots, by
type as a fallback. Nothing here raises: a schema with no matching columns
simply yields fewer properties.

Slots for free-text saves:
==========================
    title      always, from the first sentence of the content
    note       rich_text  感想 / レビュー / コメント / メモ / Summary / 備考
    date       date       視聴日 / 日付 / Date / Watched At / Watched   (today)
    work name  rich_text  作品名 / タイトル / 作品 / Name               (title)
    rating     number     評価 / Rating / スコア, else first number column
    category   select     カテゴリ / カテゴリー / Category, else first select
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Dict, Optional, Sequence, Union

from app.environments.notion.schemas import ColumnDefinition, ColumnType, DestinationHandle
from app.schemas.save_request import DestinationKind, PropertySet


logger = logging.getLogger("notebridge.services.property_builder")

MAX_TITLE_LENGTH = 60
UNTITLED = "(untitled)"

NOTE_COLUMNS = ("感想", "レビュー", "コメント", "メモ", "Summary", "備考")
DATE_COLUMNS = ("視聴日", "日付", "Date", "Watched At", "Watched")
WORK_NAME_COLUMNS = ("作品名", "タイトル", "作品", "Name")
RATING_COLUMNS = ("評価", "Rating", "スコア")
CATEGORY_COLUMNS = ("カテゴリ", "カテゴリー", "Category")

# Fixed category for records logged through the chat
FREE_TEXT_CATEGORY = "視聴"

# Fixed defaults for the configured destinations
TASK_STATUS = "未着手"
TASK_PRIORITY = "中"
KNOWLEDGE_CATEGORY = "メモ"

SENTENCE_SPLIT = re.compile(r"[。.!！?？\n]")
RATING_WITH_MARKER = re.compile(r"(\d+(?:\.\d+)?)\s*[点⭐★]")
ANY_NUMBER = re.compile(r"\d+(?:\.\d+)?")


# ---------------------------------------------------------------------------
# EXTRACTION HELPERS
# ---------------------------------------------------------------------------

def extract_title(text: str) -> str:
    """
    First sentence of the text, at most 60 characters.

    Falls back to the whole (whitespace-collapsed) text when the first
    sentence is shorter than two characters.
    """
    collapsed = re.sub(r"\s+", " ", text or "").strip()
    first = SENTENCE_SPLIT.split(collapsed)[0]
    title = first if len(first) >= 2 else collapsed
    return title[:MAX_TITLE_LENGTH] or UNTITLED


def extract_rating(text: str) -> Optional[Union[int, float]]:
    """
    Find a score in the text, preferring numbers followed by 点 / ★ / ⭐.

    Returns:
        The number, or None when the text has no digits
    """
    match = RATING_WITH_MARKER.search(text or "") or ANY_NUMBER.search(text or "")
    if not match:
        return None

    raw = match.group(1) if match.re is RATING_WITH_MARKER else match.group(0)
    return float(raw) if "." in raw else int(raw)


def pick_first_column(
    columns: Dict[str, ColumnDefinition],
    candidates: Sequence[str],
    want_type: ColumnType,
) -> Optional[str]:
    """First candidate name that exists with the wanted type."""
    for name in candidates:
        column = columns.get(name)
        if column is not None and column.type == want_type:
            return name
    return None


def find_column_by_type(
    columns: Dict[str, ColumnDefinition],
    want_type: ColumnType,
    preferred: Sequence[str] = (),
) -> Optional[str]:
    """
    Preferred name of the wanted type, else the first column of that type.

    The fallback follows the order in which Notion returned the schema.
    """
    picked = pick_first_column(columns, preferred, want_type)
    if picked:
        return picked

    for name, column in columns.items():
        if column.type == want_type:
            logger.info(f"No preferred {want_type.value} column, falling back to '{name}'")
            return name
    return None


def today_iso(today: Optional[date] = None) -> str:
    """Calendar date (UTC) in YYYY-MM-DD form."""
    return (today or datetime.now(timezone.utc).date()).isoformat()


# ---------------------------------------------------------------------------
# BUILDERS
# ---------------------------------------------------------------------------

def build_free_text_properties(
    content: str,
    handle: DestinationHandle,
    today: Optional[date] = None,
) -> PropertySet:
    """
    Propose properties for a "<name>のnotionに記録して" message.

    Args:
        content: Message text without the trailing command
        handle: Destination with its live schema
        today: Date to record (defaults to the current UTC date)

    Returns:
        Column name -> candidate value
    """
    columns = handle.columns
    title = extract_title(content)
    props: PropertySet = {handle.title_column: title}

    note = pick_first_column(columns, NOTE_COLUMNS, ColumnType.RICH_TEXT)
    if note:
        props[note] = content

    date_column = pick_first_column(columns, DATE_COLUMNS, ColumnType.DATE)
    if date_column:
        props[date_column] = today_iso(today)

    work_name = pick_first_column(columns, WORK_NAME_COLUMNS, ColumnType.RICH_TEXT)
    if work_name and work_name not in props:
        props[work_name] = title

    rating = extract_rating(content)
    rating_column = find_column_by_type(columns, ColumnType.NUMBER, RATING_COLUMNS)
    if rating_column and rating is not None:
        props[rating_column] = rating

    category = find_column_by_type(columns, ColumnType.SELECT, CATEGORY_COLUMNS)
    if category:
        props[category] = FREE_TEXT_CATEGORY

    return props


def build_default_properties(
    kind: DestinationKind,
    content: str,
    handle: DestinationHandle,
) -> PropertySet:
    """
    Propose properties for a "todo:" / "memo:" message.

    Only columns that exist in the live schema are filled.
    """
    props: PropertySet = {handle.title_column: extract_title(content)}

    if kind == DestinationKind.TASKS:
        if handle.has_column("Status"):
            props["Status"] = TASK_STATUS
        if handle.has_column("Priority"):
            props["Priority"] = TASK_PRIORITY
        if handle.has_column("Summary"):
            props["Summary"] = content
    elif kind == DestinationKind.KNOWLEDGE:
        if handle.has_column("Summary"):
            props["Summary"] = content
        if handle.has_column("Category"):
            props["Category"] = KNOWLEDGE_CATEGORY

    return props
