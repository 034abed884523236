"""
Message Router - Classify an incoming chat message.

A pure function from (text, has_recent_location) to one of four route
decisions. No I/O happens here.

Routing order (first match wins):
=================================
1. NearbySearch   food / proximity keyword anywhere in the text
2. SchemaQuery    "schema: <name>" (case-insensitive prefix)
3. FreeTextSave   "... <name>のnotionに記録して" at the end of the text
4. DefaultSave    "todo:" / "タスク:" -> Tasks, "memo:" / "メモ:" -> Knowledge,
                  anything else -> Tasks

Examples:
=========
    classify("todo: 牛乳を買う", False)
    -> DefaultSave(kind=DestinationKind.TASKS, content="牛乳を買う")

    classify("鬼滅の刃 面白かった 9点 アニメ一覧のnotionに記録して", False)
    -> FreeTextSave(destination_name="アニメ一覧", content="鬼滅の刃 面白かった 9点 アニメ一覧")
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from app.schemas.save_request import DestinationKind


# ---------------------------------------------------------------------------
# PATTERNS
# ---------------------------------------------------------------------------

NEARBY_PATTERN = re.compile(r"近く|周辺|ランチ|ご飯|ラーメン|カレー")

SCHEMA_PATTERN = re.compile(r"^schema:\s*", re.IGNORECASE)

# "のnotionに記録して" / "のノーションに保存してください。" at the very end
SAVE_SUFFIX_PATTERN = re.compile(
    r"\s*[のノ]\s*(?:notion|ノーション)\s*に\s*(?:記録|登録|保存)"
    r"(?:して|してね|してください)?[。.!！]?$",
    re.IGNORECASE,
)

# Last token before the suffix: no whitespace or sentence punctuation
TRAILING_TOKEN_PATTERN = re.compile(r"[^\s。．、,]+$")

# (prefix, kind); matched against the lower-cased text
DEFAULT_PREFIXES: Tuple[Tuple[str, DestinationKind], ...] = (
    ("todo:", DestinationKind.TASKS),
    ("タスク:", DestinationKind.TASKS),
    ("memo:", DestinationKind.KNOWLEDGE),
    ("メモ:", DestinationKind.KNOWLEDGE),
)


# ---------------------------------------------------------------------------
# ROUTE DECISIONS
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NearbySearch:
    """Look up places near the sender's last shared location."""
    query: str
    needs_location: bool = False


@dataclass(frozen=True)
class SchemaQuery:
    """Describe a database's columns. An empty name is a usage error."""
    name: str

    @property
    def is_usage_error(self) -> bool:
        return not self.name


@dataclass(frozen=True)
class FreeTextSave:
    """Save content into a database found by name."""
    destination_name: str
    content: str


@dataclass(frozen=True)
class DefaultSave:
    """Save content into one of the configured destinations."""
    kind: DestinationKind
    content: str


RouteDecision = Union[NearbySearch, SchemaQuery, FreeTextSave, DefaultSave]


# ---------------------------------------------------------------------------
# PARSERS
# ---------------------------------------------------------------------------

def parse_free_text_save(text: str) -> Optional[FreeTextSave]:
    """
    Detect a trailing "<name>のnotionに記録して" command.

    The database name is the last token before the suffix. The content is
    the whole text before the suffix, name included.

    Returns:
        FreeTextSave, or None if the text does not end with the command
    """
    match = SAVE_SUFFIX_PATTERN.search(text)
    if not match:
        return None

    prefix = text[: match.start()].strip()
    if not prefix:
        return None

    token = TRAILING_TOKEN_PATTERN.search(prefix)
    name = token.group(0) if token else prefix

    return FreeTextSave(destination_name=name, content=prefix)


def parse_default_save(text: str) -> DefaultSave:
    """Pick the default destination from the message prefix."""
    lowered = text.lower()
    for prefix, kind in DEFAULT_PREFIXES:
        if lowered.startswith(prefix):
            return DefaultSave(kind=kind, content=text[len(prefix):].strip())
    return DefaultSave(kind=DestinationKind.TASKS, content=text)


def classify(text: str, has_recent_location: bool) -> RouteDecision:
    """
    Classify a message. Total and deterministic.

    Args:
        text: Raw message text
        has_recent_location: Whether the sender shared a location recently

    Returns:
        The route decision for the first matching rule
    """
    text = (text or "").strip()

    if NEARBY_PATTERN.search(text):
        return NearbySearch(query=text, needs_location=not has_recent_location)

    if SCHEMA_PATTERN.match(text):
        return SchemaQuery(name=SCHEMA_PATTERN.sub("", text, count=1).strip())

    free_text = parse_free_text_save(text)
    if free_text is not None:
        return free_text

    return parse_default_save(text)
