"""
Schema Renderer - Plain-text description of a destination's columns.

Used by the "schema: <name>" chat command so users can see which column
names and option labels the bot will match against.

Output:
=======
    DB: アニメ一覧
    ID: 0123456789abcdef0123456789abcdef
    Title列: 名前
    — 列一覧 —
    ・名前 : title
    ・ジャンル : select [アクション, コメディ]
"""

from typing import List

from app.environments.notion.schemas import DestinationHandle, ENUMERATED_TYPES


# LINE rejects text messages longer than 5000 characters
MAX_REPLY_LENGTH = 4700


class SchemaRenderer:
    """Renders a DestinationHandle as a chat-friendly column list."""

    def __init__(self, max_length: int = MAX_REPLY_LENGTH):
        self.max_length = max_length

    def render_text(self, handle: DestinationHandle) -> str:
        lines: List[str] = [
            f"DB: {handle.title or '(無題DB)'}",
            f"ID: {handle.database_id}",
            f"Title列: {handle.title_column}",
            "— 列一覧 —",
        ]
        for name, column in handle.columns.items():
            extra = ""
            if column.type in ENUMERATED_TYPES and column.options:
                extra = f" [{', '.join(column.options)}]"
            lines.append(f"・{name} : {column.raw_type}{extra}")

        return "\n".join(lines)[: self.max_length]
