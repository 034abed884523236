"""
Save request schemas - the write intent staged behind a preview.

A SaveRequest is what gets persisted under a preview token and replayed
verbatim when the user presses 保存. It is validated against the live
destination schema only at commit time, never when staged.
"""

from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field


class DestinationKind(str, Enum):
    """Destinations bound at configuration time (NOTION_DB_<KIND>)."""
    TASKS = "Tasks"
    KNOWLEDGE = "Knowledge"


# A candidate value for one column. Order matters for pydantic's smart
# union: bool before int keeps True from turning into 1 on reload.
PropertyValue = Union[bool, int, float, str, List[str], List[Dict[str, Any]]]

# Column name -> candidate value, in insertion order
PropertySet = Dict[str, PropertyValue]


class DestinationReference(BaseModel):
    """
    Where a record should go.

    Either a symbolic kind ("Tasks") resolved through configuration, or a
    free-text database name resolved through search.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    by_name: bool = False

    @classmethod
    def symbolic(cls, kind: DestinationKind) -> "DestinationReference":
        return cls(name=kind.value, by_name=False)

    @classmethod
    def free_text(cls, name: str) -> "DestinationReference":
        return cls(name=name, by_name=True)

    @property
    def label(self) -> str:
        """Label shown in the preview card."""
        return f"{self.name} (by name)" if self.by_name else self.name


class SaveRequest(BaseModel):
    """A complete, normalized write intent."""
    model_config = ConfigDict(frozen=True)

    destination: DestinationReference
    properties: PropertySet = Field(default_factory=dict)
