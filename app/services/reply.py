"""
Reply Types - What the message service hands back to the transport layer.

Each routed outcome is a plain value. The LINE adapter turns it into
message objects (app/environments/line/messages.py); nothing in the
service layer knows about flex bubbles or reply tokens.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from app.schemas.save_request import SaveRequest
from app.services.location_service import NearbyPlace


class ReplyType(str, Enum):
    """Kinds of replies the service produces."""
    TEXT = "text"
    LOCATION_REQUEST = "location_request"
    NEARBY_RESULTS = "nearby_results"
    PREVIEW = "preview"
    SAVED = "saved"


@dataclass
class Reply:
    """
    Result of handling one inbound event.

    Attributes:
        reply_type: Which kind of reply this is
        text: Human-readable text (always set)
        places: Nearby places for NEARBY_RESULTS
        preview_token: Token to confirm for PREVIEW
        request: Staged request shown in a PREVIEW
        url: Created page URL for SAVED
    """
    reply_type: ReplyType
    text: str = ""
    places: List[NearbyPlace] = field(default_factory=list)
    preview_token: Optional[str] = None
    request: Optional[SaveRequest] = None
    url: Optional[str] = None

    @classmethod
    def of_text(cls, text: str) -> "Reply":
        return cls(reply_type=ReplyType.TEXT, text=text)
