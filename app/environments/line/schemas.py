"""
LINE Webhook Schemas - The inbound event envelope.

Only the fields the bot reads are modelled; everything else LINE sends
is ignored.

Reference: https://developers.line.biz/en/reference/messaging-api/#webhook-event-objects
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventSource(BaseModel):
    """Who sent the event."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = "user"
    user_id: Optional[str] = Field(None, alias="userId")


class EventMessage(BaseModel):
    """A text or location message."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    type: str
    text: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None


class Postback(BaseModel):
    """Data attached to a postback button."""
    model_config = ConfigDict(extra="ignore")

    data: str = ""


class WebhookEvent(BaseModel):
    """One event inside a webhook call."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    reply_token: Optional[str] = Field(None, alias="replyToken")
    source: Optional[EventSource] = None
    message: Optional[EventMessage] = None
    postback: Optional[Postback] = None

    @property
    def sender_id(self) -> str:
        return (self.source.user_id if self.source else None) or "anon"

    def is_text(self) -> bool:
        return self.type == "message" and self.message is not None and self.message.type == "text"

    def is_location(self) -> bool:
        return (
            self.type == "message"
            and self.message is not None
            and self.message.type == "location"
            and self.message.latitude is not None
            and self.message.longitude is not None
        )

    def save_token(self) -> Optional[str]:
        """Preview token of a "save:<token>" postback, if this is one."""
        if self.type != "postback" or self.postback is None:
            return None
        if not self.postback.data.startswith("save:"):
            return None
        return self.postback.data.split(":", 1)[1] or None


class WebhookBody(BaseModel):
    """Top-level webhook payload."""
    model_config = ConfigDict(extra="ignore")

    destination: Optional[str] = None
    events: List[WebhookEvent] = Field(default_factory=list)
