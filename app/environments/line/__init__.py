"""
LINE Module - Messaging API integration.

Features:
=========
- Webhook envelope parsing and signature verification
- Reply API client with flex -> text fallback
- Rendering of service replies as LINE message objects
"""

from app.environments.line.client import LineMessagingClient, verify_signature
from app.environments.line.schemas import (
    EventMessage,
    EventSource,
    Postback,
    WebhookBody,
    WebhookEvent,
)

__all__ = [
    "LineMessagingClient",
    "verify_signature",
    "EventMessage",
    "EventSource",
    "Postback",
    "WebhookBody",
    "WebhookEvent",
]
