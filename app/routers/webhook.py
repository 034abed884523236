"""
Webhook Router - LINE webhook endpoint.

This router only does HTTP handling: verify, parse, dispatch each event to
MessageService, and deliver the reply through the LINE client. All
business logic lives in app/services/message_service.py.

LINE expects a 200 for every delivery, so the endpoint always answers
"ok". Malformed bodies are logged and skipped; a failing event is logged
and answered with a short apology.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from app.core.config import settings
from app.deps import get_line_client, get_message_service
from app.environments.line.client import LineMessagingClient, verify_signature
from app.environments.line.messages import deliver
from app.environments.line.schemas import WebhookBody, WebhookEvent
from app.services.message_service import MessageService
from app.services.reply import Reply


# ---------------------------------------------------------------------------
# LOGGER SETUP
# ---------------------------------------------------------------------------
logger = logging.getLogger("notebridge.routers.webhook")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(tags=["webhook"])

# Sent when an event fails in a way the message service did not handle
EVENT_FAILED = "ごめん、うまく処理できなかったみたい。もう一度送ってね"


async def _handle_event(event: WebhookEvent, service: MessageService) -> Optional[Reply]:
    """Dispatch one event. Returns None for events the bot ignores."""
    if event.is_location():
        return await service.handle_location(
            event.sender_id,
            event.message.latitude,
            event.message.longitude,
        )

    if event.is_text():
        return await service.handle_text(event.sender_id, event.message.text or "")

    token = event.save_token()
    if token:
        return await service.handle_save(token)

    return None


@router.post("/line-webhook", response_class=PlainTextResponse)
async def line_webhook(
    request: Request,
    service: MessageService = Depends(get_message_service),
    line: LineMessagingClient = Depends(get_line_client),
):
    """
    Receive LINE webhook events.

    Handles text messages, location messages, and "save:<token>" postbacks.
    """
    raw = await request.body()

    if settings.LINE_CHANNEL_SECRET and not verify_signature(
        settings.LINE_CHANNEL_SECRET, raw, request.headers.get("X-Line-Signature")
    ):
        logger.warning("Rejected webhook call with a bad signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        body = WebhookBody.model_validate_json(raw or b"{}")
    except ValidationError as e:
        logger.warning(f"Ignoring malformed webhook body: {e}")
        return "ok"

    for event in body.events:
        try:
            reply = await _handle_event(event, service)
            if reply is not None and event.reply_token:
                await deliver(line, event.reply_token, reply)
        except Exception as e:
            logger.error(f"Failed to handle {event.type} event: {e}", exc_info=True)
            if event.reply_token:
                await line.reply_text(event.reply_token, EVENT_FAILED)

    return "ok"
