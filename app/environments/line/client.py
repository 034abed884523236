"""
LINE Messaging API Client - Send replies to webhook events.

Replies use the event's reply token, which is valid once and only for a
short time, so each event is answered with a single reply call carrying
up to five message objects.

API Reference:
==============
- Reply: https://developers.line.biz/en/reference/messaging-api/#send-reply-message
- Bot info: https://developers.line.biz/en/reference/messaging-api/#get-bot-info

Usage Example:
==============
    from app.environments.line import LineMessagingClient

    client = LineMessagingClient(channel_token="xxx")
    await client.reply_text(event.reply_token, "保存したよ！")
"""

import base64
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.environments.base import EnvironmentService


logger = logging.getLogger("notebridge.environments.line")


def verify_signature(channel_secret: str, body: bytes, signature: Optional[str]) -> bool:
    """
    Check the X-Line-Signature header of a webhook call.

    Args:
        channel_secret: Channel secret from the LINE console
        body: Raw request body
        signature: Header value (base64 HMAC-SHA256)

    Returns:
        True if the signature matches the body
    """
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("utf-8")
    return hmac.compare_digest(expected, signature)


class LineMessagingClient(EnvironmentService):
    """
    LINE Messaging API client.

    Delivery failures are logged and reported as False; they are never
    retried because the reply token cannot be reused after success.
    """

    service_name = "line"

    BASE_URL = "https://api.line.me/v2/bot"

    # Characters of the flex JSON echoed back when a flex reply is rejected
    FALLBACK_PREVIEW_LENGTH = 800

    def __init__(
        self,
        channel_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.channel_token = channel_token
        self.timeout = timeout
        self._transport = transport

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.channel_token}",
            "Content-Type": "application/json",
        }

    async def _post(self, endpoint: str, json_body: dict) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            return await client.post(
                f"{self.BASE_URL}{endpoint}",
                headers=self._get_headers(),
                json=json_body,
            )

    # -------------------------------------------------------------------------
    # REPLIES
    # -------------------------------------------------------------------------

    async def reply(self, reply_token: str, messages: List[Dict[str, Any]]) -> bool:
        """
        Send message objects as the reply to an event.

        Args:
            reply_token: Token from the webhook event
            messages: One to five LINE message objects

        Returns:
            True if LINE accepted the reply
        """
        try:
            response = await self._post(
                "/message/reply",
                {"replyToken": reply_token, "messages": messages[:5]},
            )
        except httpx.RequestError as e:
            logger.error(f"Network error in LINE reply: {e}")
            return False

        if not response.is_success:
            logger.error(f"LINE reply error: {response.status_code} - {response.text}")
            return False
        return True

    async def reply_text(self, reply_token: str, text: str) -> bool:
        return await self.reply(reply_token, [{"type": "text", "text": text}])

    async def reply_flex(self, reply_token: str, contents: Dict[str, Any], alt_text: str = "プレビュー") -> bool:
        """
        Reply with a flex message, falling back to plain text if rejected.

        LINE does not consume the reply token when it rejects a message,
        so the fallback can still be delivered.
        """
        sent = await self.reply(
            reply_token,
            [{"type": "flex", "altText": alt_text, "contents": contents}],
        )
        if sent:
            return True

        dump = json.dumps(contents, ensure_ascii=False)[: self.FALLBACK_PREVIEW_LENGTH]
        return await self.reply_text(
            reply_token,
            "プレビュー送信に失敗したのでテキストで返します：\n" + dump,
        )

    # -------------------------------------------------------------------------
    # VALIDATION
    # -------------------------------------------------------------------------

    async def validate_access(self) -> bool:
        """Check the channel token with GET /info."""
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.get(f"{self.BASE_URL}/info", headers=self._get_headers())
        except httpx.RequestError as e:
            logger.error(f"Network error checking LINE token: {e}")
            return False
        return response.is_success
