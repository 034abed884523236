"""
LINE Message Builders - Render service replies as LINE message objects.

    TEXT / SAVED       plain text
    LOCATION_REQUEST   text + quick reply "現在地を送る"
    NEARBY_RESULTS     flex carousel, one bubble per place
    PREVIEW            flex bubble with 保存 (postback) and 修正する buttons

Reference: https://developers.line.biz/en/docs/messaging-api/flex-message-elements/
"""

import json
from typing import Any, Dict, List

from app.environments.line.client import LineMessagingClient
from app.schemas.save_request import SaveRequest
from app.services.location_service import NearbyPlace
from app.services.reply import Reply, ReplyType


# Property lines shown in a preview bubble
MAX_PREVIEW_LINES = 10


def text_message(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def location_request_messages(text: str) -> List[Dict[str, Any]]:
    return [
        text_message(text),
        {
            "type": "text",
            "text": "現在地を送ってください",
            "quickReply": {
                "items": [{"type": "action", "action": {"type": "location", "label": "現在地を送る"}}]
            },
        },
    ]


def _format_value(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(
            json.dumps(item, ensure_ascii=False) if isinstance(item, dict) else str(item)
            for item in value
        )
    return str(value)


def preview_bubble(request: SaveRequest, token: str) -> Dict[str, Any]:
    """Bubble listing the staged properties with save / edit buttons."""
    lines = [
        f"{key}: {_format_value(value)}"
        for key, value in list(request.properties.items())[:MAX_PREVIEW_LINES]
    ]
    return {
        "type": "bubble",
        "body": {
            "type": "box",
            "layout": "vertical",
            "contents": [
                {"type": "text", "text": f"DB: {request.destination.label}", "weight": "bold", "size": "md"},
                *[{"type": "text", "text": line, "wrap": True} for line in lines],
                {"type": "separator", "margin": "md"},
                {"type": "text", "text": "OKなら保存を押してね。修正があれば続けて送ってください。", "wrap": True},
            ],
        },
        "footer": {
            "type": "box",
            "layout": "horizontal",
            "spacing": "md",
            "contents": [
                {
                    "type": "button",
                    "style": "primary",
                    "action": {"type": "postback", "label": "保存", "data": f"save:{token}"},
                },
                {
                    "type": "button",
                    "style": "secondary",
                    "action": {"type": "message", "label": "修正する", "text": "修正: ここに変更点を書いて"},
                },
            ],
        },
    }


def nearby_carousel(places: List[NearbyPlace]) -> Dict[str, Any]:
    """Carousel with one bubble per place."""
    return {
        "type": "carousel",
        "contents": [
            {
                "type": "bubble",
                "hero": {
                    "type": "image",
                    "url": place.photo,
                    "size": "full",
                    "aspectMode": "cover",
                    "aspectRatio": "16:9",
                },
                "body": {
                    "type": "box",
                    "layout": "vertical",
                    "contents": [
                        {"type": "text", "text": place.name, "weight": "bold", "size": "lg"},
                        {
                            "type": "text",
                            "text": f"★{place.rating if place.rating is not None else '-'} ・ {place.distance}",
                            "size": "sm",
                            "color": "#888888",
                        },
                        {"type": "text", "text": f"営業時間：{place.hours or '不明'}", "size": "sm", "wrap": True},
                    ],
                },
                "footer": {
                    "type": "box",
                    "layout": "vertical",
                    "contents": [
                        {
                            "type": "button",
                            "style": "link",
                            "action": {"type": "uri", "label": "Googleマップで開く", "uri": place.url},
                        }
                    ],
                },
            }
            for place in places
        ],
    }


async def deliver(client: LineMessagingClient, reply_token: str, reply: Reply) -> bool:
    """
    Send a service Reply as the answer to one webhook event.

    Returns:
        True if LINE accepted the reply (or its text fallback)
    """
    if reply.reply_type == ReplyType.PREVIEW and reply.request is not None and reply.preview_token:
        return await client.reply_flex(reply_token, preview_bubble(reply.request, reply.preview_token))

    if reply.reply_type == ReplyType.NEARBY_RESULTS and reply.places:
        return await client.reply_flex(reply_token, nearby_carousel(reply.places), alt_text=reply.text)

    if reply.reply_type == ReplyType.LOCATION_REQUEST:
        return await client.reply(reply_token, location_request_messages(reply.text))

    return await client.reply_text(reply_token, reply.text)
