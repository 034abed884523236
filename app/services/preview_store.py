"""
Preview Store - Stage save requests until the user confirms them.

Flow:
1. A message is routed and its properties are built
2. The SaveRequest is staged under a fresh token (10 min TTL)
3. The preview card's 保存 button posts back "save:<token>"
4. consume() returns the staged request exactly once

A consumed or expired token both read as "not found"; callers cannot
tell the two apart. There is no update operation: a correction is sent
as a new message and staged under a new token.

Known gap: two confirmations racing on the same token are only kept
apart by the store's own pop atomicity (GETDEL on Redis).
"""

import logging
import uuid
from typing import Optional

from pydantic import ValidationError

from app.schemas.save_request import SaveRequest
from app.services.kv_store import KeyValueStore


logger = logging.getLogger("notebridge.services.preview_store")

PREVIEW_PREFIX = "preview:"


class PreviewStore:
    """
    Stages SaveRequest values in a KeyValueStore under one-shot tokens.

    Attributes:
        store: Durable store holding preview:<token> keys
        ttl_seconds: How long a staged preview stays confirmable
    """

    TTL_SECONDS = 600

    def __init__(self, store: KeyValueStore, ttl_seconds: int = TTL_SECONDS):
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def stage(self, request: SaveRequest) -> str:
        """
        Stage a request and return its preview token.

        Args:
            request: Normalized write intent

        Returns:
            Fresh, unique token
        """
        token = str(uuid.uuid4())
        await self.store.put(
            f"{PREVIEW_PREFIX}{token}",
            request.model_dump_json(),
            ttl_seconds=self.ttl_seconds,
        )

        logger.info(
            f"Staged preview for '{request.destination.label}'",
            extra={"token": token[:8], "expires_in": self.ttl_seconds},
        )
        return token

    async def consume(self, token: str) -> Optional[SaveRequest]:
        """
        Return the staged request and forget it.

        Args:
            token: Token returned by stage()

        Returns:
            The staged SaveRequest, or None if expired or already consumed
        """
        raw = await self.store.pop(f"{PREVIEW_PREFIX}{token}")
        if raw is None:
            logger.info(f"Preview {token[:8]} not found (expired or consumed)")
            return None

        try:
            return SaveRequest.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Discarding unreadable preview {token[:8]}")
            return None
