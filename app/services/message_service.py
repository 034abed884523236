"""
Message Service - Turn one inbound chat event into one reply.

This is the routing boundary: every integration failure raised below is
caught here and converted into a user-facing text reply. Operator detail
goes to the log, never to the user.

Flow:
=====
text ─► classify ─┬─ NearbySearch ─► location cache ─► nearby places
                  ├─ SchemaQuery  ─► resolve by name ─► schema text
                  ├─ FreeTextSave ─► resolve by name ─► build ─► stage
                  └─ DefaultSave  ─► resolve symbolic ─► build ─► stage

save:<token> ─► consume ─► re-resolve ─► serialize ─► create page

Usage:
    service = MessageService(resolver, previews, locations, notion)
    reply = await service.handle_text("U123", "todo: 牛乳を買う")
"""

import logging
from typing import Optional

from app.environments.base import (
    AuthError,
    ConfigError,
    IntegrationError,
    NotFoundError,
    UpstreamError,
)
from app.environments.notion.client import NotionClient
from app.environments.notion.renderer import SchemaRenderer
from app.environments.notion.serializer import serialize_properties
from app.schemas.save_request import DestinationReference, SaveRequest
from app.services.destination_resolver import DestinationResolver
from app.services.location_service import LocationService, search_nearby
from app.services.message_router import (
    DefaultSave,
    FreeTextSave,
    NearbySearch,
    SchemaQuery,
    classify,
)
from app.services.preview_store import PreviewStore
from app.services.property_builder import build_default_properties, build_free_text_properties
from app.services.reply import Reply, ReplyType


logger = logging.getLogger("notebridge.services.message")


# ---------------------------------------------------------------------------
# USER-FACING MESSAGES
# ---------------------------------------------------------------------------

ASK_FOR_LOCATION = "近くのおすすめを出すには位置情報を送ってね！"
SCHEMA_USAGE = "使い方: schema: アニメ一覧"
SCHEMA_NOT_FOUND = "DBを見つけられない/取得できないみたい。\n\"{name}\" が Integration に接続されているか、名前を確認してね。"
FREE_TEXT_NOT_FOUND = "ごめん、そのDBが見つからないか接続されてないみたい：{name}"
DEFAULT_UNAVAILABLE = "保存先DB ({kind}) の設定が見つからないか、権限エラーかも。"
PREVIEW_EXPIRED = "保存期限が切れました。もう一度送ってね"
SAVED = "保存したよ！\n{url}"
SAVE_NOT_FOUND = "保存先DBが見つからなかったよ。名前を確認してもう一度送ってね"
SAVE_MISCONFIGURED = "ごめん、保存先の設定に問題があるみたい。"
SAVE_FAILED = "Notionへの保存に失敗したみたい。DBの接続・ID・列名/型を確認してもう一度！"
STORE_UNAVAILABLE = "ごめん、いま一時的に受け付けられないみたい。少し待ってもう一度送ってね"

# KeyValueStore backends report outages as UpstreamError; raw socket errors
# from other implementations are handled the same way.
RECOVERABLE_ERRORS = (IntegrationError, OSError)


class MessageService:
    """
    Handles text, location, and save-button events.

    Attributes:
        resolver: Resolves destinations and fetches live schemas
        previews: Stages and consumes save requests
        locations: Caches sender locations
        notion: Creates pages on confirmed saves
    """

    def __init__(
        self,
        resolver: DestinationResolver,
        previews: PreviewStore,
        locations: LocationService,
        notion: NotionClient,
        renderer: Optional[SchemaRenderer] = None,
    ):
        self.resolver = resolver
        self.previews = previews
        self.locations = locations
        self.notion = notion
        self.renderer = renderer or SchemaRenderer()

    # -------------------------------------------------------------------------
    # LOCATION EVENTS
    # -------------------------------------------------------------------------

    async def handle_location(self, sender_id: str, latitude: float, longitude: float) -> Reply:
        """
        Cache the sender's position and answer with nearby places.

        The places are sent even if the position could not be cached.
        """
        try:
            await self.locations.remember(sender_id, latitude, longitude)
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Could not cache location for {sender_id[:8]}: {e}")
        places = await search_nearby(latitude, longitude)
        return Reply(reply_type=ReplyType.NEARBY_RESULTS, text="近くのおすすめ", places=places)

    # -------------------------------------------------------------------------
    # TEXT EVENTS
    # -------------------------------------------------------------------------

    async def handle_text(self, sender_id: str, text: str) -> Reply:
        """
        Route a text message and build the reply.

        Args:
            sender_id: LINE user ID of the sender
            text: Message text

        Returns:
            Reply ready for the transport layer
        """
        text = (text or "").strip()
        try:
            location = await self.locations.recent(sender_id)
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Location lookup failed for {sender_id[:8]}: {e}")
            location = None
        decision = classify(text, has_recent_location=location is not None)

        logger.info(f"Routed message from {sender_id[:8]} as {type(decision).__name__}")

        if isinstance(decision, NearbySearch):
            if decision.needs_location or location is None:
                return Reply(reply_type=ReplyType.LOCATION_REQUEST, text=ASK_FOR_LOCATION)
            places = await search_nearby(location.latitude, location.longitude, decision.query)
            return Reply(reply_type=ReplyType.NEARBY_RESULTS, text="近くのおすすめ", places=places)

        if isinstance(decision, SchemaQuery):
            return await self._describe_schema(decision)

        if isinstance(decision, FreeTextSave):
            return await self._preview_free_text(decision)

        return await self._preview_default(decision)

    async def _describe_schema(self, decision: SchemaQuery) -> Reply:
        if decision.is_usage_error:
            return Reply.of_text(SCHEMA_USAGE)

        try:
            handle = await self.resolver.resolve_by_name(decision.name)
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Schema lookup failed for '{decision.name}': {e}", exc_info=True)
            return Reply.of_text(SCHEMA_NOT_FOUND.format(name=decision.name))

        return Reply.of_text(self.renderer.render_text(handle))

    async def _preview_free_text(self, decision: FreeTextSave) -> Reply:
        reference = DestinationReference.free_text(decision.destination_name)
        try:
            handle = await self.resolver.resolve(reference)
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Free-text preview failed for '{decision.destination_name}': {e}", exc_info=True)
            return Reply.of_text(FREE_TEXT_NOT_FOUND.format(name=decision.destination_name))

        properties = build_free_text_properties(decision.content, handle)
        return await self._stage(SaveRequest(destination=reference, properties=properties))

    async def _preview_default(self, decision: DefaultSave) -> Reply:
        reference = DestinationReference.symbolic(decision.kind)
        try:
            handle = await self.resolver.resolve(reference)
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Default preview failed for {decision.kind.value}: {e}", exc_info=True)
            return Reply.of_text(DEFAULT_UNAVAILABLE.format(kind=decision.kind.value))

        properties = build_default_properties(decision.kind, decision.content, handle)
        return await self._stage(SaveRequest(destination=reference, properties=properties))

    async def _stage(self, request: SaveRequest) -> Reply:
        try:
            token = await self.previews.stage(request)
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Could not stage preview for '{request.destination.label}': {e}", exc_info=True)
            return Reply.of_text(STORE_UNAVAILABLE)

        return Reply(
            reply_type=ReplyType.PREVIEW,
            text=f"DB: {request.destination.label}",
            preview_token=token,
            request=request,
        )

    # -------------------------------------------------------------------------
    # SAVE BUTTON
    # -------------------------------------------------------------------------

    async def handle_save(self, token: str) -> Reply:
        """
        Commit a staged preview.

        The destination is resolved again and the properties are encoded
        against the schema as it is now, not as it was at preview time.
        """
        try:
            request = await self.previews.consume(token)
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Could not read preview {token[:8]}: {e}", exc_info=True)
            return Reply.of_text(STORE_UNAVAILABLE)

        if request is None:
            return Reply.of_text(PREVIEW_EXPIRED)

        try:
            handle = await self.resolver.resolve(request.destination)
            wire = serialize_properties(request.properties, handle.title_column, handle.columns)
            page = await self.notion.create_page(handle.database_id, wire)
        except NotFoundError as e:
            logger.error(f"Save target vanished: {e}")
            return Reply.of_text(SAVE_NOT_FOUND)
        except ConfigError as e:
            logger.error(f"Save target not configured: {e}")
            return Reply.of_text(SAVE_MISCONFIGURED)
        except (AuthError, UpstreamError, OSError) as e:
            logger.error(f"Save failed: {e}", exc_info=True)
            return Reply.of_text(SAVE_FAILED)

        return Reply(
            reply_type=ReplyType.SAVED,
            text=SAVED.format(url=page.url or ""),
            url=page.url,
        )
