"""Content indexing pipeline: caption media, persist the summary, add it to the index.

Steps for one item always run in order. Captioning only happens when the item
is media and lacks a usable summary; the index write is an atomic insert-if-absent
so indexing the same id twice leaves exactly one entry.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, replace
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from adintel.db.models.content_item import MEDIA_TYPES, ContentItem, ContentType
from adintel.db.models.indexing_job import JobStatus
from adintel.llm.vision import CaptioningClient
from adintel.services.content_service import ContentService
from adintel.vector.index import AddResult, VectorIndex

logger = logging.getLogger(__name__)

MIN_SUMMARY_LENGTH = 20
NO_DESCRIPTION = "No description available"

StageCallback = Callable[[JobStatus, str | None], Awaitable[None]]


class CaptioningFailedError(Exception):
    """The vision model returned no usable caption."""


@dataclass(frozen=True)
class IndexableItem:
    id: str
    type: str
    name: str = ""
    url: str | None = None
    caption: str | None = None
    summary: str | None = None
    category: str | None = None
    # For campaign items: the type of the attached media
    media_type: str | None = None
    thumbnail: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> IndexableItem:
        fields = cls.__dataclass_fields__
        return cls(**{key: value for key, value in payload.items() if key in fields})

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def effective_media_type(self) -> str | None:
        if self.type == ContentType.CAMPAIGN:
            return self.media_type
        return self.type

    @property
    def is_media(self) -> bool:
        return self.effective_media_type in MEDIA_TYPES


@dataclass(frozen=True)
class IndexingOutcome:
    summary: str
    captioned: bool
    result: AddResult | None = None
    # The content item was deleted before it could be indexed
    deleted: bool = False


def is_invalid_summary(summary: str | None, name: str | None) -> bool:
    return not summary or summary == name or len(summary) < MIN_SUMMARY_LENGTH


def needs_captioning(item: IndexableItem) -> bool:
    return is_invalid_summary(item.summary, item.name) and item.is_media and bool(item.url)


def index_metadata(item: IndexableItem) -> dict[str, Any]:
    return {
        "type": item.type,
        "name": item.name,
        "url": item.url or "",
        "category": item.category or "unknown",
        "hasMedia": item.is_media,
    }


class IndexingPipeline:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        captioner: CaptioningClient,
        vector_index: VectorIndex,
    ) -> None:
        self._session_maker = session_maker
        self._captioner = captioner
        self._vector_index = vector_index

    @staticmethod
    def prepare(item: IndexableItem) -> IndexableItem:
        """Campaign items never reuse their caption; the summary comes from the media."""
        if item.type == ContentType.CAMPAIGN:
            return replace(item, caption=None, summary=None)
        return item

    async def caption(self, item: IndexableItem) -> str:
        media_type = item.effective_media_type or ContentType.IMAGE
        caption = await self._captioner.describe_media(
            item.url or "", media_type, name=item.name or None, thumbnail=item.thumbnail
        )
        caption = (caption or "").strip()
        if not caption:
            raise CaptioningFailedError(f"Vision model returned no caption for {item.id}")
        logger.info("Generated summary for %s: %s...", item.id, caption[:100])
        return caption

    async def store_summary(self, item_id: str, summary: str) -> None:
        """Best-effort write; the index insert proceeds even if this fails."""
        try:
            async with self._session_maker() as session:
                updated = await ContentService(session).update_summary(item_id, summary)
                await session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to store summary for content item %s", item_id)
            return
        if not updated:
            logger.warning("Content item %s not found while storing its summary", item_id)

    async def add_to_index(self, item: IndexableItem, summary: str | None) -> AddResult:
        document = summary or item.name or NO_DESCRIPTION
        if await self._vector_index.document_exists(item.id):
            logger.info("Content item %s already indexed, skipping", item.id)
            return AddResult(added=0, skipped=1)
        return await self._vector_index.add_documents(
            ids=[item.id], documents=[document], metadatas=[index_metadata(item)]
        )

    async def item_exists(self, item_id: str) -> bool:
        async with self._session_maker() as session:
            return await session.get(ContentItem, item_id) is not None

    async def ensure_indexed(
        self,
        item: IndexableItem,
        *,
        captioned_summary: str | None = None,
        index: bool = True,
        require_item: bool = False,
        on_stage: StageCallback | None = None,
    ) -> IndexingOutcome:
        """Run the pipeline for one item.

        ``captioned_summary`` is a caption produced by an earlier attempt; when given,
        captioning is not repeated but the caption is still stored on the item. With
        ``index=False`` the pipeline stops after storing the caption. With
        ``require_item`` an item whose row has been deleted is never indexed. Errors
        propagate to the caller.
        """
        item = self.prepare(item)
        summary = captioned_summary or item.summary
        captioned = False

        if index and require_item and not await self.item_exists(item.id):
            logger.info("Content item %s no longer exists, not indexing it", item.id)
            return IndexingOutcome(summary=summary or "", captioned=False, deleted=True)

        if captioned_summary is None and needs_captioning(item):
            if on_stage is not None:
                await on_stage(JobStatus.CAPTIONING, None)
            summary = await self.caption(item)
            captioned = True
            if on_stage is not None:
                await on_stage(JobStatus.CAPTIONED, summary)
            await self.store_summary(item.id, summary)
        elif captioned_summary is not None:
            await self.store_summary(item.id, captioned_summary)

        if not index:
            return IndexingOutcome(summary=summary or "", captioned=captioned)

        # The row may have been deleted while the caption was generated
        if require_item and not await self.item_exists(item.id):
            logger.info("Content item %s was deleted during indexing", item.id)
            return IndexingOutcome(summary=summary or "", captioned=captioned, deleted=True)

        result = await self.add_to_index(item, summary)
        return IndexingOutcome(
            summary=summary or item.name or NO_DESCRIPTION, captioned=captioned, result=result
        )

    async def process_content(self, item: IndexableItem) -> IndexingOutcome:
        """Store the supplied summary (or a fallback) and index it without captioning."""
        summary = item.summary or item.name or NO_DESCRIPTION
        await self.store_summary(item.id, summary)
        result = await self.add_to_index(item, summary)
        return IndexingOutcome(summary=summary, captioned=False, result=result)
