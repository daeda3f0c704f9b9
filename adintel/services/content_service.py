"""Content item service - persistence for library and inspiration items."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from adintel.core.errors import ServiceError
from adintel.db.models.content_item import ContentItem
from adintel.db.models.indexing_job import RESUMABLE_JOB_STATUSES, IndexingJob, JobStatus

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"category", "type", "name", "url", "thumbnail", "text_content"})


class ContentNotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Content item '{item_id}' not found", "content_not_found")


class ContentService:
    """Session-scoped CRUD for content items."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_items(self, category: str | None = None) -> list[ContentItem]:
        stmt = select(ContentItem).order_by(ContentItem.created_at.desc())
        if category:
            stmt = stmt.where(ContentItem.category == category)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_item(self, item_id: str) -> ContentItem:
        item = await self._session.get(ContentItem, item_id)
        if item is None:
            raise ContentNotFoundError(item_id)
        return item

    async def create_item(self, **fields: Any) -> ContentItem:
        item = ContentItem(**{key: value for key, value in fields.items() if value is not None})
        self._session.add(item)
        await self._session.flush()
        return item

    async def upsert_item(self, item_id: str, **fields: Any) -> ContentItem:
        """Create the item with ``item_id`` or overwrite the given fields of an existing one."""
        item = await self._session.get(ContentItem, item_id)
        if item is None:
            return await self.create_item(id=item_id, **fields)
        for key, value in fields.items():
            setattr(item, key, value)
        await self._session.flush()
        return item

    async def update_item(self, item_id: str, changes: dict[str, Any]) -> ContentItem:
        item = await self.get_item(item_id)
        for key, value in changes.items():
            if key in UPDATABLE_FIELDS:
                setattr(item, key, value)
        await self._session.flush()
        return item

    async def update_summary(self, item_id: str, summary: str) -> bool:
        """Store a generated summary; returns False when the item no longer exists."""
        result = await self._session.execute(
            update(ContentItem).where(ContentItem.id == item_id).values(text_content=summary)
        )
        return bool(result.rowcount)

    async def set_index_status(self, item_id: str, index_status: str) -> None:
        await self._session.execute(
            update(ContentItem).where(ContentItem.id == item_id).values(index_status=index_status)
        )

    async def delete_item(self, item_id: str) -> ContentItem:
        """Delete the row and mark its unfinished indexing jobs skipped.

        The index entry is dropped by the caller once this transaction commits.
        """
        item = await self.get_item(item_id)
        await self._session.delete(item)
        result = await self._session.execute(
            update(IndexingJob)
            .where(
                IndexingJob.content_item_id == item_id,
                IndexingJob.status.in_(RESUMABLE_JOB_STATUSES),
            )
            .values(status=JobStatus.SKIPPED, last_error="Content item deleted")
        )
        if result.rowcount:
            logger.info("Skipped %d unfinished indexing job(s) for %s", result.rowcount, item_id)
        await self._session.flush()
        return item


def content_service_factory_provider() -> Callable[[AsyncSession], ContentService]:
    """Registry entry: builds a ContentService bound to the request's session."""

    def factory(session: AsyncSession) -> ContentService:
        return ContentService(session)

    return factory
