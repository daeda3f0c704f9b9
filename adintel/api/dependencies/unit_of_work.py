"""Unit of Work: one transaction per request, session-scoped services from registry."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, cast

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from adintel.db.session import Database
from adintel.services.campaign_service import CampaignService
from adintel.services.content_service import ContentService


class UnitOfWork:
    """Holds the request's session and exposes session-scoped services from the registry."""

    def __init__(self, session: AsyncSession, services: dict[str, Any]) -> None:
        self._session = session
        self._services = services
        self._content_service: ContentService | None = None
        self._campaign_service: CampaignService | None = None

    def _resolve(self, key: str) -> Any:
        service = self._services[key]
        if callable(service):
            return service(self._session)
        return service

    @property
    def content_service(self) -> ContentService:
        """Session-scoped content item service."""
        if self._content_service is None:
            self._content_service = cast(ContentService, self._resolve("content_service"))
        return self._content_service

    @property
    def campaign_service(self) -> CampaignService:
        """Session-scoped campaign service."""
        if self._campaign_service is None:
            self._campaign_service = cast(CampaignService, self._resolve("campaign_service"))
        return self._campaign_service

    async def commit(self) -> None:
        """Commit early, e.g. before handing ids to background work."""
        await self._session.commit()


async def get_uow(request: Request) -> AsyncIterator[UnitOfWork]:
    """Per-request dependency: one session, commit on success, rollback on exception."""
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        try:
            yield UnitOfWork(session, request.app.state.services)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
