"""Campaign service - campaigns and their chat history."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from adintel.core.errors import ServiceError
from adintel.db.models._common import utcnow
from adintel.db.models.campaign import Campaign
from adintel.db.models.chat_message import ChatMessage


class CampaignNotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, campaign_id: str) -> None:
        super().__init__(f"Campaign '{campaign_id}' not found", "campaign_not_found")


@dataclass(frozen=True)
class CampaignMedia:
    type: str
    url: str
    name: str | None = None


def campaign_media(campaign: Campaign) -> CampaignMedia | None:
    if not campaign.media_type or not campaign.media_url:
        return None
    return CampaignMedia(campaign.media_type, campaign.media_url, campaign.media_name)


def campaign_context(campaign: Campaign) -> dict[str, Any]:
    """Plain-dict view of a campaign as the assistant sees it."""
    media = campaign_media(campaign)
    return {
        "id": campaign.id,
        "caption": campaign.caption,
        "media": {"type": media.type, "url": media.url, "name": media.name} if media else None,
    }


class CampaignService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_campaigns(self) -> list[Campaign]:
        result = await self._session.execute(
            select(Campaign).order_by(Campaign.updated_at.desc())
        )
        return list(result.scalars().all())

    async def get_campaign(self, campaign_id: str) -> Campaign:
        campaign = await self._session.get(Campaign, campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(campaign_id)
        return campaign

    async def create_campaign(
        self, caption: str = "", media: CampaignMedia | None = None
    ) -> Campaign:
        campaign = Campaign(caption=caption)
        self._apply_media(campaign, media)
        self._session.add(campaign)
        await self._session.flush()
        return campaign

    async def update_campaign(
        self,
        campaign_id: str,
        *,
        caption: str | None = None,
        media: CampaignMedia | None = None,
        clear_media: bool = False,
    ) -> Campaign:
        """Apply the given changes; ``clear_media`` detaches any media."""
        campaign = await self.get_campaign(campaign_id)
        if caption is not None:
            campaign.caption = caption
        if media is not None or clear_media:
            self._apply_media(campaign, media)
        await self._session.flush()
        return campaign

    async def delete_campaign(self, campaign_id: str) -> None:
        campaign = await self.get_campaign(campaign_id)
        # SQLite does not enforce ON DELETE CASCADE unless foreign keys are switched on
        await self._session.execute(
            delete(ChatMessage).where(ChatMessage.campaign_id == campaign_id)
        )
        await self._session.delete(campaign)
        await self._session.flush()

    @staticmethod
    def _apply_media(campaign: Campaign, media: CampaignMedia | None) -> None:
        campaign.media_type = media.type if media else None
        campaign.media_url = media.url if media else None
        campaign.media_name = media.name if media else None

    async def list_messages(self, campaign_id: str | None) -> list[ChatMessage]:
        stmt = select(ChatMessage).order_by(ChatMessage.created_at)
        if campaign_id is None:
            stmt = stmt.where(ChatMessage.campaign_id.is_(None))
        else:
            stmt = stmt.where(ChatMessage.campaign_id == campaign_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def add_messages(
        self, campaign_id: str | None, messages: Sequence[tuple[str, str]]
    ) -> list[ChatMessage]:
        """Append ``(role, content)`` pairs to a conversation in order."""
        if campaign_id is not None:
            await self.get_campaign(campaign_id)
        # Bulk rows get strictly increasing timestamps so history keeps their order
        base = utcnow()
        rows = [
            ChatMessage(
                campaign_id=campaign_id,
                role=role,
                content=content,
                created_at=base + timedelta(microseconds=offset),
            )
            for offset, (role, content) in enumerate(messages)
        ]
        self._session.add_all(rows)
        await self._session.flush()
        return rows

    async def clear_messages(self, campaign_id: str | None) -> int:
        stmt = delete(ChatMessage)
        if campaign_id is None:
            stmt = stmt.where(ChatMessage.campaign_id.is_(None))
        else:
            stmt = stmt.where(ChatMessage.campaign_id == campaign_id)
        result = await self._session.execute(stmt)
        return result.rowcount or 0


def campaign_service_factory_provider() -> Callable[[AsyncSession], CampaignService]:
    return CampaignService
