from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field

from adintel.api.schemas.base import CamelModel
from adintel.db.models.campaign import Campaign
from adintel.db.models.chat_message import ChatMessage
from adintel.services.campaign_service import CampaignMedia, campaign_media


class CampaignMediaModel(CamelModel):
    type: Literal["image", "video"]
    url: str = Field(..., min_length=1, max_length=2048)
    name: str | None = Field(default=None, max_length=500)

    def to_media(self) -> CampaignMedia:
        return CampaignMedia(self.type, self.url, self.name)


class CampaignCreateRequest(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "caption": "Summer is here. Grab yours before it's gone!",
                    "media": {"type": "image", "url": "https://cdn.example.com/a.jpg"},
                }
            ]
        }
    )

    caption: str = ""
    media: CampaignMediaModel | None = None


class CampaignUpdateRequest(CamelModel):
    """Fields left out are unchanged; ``media: null`` detaches the media."""

    caption: str | None = None
    media: CampaignMediaModel | None = None


class CampaignResponse(CamelModel):
    id: str
    caption: str
    media: CampaignMediaModel | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, campaign: Campaign) -> CampaignResponse:
        media = campaign_media(campaign)
        return cls(
            id=campaign.id,
            caption=campaign.caption,
            media=(
                CampaignMediaModel.model_validate(
                    {"type": media.type, "url": media.url, "name": media.name}
                )
                if media
                else None
            ),
            created_at=campaign.created_at,
            updated_at=campaign.updated_at,
        )


class ChatMessageModel(CamelModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatMessageResponse(ChatMessageModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    campaign_id: str | None = None
    created_at: datetime


class ChatHistoryAppendRequest(CamelModel):
    messages: list[ChatMessageModel] = Field(..., min_length=1)


class CampaignHistoryResponse(CamelModel):
    campaign: CampaignResponse
    messages: list[ChatMessageResponse]

    @classmethod
    def build(cls, campaign: Campaign, messages: list[ChatMessage]) -> CampaignHistoryResponse:
        return cls(
            campaign=CampaignResponse.from_model(campaign),
            messages=[ChatMessageResponse.model_validate(message) for message in messages],
        )
