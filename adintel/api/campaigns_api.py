"""Campaign endpoints, including per-campaign chat history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from adintel.api.dependencies import UnitOfWork, get_indexing_queue, get_uow
from adintel.api.openapi_responses import (
    merge_responses,
    not_found_response,
    rate_limited_response,
    validation_error_response,
)
from adintel.api.schemas.campaigns import (
    CampaignCreateRequest,
    CampaignHistoryResponse,
    CampaignResponse,
    CampaignUpdateRequest,
    ChatHistoryAppendRequest,
    ChatMessageResponse,
)
from adintel.api.schemas.content import IndexingJobResponse
from adintel.core.errors import ServiceError, service_http_error
from adintel.core.rate_limit import DEFAULT_RATE_LIMIT, limit, rate_limit_ip_key
from adintel.db.models.content_item import ContentCategory, ContentType
from adintel.services.campaign_service import campaign_media
from adintel.services.indexing_pipeline import IndexableItem
from adintel.services.indexing_queue import IndexingQueue

router = APIRouter()

_campaign_not_found = not_found_response(
    error="campaign_not_found",
    message="Campaign '9b1e4d' not found",
    description="Campaign not found",
)


@router.get("", summary="List campaigns", response_model=list[CampaignResponse])
async def list_campaigns(uow: UnitOfWork = Depends(get_uow)) -> list[CampaignResponse]:
    campaigns = await uow.campaign_service.list_campaigns()
    return [CampaignResponse.from_model(campaign) for campaign in campaigns]


@router.post(
    "",
    summary="Create a campaign",
    status_code=status.HTTP_201_CREATED,
    response_model=CampaignResponse,
    responses=merge_responses(validation_error_response(), rate_limited_response()),
)
@limit(DEFAULT_RATE_LIMIT, key_func=rate_limit_ip_key)
async def create_campaign(
    request: Request,
    request_data: CampaignCreateRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> CampaignResponse:
    campaign = await uow.campaign_service.create_campaign(
        caption=request_data.caption,
        media=request_data.media.to_media() if request_data.media else None,
    )
    return CampaignResponse.from_model(campaign)


@router.get(
    "/{campaign_id}",
    summary="Get a campaign",
    response_model=CampaignResponse,
    responses=_campaign_not_found,
)
async def get_campaign(campaign_id: str, uow: UnitOfWork = Depends(get_uow)) -> CampaignResponse:
    try:
        campaign = await uow.campaign_service.get_campaign(campaign_id)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return CampaignResponse.from_model(campaign)


@router.put(
    "/{campaign_id}",
    summary="Update a campaign",
    response_model=CampaignResponse,
    responses=merge_responses(_campaign_not_found, validation_error_response()),
)
async def update_campaign(
    campaign_id: str,
    request_data: CampaignUpdateRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> CampaignResponse:
    media_sent = "media" in request_data.model_fields_set
    try:
        campaign = await uow.campaign_service.update_campaign(
            campaign_id,
            caption=request_data.caption,
            media=request_data.media.to_media() if request_data.media else None,
            clear_media=media_sent and request_data.media is None,
        )
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return CampaignResponse.from_model(campaign)


@router.delete(
    "/{campaign_id}",
    summary="Delete a campaign",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_campaign_not_found,
)
async def delete_campaign(campaign_id: str, uow: UnitOfWork = Depends(get_uow)) -> Response:
    try:
        await uow.campaign_service.delete_campaign(campaign_id)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{campaign_id}/history",
    summary="Get a campaign with its chat history",
    response_model=CampaignHistoryResponse,
    responses=_campaign_not_found,
)
async def get_campaign_history(
    campaign_id: str, uow: UnitOfWork = Depends(get_uow)
) -> CampaignHistoryResponse:
    try:
        campaign = await uow.campaign_service.get_campaign(campaign_id)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    messages = await uow.campaign_service.list_messages(campaign_id)
    return CampaignHistoryResponse.build(campaign, messages)


@router.post(
    "/{campaign_id}/messages",
    summary="Append chat messages to a campaign",
    status_code=status.HTTP_201_CREATED,
    response_model=list[ChatMessageResponse],
    responses=merge_responses(_campaign_not_found, validation_error_response()),
)
async def append_campaign_messages(
    campaign_id: str,
    request_data: ChatHistoryAppendRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> list[ChatMessageResponse]:
    try:
        rows = await uow.campaign_service.add_messages(
            campaign_id, [(message.role, message.content) for message in request_data.messages]
        )
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return [ChatMessageResponse.model_validate(row) for row in rows]


@router.delete(
    "/{campaign_id}/messages",
    summary="Clear a campaign's chat history",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def clear_campaign_messages(
    campaign_id: str, uow: UnitOfWork = Depends(get_uow)
) -> Response:
    await uow.campaign_service.clear_messages(campaign_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{campaign_id}/index",
    summary="Queue a campaign for indexing",
    description=(
        "Indexes the campaign as a content item in the campaigns section. The summary is "
        "generated from the campaign media; the caption is never indexed."
    ),
    status_code=status.HTTP_202_ACCEPTED,
    response_model=IndexingJobResponse,
    responses=_campaign_not_found,
)
async def index_campaign(
    campaign_id: str,
    uow: UnitOfWork = Depends(get_uow),
    queue: IndexingQueue = Depends(get_indexing_queue),
) -> IndexingJobResponse:
    try:
        campaign = await uow.campaign_service.get_campaign(campaign_id)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    media = campaign_media(campaign)
    name = (media.name if media else None) or "Campaign"
    await uow.content_service.upsert_item(
        campaign.id,
        category=ContentCategory.CAMPAIGNS,
        type=ContentType.CAMPAIGN,
        name=name,
        url=media.url if media else None,
    )
    await uow.commit()
    job = await queue.enqueue(
        IndexableItem(
            id=campaign.id,
            type=ContentType.CAMPAIGN,
            name=name,
            url=media.url if media else None,
            caption=campaign.caption,
            category=ContentCategory.CAMPAIGNS,
            media_type=media.type if media else None,
        )
    )
    return IndexingJobResponse.model_validate(job)
