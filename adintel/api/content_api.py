"""Content item endpoints: the inspiration, library and campaign sections."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError

from adintel.api.dependencies import UnitOfWork, get_indexing_queue, get_uow, get_vector_index
from adintel.api.openapi_responses import (
    merge_responses,
    not_found_response,
    rate_limited_response,
    validation_error_response,
)
from adintel.api.schemas.content import (
    ContentItemCreateRequest,
    ContentItemResponse,
    ContentItemUpdateRequest,
    IndexingJobResponse,
)
from adintel.core.errors import ServiceError, service_http_error
from adintel.core.rate_limit import DEFAULT_RATE_LIMIT, limit, rate_limit_ip_key
from adintel.db.models.content_item import ContentCategory, ContentItem
from adintel.services.indexing_pipeline import IndexableItem
from adintel.services.indexing_queue import IndexingQueue
from adintel.vector.index import VectorIndex, VectorIndexError

logger = logging.getLogger(__name__)

router = APIRouter()

_item_not_found = not_found_response(
    error="content_not_found",
    message="Content item '3f2a9c' not found",
    description="Content item not found",
)


def indexable_item(item: ContentItem) -> IndexableItem:
    return IndexableItem(
        id=item.id,
        type=item.type,
        name=item.name,
        url=item.url,
        summary=item.text_content,
        category=item.category,
        thumbnail=item.thumbnail,
    )


@router.get("", summary="List content items", response_model=list[ContentItemResponse])
@limit(DEFAULT_RATE_LIMIT, key_func=rate_limit_ip_key)
async def list_content_items(
    request: Request,
    category: ContentCategory | None = Query(default=None),
    uow: UnitOfWork = Depends(get_uow),
) -> list[ContentItemResponse]:
    items = await uow.content_service.list_items(category)
    return [ContentItemResponse.model_validate(item) for item in items]


@router.post(
    "",
    summary="Add a content item",
    description="Stores the item and queues it for captioning and indexing.",
    status_code=status.HTTP_201_CREATED,
    response_model=ContentItemResponse,
    responses=merge_responses(validation_error_response(), rate_limited_response()),
)
@limit(DEFAULT_RATE_LIMIT, key_func=rate_limit_ip_key)
async def create_content_item(
    request: Request,
    request_data: ContentItemCreateRequest,
    uow: UnitOfWork = Depends(get_uow),
    queue: IndexingQueue = Depends(get_indexing_queue),
) -> ContentItemResponse:
    item = await uow.content_service.create_item(
        id=request_data.id,
        category=request_data.category,
        type=request_data.type,
        name=request_data.name,
        url=request_data.url,
        thumbnail=request_data.thumbnail,
        text_content=request_data.text,
    )
    # The job runs in its own session, so the item must be visible first
    await uow.commit()
    await queue.enqueue(indexable_item(item))
    return ContentItemResponse.model_validate(item)


@router.get(
    "/{item_id}",
    summary="Get a content item",
    response_model=ContentItemResponse,
    responses=_item_not_found,
)
async def get_content_item(
    item_id: str, uow: UnitOfWork = Depends(get_uow)
) -> ContentItemResponse:
    try:
        item = await uow.content_service.get_item(item_id)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return ContentItemResponse.model_validate(item)


@router.patch(
    "/{item_id}",
    summary="Update a content item",
    response_model=ContentItemResponse,
    responses=merge_responses(_item_not_found, validation_error_response()),
)
async def update_content_item(
    item_id: str,
    request_data: ContentItemUpdateRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> ContentItemResponse:
    changes = request_data.model_dump(exclude_unset=True)
    if "text" in changes:
        changes["text_content"] = changes.pop("text")
    try:
        item = await uow.content_service.update_item(item_id, changes)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return ContentItemResponse.model_validate(item)


@router.delete(
    "/{item_id}",
    summary="Delete a content item",
    description="Removes the item and, best effort, its entry in the similarity index.",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_item_not_found,
)
async def delete_content_item(
    item_id: str,
    uow: UnitOfWork = Depends(get_uow),
    vector_index: VectorIndex = Depends(get_vector_index),
) -> Response:
    try:
        await uow.content_service.delete_item(item_id)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    await uow.commit()
    try:
        await vector_index.delete_documents([item_id])
    except (VectorIndexError, SQLAlchemyError):
        logger.exception("Failed to remove index entry for content item %s", item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{item_id}/index",
    summary="Queue a content item for indexing",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=IndexingJobResponse,
    responses=_item_not_found,
)
async def index_content_item(
    item_id: str,
    uow: UnitOfWork = Depends(get_uow),
    queue: IndexingQueue = Depends(get_indexing_queue),
) -> IndexingJobResponse:
    try:
        item = await uow.content_service.get_item(item_id)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    job = await queue.enqueue(indexable_item(item))
    return IndexingJobResponse.model_validate(job)
