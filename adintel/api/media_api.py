"""Media endpoints: storage uploads, background analysis and direct indexing."""

from __future__ import annotations

from typing import Any, get_args
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse

from adintel.api.dependencies import (
    get_captioner,
    get_indexing_pipeline,
    get_indexing_queue,
    get_media_store,
)
from adintel.api.openapi_responses import (
    ErrorExample,
    bad_request_response,
    error_responses,
    merge_responses,
    rate_limited_response,
    upstream_error_responses,
)
from adintel.api.schemas.media import (
    AcceptedResponse,
    AnalyzeMediaRequest,
    MediaDeleteRequest,
    MediaUploadResponse,
    ProcessContentRequest,
)
from adintel.core.errors import ServiceError, build_http_error, service_http_error
from adintel.core.rate_limit import ANALYZE_MEDIA_RATE_LIMIT, limit, rate_limit_ip_key
from adintel.db.models._common import new_id
from adintel.integrations.media_store import MediaBucket, SupabaseMediaStore
from adintel.llm.vision import CaptioningClient
from adintel.services.indexing_pipeline import IndexableItem, IndexingPipeline
from adintel.services.indexing_queue import IndexingQueue

router = APIRouter()

MEDIA_BUCKETS: tuple[str, ...] = get_args(MediaBucket)


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _bucket(value: str) -> MediaBucket:
    if value not in MEDIA_BUCKETS:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message=f"Unknown bucket '{value}'. Use one of: {', '.join(MEDIA_BUCKETS)}",
        )
    return value  # type: ignore[return-value]


@router.post(
    "/media/upload",
    summary="Upload a media file",
    status_code=status.HTTP_201_CREATED,
    response_model=MediaUploadResponse,
    responses=merge_responses(
        bad_request_response(message="No file provided"),
        upstream_error_responses("Supabase Storage"),
    ),
)
async def upload_media(
    file: UploadFile = File(...),
    bucket: str = Form("campaign-media"),
    media_store: SupabaseMediaStore = Depends(get_media_store),
) -> MediaUploadResponse:
    target = _bucket(bucket)
    content = await file.read()
    if not content:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST, error="bad_request", message="No file provided"
        )
    try:
        url = await media_store.upload(
            content, file.filename or "upload", file.content_type, bucket=target
        )
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return MediaUploadResponse(url=url, bucket=target)


@router.delete(
    "/media",
    summary="Delete a media file",
    responses=upstream_error_responses("Supabase Storage"),
)
async def delete_media(
    request_data: MediaDeleteRequest,
    media_store: SupabaseMediaStore = Depends(get_media_store),
) -> dict[str, Any]:
    try:
        await media_store.delete(request_data.url, bucket=_bucket(request_data.bucket))
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return {"success": True}


@router.post(
    "/analyze-media",
    summary="Analyze media in the background",
    description=(
        "Queues captioning of the media. When `id` and `category` identify a content item, "
        "the caption becomes its summary and the item is indexed."
    ),
    status_code=status.HTTP_202_ACCEPTED,
    response_model=AcceptedResponse,
    responses=merge_responses(
        error_responses(
            ErrorExample(
                status_code=status.HTTP_400_BAD_REQUEST,
                error="bad_request",
                message="Missing url or type.",
                description="Invalid request",
                example_name="missing_fields",
            ),
            ErrorExample(
                status_code=status.HTTP_400_BAD_REQUEST,
                error="bad_request",
                message="Invalid media URL.",
                description="Invalid request",
                example_name="invalid_url",
            ),
        ),
        rate_limited_response(),
        upstream_error_responses("Gemini"),
    ),
)
@limit(ANALYZE_MEDIA_RATE_LIMIT, key_func=rate_limit_ip_key)
async def analyze_media(
    request: Request,
    request_data: AnalyzeMediaRequest,
    captioner: CaptioningClient = Depends(get_captioner),
    queue: IndexingQueue = Depends(get_indexing_queue),
) -> JSONResponse:
    try:
        captioner.ensure_configured()
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    if not request_data.url or not request_data.type:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Missing url or type.",
        )
    if not is_valid_url(request_data.url):
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Invalid media URL.",
        )

    item = IndexableItem(
        id=request_data.id or new_id(),
        type=request_data.type,
        name=request_data.name or "",
        url=request_data.url,
        category=request_data.category,
    )
    await queue.enqueue(item, index=bool(request_data.id and request_data.category))
    body = AcceptedResponse(message="Media analysis job accepted and processing in background")
    return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=body.model_dump())


@router.post(
    "/process-content",
    summary="Store a summary and index a content item",
    responses=merge_responses(
        bad_request_response(message="Missing content item id"),
        upstream_error_responses("Embedding model"),
    ),
)
async def process_content(
    request_data: ProcessContentRequest,
    pipeline: IndexingPipeline = Depends(get_indexing_pipeline),
) -> dict[str, Any]:
    if not request_data.id:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Missing content item id",
        )
    item = IndexableItem(
        id=request_data.id,
        type=request_data.type or "text",
        name=request_data.name or "",
        url=request_data.url,
        summary=request_data.summary,
        category=request_data.category,
    )
    try:
        outcome = await pipeline.process_content(item)
    except ServiceError as exc:
        raise service_http_error(exc) from exc
    return {
        "success": True,
        "summary": outcome.summary,
        "indexResult": outcome.result.as_dict() if outcome.result else None,
    }
