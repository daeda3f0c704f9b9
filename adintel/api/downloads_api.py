"""Resolving short-video share links to downloadable files."""

from __future__ import annotations

import time
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, status

from adintel.api.dependencies import get_tiktok_resolver
from adintel.api.openapi_responses import (
    bad_request_response,
    merge_responses,
)
from adintel.api.schemas.downloads import DownloadVideoRequest, DownloadVideoResponse
from adintel.core.errors import ServiceError, build_http_error
from adintel.integrations.video_links import TikTokResolver

router = APIRouter()


def link_platform(url: str) -> str | None:
    host = (urlparse(url).hostname or "").lower()
    if host == "instagram.com" or host.endswith(".instagram.com"):
        return "instagram"
    if host == "tiktok.com" or host.endswith(".tiktok.com"):
        return "tiktok"
    return None


@router.post(
    "",
    summary="Resolve a TikTok link to a video file",
    response_model=DownloadVideoResponse,
    responses=merge_responses(
        bad_request_response(
            error="unsupported_platform", message="Only Instagram and TikTok URLs are supported"
        ),
        bad_request_response(
            error="video_download_failed", message="Failed to download TikTok video"
        ),
    ),
)
async def download_video(
    request_data: DownloadVideoRequest,
    resolver: TikTokResolver = Depends(get_tiktok_resolver),
) -> DownloadVideoResponse:
    if not request_data.url:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST, error="bad_request", message="URL is required"
        )
    platform = link_platform(request_data.url)
    if platform is None:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="unsupported_platform",
            message="Only Instagram and TikTok URLs are supported",
        )
    if platform == "instagram":
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="unsupported_platform",
            message="Instagram downloads are currently unavailable. Please try TikTok instead.",
        )
    try:
        video = await resolver.resolve(request_data.url)
    except ServiceError as exc:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="video_download_failed",
            message=str(exc),
        ) from exc
    return DownloadVideoResponse(
        video_url=video.video_url,
        thumbnail=video.thumbnail,
        filename=f"tiktok-{int(time.time() * 1000)}.mp4",
    )
