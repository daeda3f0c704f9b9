"""Web search and scrape proxied to BrightData."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status

from adintel.api.dependencies import get_brightdata
from adintel.api.media_api import is_valid_url
from adintel.api.openapi_responses import (
    bad_request_response,
    merge_responses,
    rate_limited_response,
    upstream_error_responses,
)
from adintel.api.schemas.research import ScrapeRequest, SearchRequest
from adintel.core.errors import ServiceError, build_http_error, service_http_error
from adintel.core.rate_limit import RESEARCH_RATE_LIMIT, limit, rate_limit_ip_key
from adintel.integrations.brightdata import BrightDataClient

router = APIRouter()


@router.post(
    "/search",
    summary="Search the web",
    responses=merge_responses(
        bad_request_response(message="Query is required"),
        rate_limited_response(),
        upstream_error_responses("BrightData"),
    ),
)
@limit(RESEARCH_RATE_LIMIT, key_func=rate_limit_ip_key)
async def search(
    request: Request,
    request_data: SearchRequest,
    brightdata: BrightDataClient = Depends(get_brightdata),
) -> dict[str, Any]:
    query = (request_data.query or "").strip()
    if not query:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Query is required",
        )
    try:
        return await brightdata.search(query, request_data.max_results)
    except ServiceError as exc:
        raise service_http_error(exc) from exc


@router.post(
    "/scrape",
    summary="Scrape a page as markdown",
    responses=merge_responses(
        bad_request_response(message="Valid URL is required"),
        rate_limited_response(),
        upstream_error_responses("BrightData"),
    ),
)
@limit(RESEARCH_RATE_LIMIT, key_func=rate_limit_ip_key)
async def scrape(
    request: Request,
    request_data: ScrapeRequest,
    brightdata: BrightDataClient = Depends(get_brightdata),
) -> dict[str, Any]:
    if not request_data.url or not is_valid_url(request_data.url):
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Valid URL is required",
        )
    try:
        return await brightdata.scrape(
            request_data.url, request_data.include_links, request_data.include_images
        )
    except ServiceError as exc:
        raise service_http_error(exc) from exc
