from __future__ import annotations

from fastapi import APIRouter, Request

from adintel.api.campaigns_api import router as campaigns_router
from adintel.api.chat_api import router as chat_router
from adintel.api.collections_api import router as collections_router
from adintel.api.content_api import router as content_router
from adintel.api.downloads_api import router as downloads_router
from adintel.api.media_api import router as media_router
from adintel.api.openapi_responses import rate_limited_response
from adintel.api.research_api import router as research_router
from adintel.api.schemas.meta import HealthResponse
from adintel.api.social_api import router as social_router
from adintel.core.rate_limit import HEALTH_RATE_LIMIT, limit, rate_limit_ip_key

router = APIRouter()


@router.get(
    "/health",
    tags=["meta"],
    summary="Health check",
    response_model=HealthResponse,
    responses=rate_limited_response(),
)
@limit(HEALTH_RATE_LIMIT, key_func=rate_limit_ip_key)
def health(request: Request) -> HealthResponse:
    """Check the health of the application."""
    return HealthResponse(status="ok")


# Include sub-routers
router.include_router(content_router, prefix="/content-items", tags=["content"])
router.include_router(campaigns_router, prefix="/campaigns", tags=["campaigns"])
router.include_router(collections_router, prefix="/collections", tags=["collections"])
router.include_router(media_router, tags=["media"])
router.include_router(chat_router, prefix="/chat", tags=["chat"])
router.include_router(research_router, prefix="/brightdata", tags=["research"])
router.include_router(social_router, prefix="/execute-action", tags=["social"])
router.include_router(downloads_router, prefix="/download-video", tags=["downloads"])
