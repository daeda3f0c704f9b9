"""Posting to connected social accounts."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status

from adintel.api.dependencies import get_social_actions
from adintel.api.openapi_responses import (
    ErrorExample,
    error_responses,
    merge_responses,
    rate_limited_response,
)
from adintel.api.schemas.social import (
    ActionResultResponse,
    ConnectedAccountsResponse,
    ExecuteActionRequest,
)
from adintel.core.errors import build_http_error
from adintel.core.rate_limit import SOCIAL_ACTION_RATE_LIMIT, limit, rate_limit_ip_key
from adintel.services.social_actions import PLATFORMS, SocialAction, SocialActionService

router = APIRouter()


@router.post(
    "",
    summary="Execute a social action",
    description="Posts content to a connected account. Failures are reported in the body.",
    response_model=ActionResultResponse,
    response_model_exclude_none=True,
    responses=merge_responses(
        error_responses(
            ErrorExample(
                status_code=status.HTTP_400_BAD_REQUEST,
                error="bad_request",
                message="Missing action or userId",
                description="Invalid request",
                example_name="missing_fields",
            ),
            ErrorExample(
                status_code=status.HTTP_400_BAD_REQUEST,
                error="bad_request",
                message="Invalid action structure",
                description="Invalid request",
                example_name="invalid_action",
            ),
        ),
        rate_limited_response(),
    ),
)
@limit(SOCIAL_ACTION_RATE_LIMIT, key_func=rate_limit_ip_key)
async def execute_action(
    request: Request,
    request_data: ExecuteActionRequest,
    social_actions: SocialActionService = Depends(get_social_actions),
) -> ActionResultResponse:
    action, user_id = request_data.action, request_data.user_id
    if not action or not user_id:
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Missing action or userId",
        )
    platform, content = action.get("platform"), action.get("content")
    media = action.get("media")
    if (
        action.get("type") != "post_to_social"
        or platform not in PLATFORMS
        or not isinstance(content, str)
        or not content
    ):
        raise build_http_error(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="bad_request",
            message="Invalid action structure",
        )
    result = await social_actions.execute(
        SocialAction(platform, content, media if isinstance(media, str) and media else None),
        user_id,
    )
    return ActionResultResponse(
        success=result.success, message=result.message, action_id=result.action_id
    )


@router.get(
    "",
    summary="Connected social accounts",
    response_model=ConnectedAccountsResponse,
)
async def connected_accounts(
    user_id: str = Query(..., alias="userId", min_length=1),
    social_actions: SocialActionService = Depends(get_social_actions),
) -> ConnectedAccountsResponse:
    accounts = await social_actions.connected_accounts(user_id)
    return ConnectedAccountsResponse(connected_accounts=accounts)
