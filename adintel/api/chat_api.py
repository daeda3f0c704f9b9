"""Streaming assistant chat and campaign-less chat history."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import StreamingResponse

from adintel.api.dependencies import (
    UnitOfWork,
    get_chat_client,
    get_competitor_service,
    get_uow,
)
from adintel.api.openapi_responses import (
    merge_responses,
    rate_limited_response,
    validation_error_response,
)
from adintel.api.schemas.campaigns import ChatHistoryAppendRequest, ChatMessageResponse
from adintel.api.schemas.chat import ChatRequest
from adintel.core.rate_limit import CHAT_RATE_LIMIT, limit, rate_limit_ip_key
from adintel.llm.chat import ChatClient
from adintel.llm.schemas import ChatTurn
from adintel.services.chat_service import (
    ChatService,
    analysis_query,
    extract_directives,
    immediate_message,
    sse_event,
)
from adintel.services.competitor_analysis import CompetitorAnalysisService

router = APIRouter()


async def _event_stream(events: AsyncIterator[dict[str, Any]]) -> AsyncIterator[str]:
    async for event in events:
        yield sse_event(event)
    yield "data: [DONE]\n\n"


@router.post(
    "",
    summary="Chat with the campaign assistant",
    description=(
        "Streams Server-Sent Events. A message starting with `!analysis` runs competitor "
        "research instead of chat. Campaign updates proposed by the model are returned as "
        "`tool-approval-request` events and only applied when approved in a later turn."
    ),
    response_class=StreamingResponse,
    responses=merge_responses(validation_error_response(), rate_limited_response()),
)
@limit(CHAT_RATE_LIMIT, key_func=rate_limit_ip_key)
async def chat(
    request: Request,
    request_data: ChatRequest,
    uow: UnitOfWork = Depends(get_uow),
    chat_client: ChatClient = Depends(get_chat_client),
    competitor_service: CompetitorAnalysisService = Depends(get_competitor_service),
) -> StreamingResponse:
    turns = [
        ChatTurn(role=message.role, content=message.content) for message in request_data.messages
    ]
    service = ChatService(chat_client, uow.campaign_service, competitor_service)

    query = analysis_query(turns)
    if query is not None:
        events = service.competitor_analysis_events(query)
    else:
        context = extract_directives(turns, request_data.model, request_data.campaign_context)
        reply = await service.apply_tool_approval(context)
        if reply is not None:
            # The campaign change must be durable before the reply reaches the user
            await uow.commit()
            events = immediate_message(reply)
        else:
            events = service.chat_events(context)
    return StreamingResponse(
        _event_stream(events),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get(
    "/history",
    summary="Chat history not tied to a campaign",
    response_model=list[ChatMessageResponse],
)
async def get_history(uow: UnitOfWork = Depends(get_uow)) -> list[ChatMessageResponse]:
    messages = await uow.campaign_service.list_messages(None)
    return [ChatMessageResponse.model_validate(message) for message in messages]


@router.post(
    "/history",
    summary="Append to the chat history not tied to a campaign",
    status_code=status.HTTP_201_CREATED,
    response_model=list[ChatMessageResponse],
    responses=validation_error_response(),
)
async def append_history(
    request_data: ChatHistoryAppendRequest, uow: UnitOfWork = Depends(get_uow)
) -> list[ChatMessageResponse]:
    rows = await uow.campaign_service.add_messages(
        None, [(message.role, message.content) for message in request_data.messages]
    )
    return [ChatMessageResponse.model_validate(row) for row in rows]


@router.delete(
    "/history",
    summary="Clear the chat history not tied to a campaign",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def clear_history(uow: UnitOfWork = Depends(get_uow)) -> Response:
    await uow.campaign_service.clear_messages(None)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
