"""Campaign assistant chat: directive parsing, the tool approval gate and SSE events."""

from __future__ import annotations

import json
import logging
import re
import time
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from adintel.core.errors import ServiceError
from adintel.llm.chat import ChatClient, resolve_chat_model
from adintel.llm.prompts import (
    ASSISTANT_SYSTEM_PROMPT,
    UPDATE_CAMPAIGN_TOOL,
    get_campaign_context_prompt,
)
from adintel.llm.schemas import ChatTurn
from adintel.services.campaign_service import (
    CampaignMedia,
    CampaignNotFoundError,
    CampaignService,
)
from adintel.services.competitor_analysis import (
    CompetitorAnalysisError,
    CompetitorAnalysisService,
)

logger = logging.getLogger(__name__)

ANALYSIS_TRIGGER = "!analysis"
UPDATE_CAMPAIGN_TOOL_NAMES = frozenset({"update_campaign", "updateCampaign"})

_METADATA = re.compile(r"\s*<!--METADATA:(.+?)-->", re.DOTALL)
_TOOL_APPROVAL = re.compile(r"\s*<!--TOOL_APPROVAL:(.+?)-->", re.DOTALL)
_ANALYSIS_PREFIX = re.compile(r"^!analysis\s*", re.IGNORECASE)

NO_CAMPAIGN_MESSAGE = "⚠️ Unable to update campaign: no active campaign context."
UPDATE_FAILED_MESSAGE = "⚠️ Failed to update the campaign after approval. Please try again."
UPDATE_CANCELLED_MESSAGE = "🚫 Campaign update cancelled per your decision."


@dataclass(frozen=True)
class ToolApproval:
    approved: bool
    tool_name: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChatRequestContext:
    messages: list[ChatTurn]
    model: str | None = None
    campaign: dict[str, Any] | None = None
    tool_approval: ToolApproval | None = None


def _parse_directive(pattern: re.Pattern[str], text: str) -> tuple[dict[str, Any] | None, str]:
    match = pattern.search(text)
    if match is None:
        return None, text
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError:
        logger.error("Failed to parse chat directive: %s", match.group(1))
        return None, text
    if not isinstance(data, dict):
        return None, text
    return data, pattern.sub("", text, count=1)


def extract_directives(
    messages: list[ChatTurn],
    model: str | None = None,
    campaign: dict[str, Any] | None = None,
) -> ChatRequestContext:
    """Pull metadata and tool approval out of the last user message.

    The hidden ``<!--METADATA:{...}-->`` and ``<!--TOOL_APPROVAL:{...}-->`` comments are
    removed from the text so the model never sees them. Embedded metadata wins over
    ``model`` and ``campaign`` given in the request body.
    """
    last_user = next(
        (index for index in range(len(messages) - 1, -1, -1) if messages[index].role == "user"),
        None,
    )
    if last_user is None:
        return ChatRequestContext(messages=list(messages), model=model, campaign=campaign)

    text = messages[last_user].content
    approval_data, text = _parse_directive(_TOOL_APPROVAL, text)
    metadata, text = _parse_directive(_METADATA, text)

    approval = None
    if approval_data is not None:
        approval = ToolApproval(
            approved=bool(approval_data.get("approved")),
            tool_name=str(approval_data.get("toolName") or ""),
            parameters=approval_data.get("parameters") or {},
        )
    if metadata is not None:
        model = metadata.get("model") or model
        campaign = metadata.get("campaignContext") or campaign

    cleaned = list(messages)
    cleaned[last_user] = messages[last_user].model_copy(update={"content": text})
    return ChatRequestContext(
        messages=cleaned, model=model, campaign=campaign, tool_approval=approval
    )


def analysis_query(messages: list[ChatTurn]) -> str | None:
    """Return the research query when the last user message starts with ``!analysis``."""
    last = next((turn for turn in reversed(messages) if turn.role == "user"), None)
    if last is None:
        return None
    text = last.content.strip()
    if not text.lower().startswith(ANALYSIS_TRIGGER):
        return None
    return _ANALYSIS_PREFIX.sub("", text).strip() or text


def sse_event(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def immediate_message(text: str) -> AsyncIterator[dict[str, Any]]:
    message_id = uuid.uuid4().hex
    yield {"type": "start", "messageId": message_id}
    yield {"type": "text-delta", "id": f"{message_id}-text", "delta": text}
    yield {"type": "finish"}


def _confirmation(caption: str | None, media: CampaignMedia | None) -> str:
    lines = ["✅ Campaign updated successfully."]
    if caption is not None:
        quoted = "\n".join(f"> {line}" for line in caption.split("\n"))
        lines.append(f"**New caption:**\n{quoted}")
    if media is not None:
        lines.append(f"**Media updated:** {media.type} • {media.url}")
    return "\n\n".join(lines)


class ChatService:
    def __init__(
        self,
        chat_client: ChatClient,
        campaign_service: CampaignService,
        competitor_service: CompetitorAnalysisService | None = None,
    ) -> None:
        self._chat_client = chat_client
        self._campaign_service = campaign_service
        self._competitor_service = competitor_service

    async def apply_tool_approval(self, context: ChatRequestContext) -> str | None:
        """Resolve a pending campaign update; returns the reply, or None if not applicable."""
        approval = context.tool_approval
        if approval is None:
            return None
        if not context.campaign:
            logger.warning("Tool approval received without campaign context")
            return NO_CAMPAIGN_MESSAGE
        if approval.tool_name not in UPDATE_CAMPAIGN_TOOL_NAMES:
            return None
        if not approval.approved:
            logger.info("update_campaign rejected by user")
            return UPDATE_CANCELLED_MESSAGE

        params = approval.parameters
        caption = params.get("caption") if isinstance(params.get("caption"), str) else None
        media = None
        media_type, media_url = params.get("mediaType"), params.get("mediaUrl")
        if media_type in ("image", "video") and isinstance(media_url, str) and media_url:
            media_name = params.get("mediaName")
            media = CampaignMedia(
                media_type, media_url, media_name if isinstance(media_name, str) else None
            )
        try:
            await self._campaign_service.update_campaign(
                str(context.campaign.get("id")), caption=caption, media=media
            )
        except CampaignNotFoundError:
            logger.exception("Failed to update campaign after approval")
            return UPDATE_FAILED_MESSAGE
        logger.info("Campaign %s updated via approval", context.campaign.get("id"))
        return _confirmation(caption, media)

    async def chat_events(self, context: ChatRequestContext) -> AsyncIterator[dict[str, Any]]:
        chat_model = resolve_chat_model(context.model)
        system_prompt = ASSISTANT_SYSTEM_PROMPT
        tools = None
        if context.campaign:
            system_prompt += get_campaign_context_prompt(context.campaign)
            tools = [UPDATE_CAMPAIGN_TOOL]

        message_id = uuid.uuid4().hex
        text_id = f"{message_id}-text"
        yield {
            "type": "start",
            "messageId": message_id,
            "messageMetadata": {"model": chat_model.key},
        }
        try:
            async for chunk in self._chat_client.stream_chat(
                chat_model, system_prompt, context.messages, tools
            ):
                if chunk.text:
                    yield {"type": "text-delta", "id": text_id, "delta": chunk.text}
                if chunk.tool_call is not None:
                    # Tool calls are never executed here; the user approves them first
                    yield {
                        "type": "tool-approval-request",
                        "toolName": chunk.tool_call.name,
                        "parameters": chunk.tool_call.arguments,
                        "message": "Waiting for user approval to update campaign",
                    }
        except ServiceError as e:
            logger.error("Chat stream failed: %s", e)
            yield {"type": "error", "errorText": str(e)}
        yield {"type": "finish"}

    async def competitor_analysis_events(self, query: str) -> AsyncIterator[dict[str, Any]]:
        started = time.monotonic()
        message_id = uuid.uuid4().hex
        yield {
            "type": "start",
            "messageId": message_id,
            "messageMetadata": {"kind": "competitor-analysis", "query": query},
        }

        payload = None
        error = None
        if self._competitor_service is None:
            error = "Competitor analysis is not available."
        else:
            try:
                result = await self._competitor_service.analyze(query)
                payload = result.model_dump(by_alias=True, exclude_none=True)
            except CompetitorAnalysisError as e:
                error = str(e)

        note = (
            f"\n\n⚠️ Competitor research failed: {error}"
            if error
            else "\n\n📡 Powered by live web research."
        )
        yield {"type": "text-delta", "id": f"{message_id}-text", "delta": note}
        data: dict[str, Any] = {
            "query": query,
            "generatedAt": datetime.now(UTC).isoformat(),
            "durationMs": round((time.monotonic() - started) * 1000),
            "source": "web-search",
        }
        if payload is not None:
            data["payload"] = payload
        if error is not None:
            data["error"] = error
        yield {"type": "data-competitor-analysis", "id": message_id, "data": data}
        yield {"type": "finish"}
