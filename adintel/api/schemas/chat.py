from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from adintel.api.schemas.base import CamelModel


class ChatMessageIn(CamelModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(CamelModel):
    messages: list[ChatMessageIn] = Field(..., min_length=1)
    model: str | None = Field(default=None, description="Chat model key, e.g. claude-4.5")
    campaign_context: dict[str, Any] | None = None
