from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    """One message of conversation history sent to a chat model."""

    role: Literal["user", "assistant", "system"]
    content: str


class ChatToolCall(BaseModel):
    """A completed tool invocation proposed by the model."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ChatChunk(BaseModel):
    """Incremental output from a streaming chat model: text or a tool call."""

    text: str | None = None
    tool_call: ChatToolCall | None = None
