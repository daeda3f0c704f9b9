from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from adintel.core.config import Settings
from adintel.llm.client import LLMInvalidResponseError, OpenAICompatibleClient
from adintel.llm.schemas import ChatChunk, ChatToolCall, ChatTurn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatModel:
    key: str
    provider: str
    model: str
    label: str


DEFAULT_CHAT_MODEL = "claude-4.5"

CHAT_MODELS: dict[str, ChatModel] = {
    "claude-4.5": ChatModel(
        "claude-4.5", "anthropic", "claude-sonnet-4-5-20250929", "Claude Sonnet 4.5"
    ),
    "gemini-2.5-flash": ChatModel(
        "gemini-2.5-flash", "gemini", "gemini-2.5-flash-lite", "Gemini 2.5 Flash"
    ),
    "qwen-3-32b": ChatModel("qwen-3-32b", "groq", "qwen/qwen3-32b", "Qwen 3-32B"),
    "llama-guard": ChatModel(
        "llama-guard", "groq", "meta-llama/llama-guard-4-12b", "Llama Guard 4-12B"
    ),
    "gpt-oss-20b": ChatModel("gpt-oss-20b", "groq", "openai/gpt-oss-20b", "GPT-OSS-20B"),
}


def resolve_chat_model(key: str | None) -> ChatModel:
    """Map a UI model key to a provider model, defaulting to Claude for unknown keys."""
    if key and key in CHAT_MODELS:
        return CHAT_MODELS[key]
    if key:
        logger.warning("Unknown chat model %r, defaulting to %s", key, DEFAULT_CHAT_MODEL)
    return CHAT_MODELS[DEFAULT_CHAT_MODEL]


class ChatClient(ABC):
    """Abstract base class for streaming chat completions."""

    @abstractmethod
    def stream_chat(
        self,
        model: ChatModel,
        system_prompt: str,
        messages: list[ChatTurn],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[ChatChunk]:
        """Stream text deltas, then any tool calls once they are complete."""
        raise NotImplementedError


class _ProviderClient(OpenAICompatibleClient):
    def __init__(
        self, provider: str, api_key_setting: str, api_key: str | None, base_url: str
    ) -> None:
        super().__init__(api_key, base_url)
        self.provider = provider
        self.api_key_setting = api_key_setting


class ProviderChatClient(ChatClient):
    """Routes each chat model to its provider's OpenAI-compatible endpoint."""

    def __init__(self, providers: dict[str, OpenAICompatibleClient]) -> None:
        self._providers = providers

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderChatClient:
        return cls(
            {
                "anthropic": _ProviderClient(
                    "Anthropic",
                    "anthropic_api_key",
                    settings.anthropic_api_key,
                    settings.anthropic_base_url,
                ),
                "gemini": _ProviderClient(
                    "Gemini", "gemini_api_key", settings.gemini_api_key, settings.gemini_base_url
                ),
                "groq": _ProviderClient(
                    "Groq", "groq_api_key", settings.groq_api_key, settings.groq_base_url
                ),
            }
        )

    async def stream_chat(
        self,
        model: ChatModel,
        system_prompt: str,
        messages: list[ChatTurn],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[ChatChunk]:
        provider = self._providers[model.provider]
        payload: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        payload.extend(turn.model_dump() for turn in messages)
        request: dict[str, Any] = {"model": model.model, "messages": payload, "stream": True}
        if tools:
            request["tools"] = tools

        # Tool call arguments arrive in fragments keyed by index
        pending_calls: dict[int, dict[str, str]] = {}
        try:
            stream = await provider.client.chat.completions.create(**request)
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta.content:
                    yield ChatChunk(text=delta.content)
                for call in delta.tool_calls or []:
                    entry = pending_calls.setdefault(call.index, {"name": "", "arguments": ""})
                    if call.function and call.function.name:
                        entry["name"] = call.function.name
                    if call.function and call.function.arguments:
                        entry["arguments"] += call.function.arguments
        except Exception as e:
            raise provider._handle_errors(e) from e

        for index in sorted(pending_calls):
            entry = pending_calls[index]
            try:
                arguments = json.loads(entry["arguments"]) if entry["arguments"] else {}
            except json.JSONDecodeError as e:
                raise LLMInvalidResponseError("LLM returned invalid tool arguments.") from e
            yield ChatChunk(tool_call=ChatToolCall(name=entry["name"], arguments=arguments))
