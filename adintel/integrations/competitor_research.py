"""Competitor research through the Anthropic Messages API with the web_search tool."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from adintel.integrations.http import HttpIntegration, IntegrationError
from adintel.llm.prompts import COMPETITOR_ANALYSIS_SYSTEM_PROMPT, get_competitor_analysis_prompt

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.IGNORECASE | re.DOTALL)

WEB_SEARCH_TOOL = {
    "type": "web_search",
    "name": "web_search",
    "description": (
        "Search the live web for up-to-date competitor information, recent campaigns, "
        "pricing changes, and market activity."
    ),
}


class CompetitorResearchError(IntegrationError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, "competitor_research_failed")
        self.upstream_status = status_code


@dataclass(frozen=True)
class _Attempt:
    label: str
    headers: dict[str, str]
    body: dict[str, Any]
    allow_tool_fallback: bool = False


def strip_code_fence(payload: str) -> str:
    match = _CODE_FENCE.match(payload)
    return match.group(1).strip() if match else payload


def extract_text_content(response: dict[str, Any]) -> str:
    """First non-empty text block of a Messages API response, without code fences."""
    for block in response.get("content") or []:
        if not isinstance(block, dict) or block.get("type") != "text":
            continue
        text = block.get("text")
        if isinstance(text, str) and text.strip():
            return strip_code_fence(text.strip())
    return ""


class CompetitorResearchClient(HttpIntegration):
    service_name = "Competitor research"
    credential_setting = "anthropic_api_key"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str | None,
        *,
        messages_url: str,
        model: str,
        api_version: str,
        websearch_beta: str | None = None,
        web_search_enabled: bool = True,
        max_tokens: int = 1600,
    ) -> None:
        super().__init__(http_client, api_key)
        self._messages_url = messages_url
        self._model = model
        self._api_version = api_version
        self._websearch_beta = websearch_beta
        self._web_search_enabled = web_search_enabled
        self._max_tokens = max_tokens

    def _build_body(self, query: str, include_web_search: bool) -> dict[str, Any]:
        body: dict[str, Any] = {
            "system": COMPETITOR_ANALYSIS_SYSTEM_PROMPT,
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": 0,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": get_competitor_analysis_prompt(query)}],
                }
            ],
        }
        if include_web_search:
            body["tools"] = [WEB_SEARCH_TOOL]
            body["tool_choice"] = {"type": "auto"}
        return body

    def _attempts(self, query: str) -> list[_Attempt]:
        base_headers = {
            "Content-Type": "application/json",
            "x-api-key": self._require_credential(),
            "anthropic-version": self._api_version,
        }
        attempts: list[_Attempt] = []
        if self._web_search_enabled:
            if self._websearch_beta:
                attempts.append(
                    _Attempt(
                        "web-search-with-beta",
                        {**base_headers, "anthropic-beta": self._websearch_beta},
                        self._build_body(query, include_web_search=True),
                        allow_tool_fallback=True,
                    )
                )
            attempts.append(
                _Attempt(
                    "web-search-no-beta" if self._websearch_beta else "web-search",
                    base_headers,
                    self._build_body(query, include_web_search=True),
                    allow_tool_fallback=True,
                )
            )
        attempts.append(
            _Attempt("baseline", base_headers, self._build_body(query, include_web_search=False))
        )
        return attempts

    async def research(self, query: str) -> dict[str, Any]:
        """Run the research prompt and return the model's parsed JSON object.

        Attempts go from web search with the beta header, to web search without it,
        to a plain call without tools. Only rejections of the beta header or the
        tool move on to the next attempt; any other failure is raised.
        """
        last_error: CompetitorResearchError | None = None
        for attempt in self._attempts(query):
            response = await self._request(
                "POST", self._messages_url, headers=attempt.headers, json=attempt.body
            )
            if response.is_error:
                error_text = response.text or "unknown error"
                error = CompetitorResearchError(
                    f"Claude web search request failed "
                    f"({response.status_code} {response.reason_phrase}): {error_text}",
                    status_code=response.status_code,
                )
                lowered = error_text.lower()
                rejected_tool = (
                    "anthropic-beta" in lowered or "web_search" in lowered or "tool" in lowered
                )
                if attempt.allow_tool_fallback and rejected_tool:
                    logger.warning(
                        'Claude attempt "%s" rejected; retrying without web search tools.',
                        attempt.label,
                    )
                    last_error = error
                    continue
                raise error

            raw_text = extract_text_content(self._json(response, self.service_name))
            try:
                parsed = json.loads(raw_text)
            except ValueError:
                parsed = None
            if not isinstance(parsed, dict):
                raise CompetitorResearchError(
                    "Claude web search returned an unexpected payload shape."
                )
            if attempt.label != "baseline":
                logger.info('Claude attempt "%s" succeeded.', attempt.label)
            return parsed

        raise last_error or CompetitorResearchError("Claude web search failed for all attempts.")
