from __future__ import annotations

import json
import logging

from fastapi import status
from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    RateLimitError,
)
from pydantic import ValidationError

from adintel.core.errors import ServiceError

logger = logging.getLogger(__name__)


class LLMServiceError(ServiceError):
    """Base error raised when an LLM provider cannot fulfill a request."""


class LLMUnavailableError(LLMServiceError):
    """LLM is unavailable (timeout, rate limit, or upstream outage)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str) -> None:
        super().__init__(message, "llm_unavailable")


class LLMAuthenticationError(LLMServiceError):
    """LLM authentication failed (service credentials invalid)."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str) -> None:
        super().__init__(message, "llm_auth_failed")


class LLMInvalidResponseError(LLMServiceError):
    """LLM returned an invalid or unexpected response."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str) -> None:
        super().__init__(message, "llm_response_invalid")


class LLMNotConfiguredError(LLMServiceError):
    """The provider's API key is not set."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, provider: str, setting: str) -> None:
        super().__init__(
            f"{provider} is not configured. Set {setting.upper()} to enable it.",
            "service_not_configured",
        )


class OpenAICompatibleClient:
    """Shared plumbing for providers reached through the OpenAI SDK.

    The SDK client is built on first use so a missing key only fails the
    call that needs it.
    """

    provider: str = "OpenAI"
    api_key_setting: str = "openai_api_key"

    def __init__(self, api_key: str | None, base_url: str | None = None) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._sdk_client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._sdk_client is None:
            if not self._api_key:
                raise LLMNotConfiguredError(self.provider, self.api_key_setting)
            self._sdk_client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._sdk_client

    @client.setter
    def client(self, value: AsyncOpenAI) -> None:
        self._sdk_client = value

    def ensure_configured(self) -> None:
        if self._sdk_client is None and not self._api_key:
            raise LLMNotConfiguredError(self.provider, self.api_key_setting)

    def _handle_errors(self, error: Exception) -> LLMServiceError:
        """Log error with appropriate message based on error type."""
        if isinstance(error, LLMServiceError):
            return error
        elif isinstance(error, APITimeoutError):
            logger.error(f"{self.provider} API request timed out. Error: {error}")
            return LLMUnavailableError("LLM request timed out. Try again.")
        elif isinstance(error, APIConnectionError):
            logger.error(f"{self.provider} API connection failed. Error: {error}")
            return LLMUnavailableError("LLM service unreachable. Try again shortly.")
        elif isinstance(error, RateLimitError):
            logger.error(f"{self.provider} API rate limit exceeded. Error: {error}")
            return LLMUnavailableError("LLM rate limit exceeded. Try again later.")
        elif isinstance(error, AuthenticationError):
            logger.error(f"{self.provider} API authentication failed. Error: {error}")
            return LLMAuthenticationError("LLM authentication failed.")
        elif isinstance(error, APIError):
            logger.error(f"{self.provider} API error. Error: {error}")
            return LLMUnavailableError("LLM service error. Try again later.")
        elif isinstance(error, (IndexError, AttributeError)):
            logger.error(f"Unexpected response structure from {self.provider}. Error: {error}")
            return LLMInvalidResponseError("LLM returned an unexpected response.")
        elif isinstance(error, json.JSONDecodeError):
            logger.error(f"Invalid JSON response from {self.provider}. Error: {error}")
            return LLMInvalidResponseError("LLM returned invalid JSON.")
        elif isinstance(error, ValidationError):
            logger.error(f"Pydantic validation failed. Error: {error}")
            return LLMInvalidResponseError("LLM response did not match expected format.")
        elif isinstance(error, ValueError):
            logger.error(f"Invalid value encountered. Error: {error}")
            return LLMInvalidResponseError(str(error))
        else:
            logger.error(f"Unexpected error calling {self.provider}. Error: {error}")
            return LLMServiceError("LLM request failed. Try again later.", "llm_error")
