from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from fastapi import status

from adintel.core.errors import ErrorResponse


@dataclass(frozen=True)
class ErrorExample:
    status_code: int
    error: str
    message: str
    description: str
    summary: str | None = None
    details: Any | None = None
    example_name: str | None = None


def error_responses(*examples: ErrorExample) -> dict[int | str, dict[str, Any]]:
    responses: dict[int | str, dict[str, Any]] = {}
    for example in examples:
        response: dict[str, Any] | None = responses.get(example.status_code)
        if response is None:
            examples_payload: dict[str, dict[str, Any]] = {}
            content: dict[str, dict[str, dict[str, Any]]] = {
                "application/json": {"examples": examples_payload}
            }
            response = {
                "model": ErrorResponse,
                "description": example.description,
                "content": content,
            }
            responses[example.status_code] = response
        assert response is not None

        example_name = example.example_name or example.error
        payload: dict[str, Any] = {
            "error": example.error,
            "message": example.message,
        }
        if example.details is not None:
            payload["details"] = example.details

        example_entry: dict[str, Any] = {
            "summary": example.summary or example.description,
            "value": payload,
        }
        response_content: dict[str, dict[str, dict[str, Any]]] = response["content"]
        response_content["application/json"]["examples"][example_name] = example_entry

    return responses


def rate_limited_response(
    description: str = "Rate limit exceeded",
) -> dict[int | str, dict[str, Any]]:
    return error_responses(
        ErrorExample(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error="rate_limited",
            message="Too many requests",
            description=description,
            summary="Too many requests",
        )
    )


def bad_request_response(
    error: str = "bad_request",
    message: str = "Missing required fields",
    description: str = "Invalid request",
) -> dict[int | str, dict[str, Any]]:
    return error_responses(
        ErrorExample(
            status_code=status.HTTP_400_BAD_REQUEST,
            error=error,
            message=message,
            description=description,
        )
    )


def not_found_response(
    error: str = "not_found",
    message: str = "Resource not found",
    description: str = "Resource not found",
) -> dict[int | str, dict[str, Any]]:
    return error_responses(
        ErrorExample(
            status_code=status.HTTP_404_NOT_FOUND,
            error=error,
            message=message,
            description=description,
        )
    )


def validation_error_response() -> dict[int | str, dict[str, Any]]:
    return error_responses(
        ErrorExample(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            error="validation_error",
            message="Request validation failed",
            description="Invalid request body",
            summary="Request validation failed",
        )
    )


def upstream_error_responses(service: str) -> dict[int | str, dict[str, Any]]:
    """502/503 examples for endpoints backed by a third-party service."""
    return error_responses(
        ErrorExample(
            status_code=status.HTTP_502_BAD_GATEWAY,
            error="upstream_error",
            message=f"{service} returned an unusable response.",
            description=f"{service} authentication or response error",
        ),
        ErrorExample(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error="service_not_configured",
            message=f"{service} is not configured.",
            description=f"{service} unavailable or not configured",
        ),
        ErrorExample(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error="upstream_unavailable",
            message=f"{service} is unreachable.",
            description=f"{service} unavailable or not configured",
        ),
    )


def merge_responses(*groups: dict[int | str, dict[str, Any]]) -> dict[int | str, dict[str, Any]]:
    merged: dict[int | str, dict[str, Any]] = {}
    for group in groups:
        for status_code, response in group.items():
            existing = merged.get(status_code)
            if existing is None:
                merged[status_code] = copy.deepcopy(response)
                continue
            existing["content"]["application/json"]["examples"].update(
                response["content"]["application/json"]["examples"]
            )
    return merged
