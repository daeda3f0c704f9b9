"""Posting campaign content to connected social accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from adintel.core.errors import ServiceError
from adintel.integrations.composio import ComposioClient

logger = logging.getLogger(__name__)

Platform = Literal["instagram", "linkedin", "twitter"]
PLATFORMS: tuple[Platform, ...] = ("instagram", "linkedin", "twitter")


class SocialActionError(Exception):
    """A post could not be made; the message is shown to the user."""


@dataclass(frozen=True)
class SocialAction:
    platform: str
    content: str
    media: str | None = None


@dataclass(frozen=True)
class ActionResult:
    success: bool
    message: str
    action_id: str | None = None


class SocialActionService:
    def __init__(self, composio: ComposioClient) -> None:
        self._composio = composio

    async def execute(self, action: SocialAction, user_id: str) -> ActionResult:
        """Post ``action`` on behalf of ``user_id``; failures are reported, not raised."""
        logger.info("Executing social action on %s for user %s", action.platform, user_id)
        try:
            toolkits = await self._composio.list_connected_toolkits(user_id)
            if not any(
                slug == action.platform or action.platform in slug for slug in toolkits
            ):
                return ActionResult(
                    success=False,
                    message=(
                        f"No {action.platform} account connected. "
                        "Please connect your account first."
                    ),
                )
            result = await self._post(action, user_id)
        except (ServiceError, SocialActionError) as e:
            logger.error("Social action execution failed: %s", e)
            return ActionResult(
                success=False, message=f"Failed to post to {action.platform}: {e}"
            )

        data = result.get("data") or {}
        action_id = result.get("id") or (data.get("id") if isinstance(data, dict) else None)
        return ActionResult(
            success=True,
            message=f"Successfully posted to {action.platform}!",
            action_id=str(action_id) if action_id else None,
        )

    async def _post(self, action: SocialAction, user_id: str) -> dict[str, Any]:
        if action.platform == "instagram":
            return await self._post_to_instagram(action, user_id)
        if action.platform in ("linkedin", "twitter"):
            arguments: dict[str, Any] = {"text": action.content}
            if action.media:
                arguments["media_url"] = action.media
            slug = f"{action.platform.upper()}_CREATE_POST"
            return await self._composio.execute_tool(slug, user_id, arguments)
        raise SocialActionError(f"Unsupported platform: {action.platform}")

    async def _post_to_instagram(self, action: SocialAction, user_id: str) -> dict[str, Any]:
        # Instagram publishes in two steps: create a media container, then post it
        if not action.media:
            raise SocialActionError(
                "Instagram requires media for posts. Please provide an image or video."
            )
        user_info = await self._composio.execute_tool("INSTAGRAM_GET_USER_INFO", user_id, {})
        ig_user_id = (user_info.get("data") or {}).get("id")
        if not ig_user_id:
            raise SocialActionError("Could not resolve the Instagram account id")
        container = await self._composio.execute_tool(
            "INSTAGRAM_CREATE_MEDIA_CONTAINER",
            user_id,
            {
                "ig_user_id": ig_user_id,
                "caption": action.content,
                "content_type": "photo",
                "image_url": action.media,
            },
        )
        creation_id = (container.get("data") or {}).get("id")
        if not creation_id:
            raise SocialActionError("Failed to create media container")
        return await self._composio.execute_tool(
            "INSTAGRAM_CREATE_POST",
            user_id,
            {"ig_user_id": ig_user_id, "creation_id": creation_id},
        )

    async def connected_accounts(self, user_id: str) -> dict[str, bool]:
        """Which platforms the user has connected; all False when the lookup fails."""
        try:
            toolkits = set(await self._composio.list_connected_toolkits(user_id))
        except ServiceError as e:
            logger.error("Failed to check connected accounts: %s", e)
            return dict.fromkeys(PLATFORMS, False)
        return {platform: platform in toolkits for platform in PLATFORMS}
