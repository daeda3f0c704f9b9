from __future__ import annotations

from typing import Any

from adintel.api.schemas.base import CamelModel


class ExecuteActionRequest(CamelModel):
    action: dict[str, Any] | None = None
    user_id: str | None = None


class ActionResultResponse(CamelModel):
    success: bool
    message: str
    action_id: str | None = None


class ConnectedAccountsResponse(CamelModel):
    success: bool = True
    connected_accounts: dict[str, bool]
