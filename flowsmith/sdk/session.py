"""Explicit session context threaded through the SDK clients."""

from __future__ import annotations

from dataclasses import dataclass

from flowsmith.errors import AuthRequiredError


@dataclass
class SessionContext:
    """Who is calling, and which flow is open.

    The clients never look up the current user or flow anywhere else.
    """

    user_id: str
    access_token: str
    flow_id: str | None = None

    def auth_headers(self) -> dict[str, str]:
        if not self.access_token:
            raise AuthRequiredError("No active session")
        return {"Authorization": f"Bearer {self.access_token}"}
