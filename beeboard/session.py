"""
Acting identity passed explicitly through every controller call.
"""

from dataclasses import dataclass
from typing import Optional

from beeboard.errors import ValidationError


@dataclass(frozen=True)
class SessionContext:
    """
    Who is acting, and in which organization.

    Authentication happens outside the board core; callers build this value
    from whatever session they hold.
    """
    user_id: str
    """ID of the authenticated user."""

    organization_id: Optional[str] = None
    """Organization the user is working in, once known."""

    def require_user(self) -> str:
        if not self.user_id or not self.user_id.strip():
            raise ValidationError("An authenticated user is required")
        return self.user_id

    def with_organization(self, organization_id: str) -> "SessionContext":
        return SessionContext(user_id=self.user_id, organization_id=organization_id)
