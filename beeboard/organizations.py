# organizations.py

import logging
from typing import List, Optional

from beeboard.errors import NotFoundError, ValidationError
from beeboard.logging_config import get_activity_logger
from beeboard.models import DEFAULT_PROJECT_COLOR, Organization, Project
from beeboard.repository import ProjectRepository
from beeboard.session import SessionContext

logger = logging.getLogger(__name__)


class OrganizationService:
    """
    Organization membership and project creation for the dashboard.

    A user without an organization gets one, with themselves as owner, the
    first time ``ensure_organization`` runs for them.
    """

    def __init__(self, repository: ProjectRepository, default_name: str = "Minha Organização") -> None:
        self.repository = repository
        self.default_name = default_name
        self.activity_logger = get_activity_logger()

    async def ensure_organization(self, user_id: str, name: Optional[str] = None) -> Organization:
        if not user_id or not user_id.strip():
            raise ValidationError("An authenticated user is required")

        membership = await self.repository.fetch_membership(user_id)
        if membership is not None:
            organization = await self.repository.fetch_organization(membership.organization_id)
            if organization is None:
                raise NotFoundError(
                    f"Organization '{membership.organization_id}' of user {user_id} not found"
                )
            return organization

        organization = await self.repository.create_organization_with_owner(
            (name or self.default_name).strip() or self.default_name, user_id
        )
        logger.info(f"Created organization {organization.id} for user {user_id}")
        self.activity_logger.info(
            f"USER:{user_id} | ACTION:create_organization | ORGANIZATION:{organization.id}"
        )
        return organization

    async def open_session(self, user_id: str) -> SessionContext:
        """SessionContext for ``user_id`` bound to their (possibly new) organization."""
        organization = await self.ensure_organization(user_id)
        return SessionContext(user_id=user_id, organization_id=organization.id)

    async def create_project(
        self,
        ctx: SessionContext,
        title: str,
        description: str = "",
        color: str = DEFAULT_PROJECT_COLOR,
    ) -> Project:
        if not title or not title.strip():
            raise ValidationError("Project title is required")
        user_id = ctx.require_user()
        if not ctx.organization_id:
            raise ValidationError("Projects must belong to an organization")

        project = await self.repository.insert_project(
            {
                "title": title.strip(),
                "description": (description or "").strip() or None,
                "color": color or DEFAULT_PROJECT_COLOR,
                "organization_id": ctx.organization_id,
                "created_by": user_id,
            }
        )
        self.activity_logger.info(
            f"USER:{user_id} | ACTION:create_project | PROJECT:{project.id} | TITLE:{project.title[:50]}"
        )
        return project

    async def list_projects(self, ctx: SessionContext, limit: int = 10) -> List[Project]:
        """Most recently created projects of the session's organization."""
        if not ctx.organization_id:
            return []
        return await self.repository.list_projects(ctx.organization_id, limit=limit)
