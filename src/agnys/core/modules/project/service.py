from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.db import find_owned, update_owned
from agnys.core.modules.invalidation.models import ResourceKind
from agnys.core.modules.project.models import (
    Project,
    ProjectFieldUpdate,
    ProjectStatus,
    clean_color,
    clean_project_name,
)
from agnys.core.modules.session.models import Identity
from agnys.errors import NotFoundError

logger = structlog.get_logger(__name__)


class ProjectService(Service):
    """Manages projects, always scoped to the owning user."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("projects")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("status", 1), ("name", 1)])

    async def get_project(self, identity: Identity, project_id: UUID) -> Project:
        """Get a project owned by the caller."""
        doc = await find_owned(self._collection, project_id, identity.user_id)
        if doc is None:
            raise NotFoundError("Project not found")
        return Project.model_validate(doc)

    async def list_projects(self, identity: Identity, status: ProjectStatus | None = ProjectStatus.ACTIVE) -> list[Project]:
        """List the caller's projects ordered by name, optionally filtered by status."""
        query: dict[str, Any] = {"user_id": identity.user_id}
        if status is not None:
            query["status"] = status
        return await Project.list_cursor(self._collection.find(query).sort("name", 1))

    async def create_project(self, identity: Identity, name: str, description: str | None, color: str | None) -> Project:
        project = Project(
            user_id=identity.user_id,
            name=clean_project_name(name),
            description=(description or "").strip() or None,
            color=clean_color(color),
        )
        await self._collection.insert_one(project.to_mongo())
        self.core.services.invalidation.invalidate(ResourceKind.PROJECT, project_id=project.id)
        logger.debug("project_created", project_id=project.id, user_id=identity.user_id)
        return project

    async def update_field(self, identity: Identity, project_id: UUID, update: ProjectFieldUpdate) -> tuple[Project, list[str]]:
        """Validate and apply a single-field edit in one ownership-scoped write.

        Returns the updated project and the invalidated view paths. Validation errors
        are raised before any write is issued.
        """
        changes = update.changes()
        doc = await update_owned(self._collection, project_id, identity.user_id, changes)
        if doc is None:
            raise NotFoundError("Project not found")
        paths = self.core.services.invalidation.invalidate(ResourceKind.PROJECT, project_id=project_id)
        return Project.model_validate(doc), paths
