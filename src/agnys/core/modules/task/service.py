from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.db import delete_owned, find_owned, update_owned
from agnys.core.modules.invalidation.models import ResourceKind
from agnys.core.modules.session.models import Identity
from agnys.core.modules.task.models import Task, TaskFieldUpdate, clean_due_date, clean_priority, clean_title
from agnys.errors import NotFoundError

logger = structlog.get_logger(__name__)


class TaskService(Service):
    """Manages tasks, always scoped to the owning user."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("tasks")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("project_id", 1)])

    async def get_task(self, identity: Identity, task_id: UUID) -> Task:
        """Get a task owned by the caller."""
        doc = await find_owned(self._collection, task_id, identity.user_id)
        if doc is None:
            raise NotFoundError("Task not found")
        return Task.model_validate(doc)

    async def list_project_tasks(self, identity: Identity, project_id: UUID) -> list[Task]:
        cursor = self._collection.find({"user_id": identity.user_id, "project_id": project_id}).sort("created_at", 1)
        return await Task.list_cursor(cursor)

    async def get_titles(self, identity: Identity, task_ids: set[UUID]) -> dict[UUID, str]:
        """Titles of the caller's tasks among task_ids; unknown ids are left out."""
        if not task_ids:
            return {}
        cursor = self._collection.find({"user_id": identity.user_id, "_id": {"$in": list(task_ids)}})
        return {task.id: task.title for task in await Task.list_cursor(cursor)}

    async def count_open_tasks(self, identity: Identity, project_id: UUID) -> int:
        return await self._collection.count_documents(
            {"user_id": identity.user_id, "project_id": project_id, "status": {"$ne": "completed"}}
        )

    async def create_task(
        self,
        identity: Identity,
        project_id: UUID,
        title: str,
        description: str | None = None,
        priority: str | None = None,
        due_date: str | None = None,
    ) -> Task:
        """Create a task in a project the caller owns."""
        task = Task(
            user_id=identity.user_id,
            project_id=project_id,
            title=clean_title(title),
            description=(description or "").strip() or None,
            priority=clean_priority(priority),
            due_date=clean_due_date(due_date),
        )
        # Scoped lookup: a foreign project is indistinguishable from a missing one
        await self.core.services.project.get_project(identity, project_id)
        await self._collection.insert_one(task.to_mongo())
        self.core.services.invalidation.invalidate(ResourceKind.TASK, project_id=project_id)
        logger.debug("task_created", task_id=task.id, project_id=project_id)
        return task

    async def update_field(self, identity: Identity, task_id: UUID, update: TaskFieldUpdate) -> tuple[Task, list[str]]:
        changes = update.changes()
        doc = await update_owned(self._collection, task_id, identity.user_id, changes)
        if doc is None:
            raise NotFoundError("Task not found")
        task = Task.model_validate(doc)
        paths = self.core.services.invalidation.invalidate(ResourceKind.TASK, project_id=task.project_id)
        return task, paths

    async def delete_task(self, identity: Identity, task_id: UUID) -> None:
        """Delete an owned task together with its checklist and time entries."""
        doc = await delete_owned(self._collection, task_id, identity.user_id)
        if doc is None:
            raise NotFoundError("Task not found")
        task = Task.model_validate(doc)
        await self.core.services.checklist.delete_task_items(identity, task_id)
        await self.core.services.time_entry.delete_task_entries(identity, task_id)
        self.core.services.invalidation.invalidate(ResourceKind.TASK, project_id=task.project_id)
