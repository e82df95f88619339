from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.db import delete_owned, update_owned
from agnys.core.modules.checklist.models import ChecklistItem
from agnys.core.modules.invalidation.models import ResourceKind
from agnys.core.modules.session.models import Identity
from agnys.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class ChecklistService(Service):
    """Manages checklist items of tasks, always scoped to the owning user."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("checklist_items")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("task_id", 1), ("position", 1)])
        await self._collection.create_index([("user_id", 1), ("project_id", 1)])

    async def list_items(self, identity: Identity, task_id: UUID) -> list[ChecklistItem]:
        cursor = self._collection.find({"user_id": identity.user_id, "task_id": task_id}).sort("position", 1)
        return await ChecklistItem.list_cursor(cursor)

    async def list_project_items(self, identity: Identity, project_id: UUID) -> list[ChecklistItem]:
        cursor = self._collection.find({"user_id": identity.user_id, "project_id": project_id}).sort(
            [("task_id", 1), ("position", 1)]
        )
        return await ChecklistItem.list_cursor(cursor)

    async def add_item(self, identity: Identity, task_id: UUID, content: str) -> ChecklistItem:
        """Append an item to the end of an owned task's checklist."""
        content = content.strip()
        if not content:
            raise ValidationError("Checklist item cannot be empty.")

        task = await self.core.services.task.get_task(identity, task_id)
        last = await self._collection.find({"user_id": identity.user_id, "task_id": task_id}).sort("position", -1).to_list(1)
        position = last[0]["position"] + 1 if last else 0

        item = ChecklistItem(
            user_id=identity.user_id, task_id=task_id, project_id=task.project_id, content=content, position=position
        )
        await self._collection.insert_one(item.to_mongo())
        self.core.services.invalidation.invalidate(ResourceKind.CHECKLIST_ITEM, project_id=task.project_id)
        return item

    async def set_completed(self, identity: Identity, item_id: UUID, completed: bool) -> ChecklistItem:
        doc = await update_owned(self._collection, item_id, identity.user_id, {"is_completed": completed})
        if doc is None:
            raise NotFoundError("Checklist item not found")
        item = ChecklistItem.model_validate(doc)
        self.core.services.invalidation.invalidate(ResourceKind.CHECKLIST_ITEM, project_id=item.project_id)
        return item

    async def delete_item(self, identity: Identity, item_id: UUID) -> None:
        doc = await delete_owned(self._collection, item_id, identity.user_id)
        if doc is None:
            raise NotFoundError("Checklist item not found")
        self.core.services.invalidation.invalidate(ResourceKind.CHECKLIST_ITEM, project_id=doc["project_id"])

    async def delete_task_items(self, identity: Identity, task_id: UUID) -> None:
        await self._collection.delete_many({"user_id": identity.user_id, "task_id": task_id})
