from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.db import delete_owned, update_owned
from agnys.core.modules.invalidation.models import ResourceKind
from agnys.core.modules.note.models import Note
from agnys.core.modules.session.models import Identity
from agnys.core.pagination import PaginationResult, paginate
from agnys.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class NoteService(Service):
    """Manages project and task notes, always scoped to the owning user."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("notes")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("project_id", 1), ("created_at", -1)])
        await self._collection.create_index([("task_id", 1)])

    async def list_notes(
        self, identity: Identity, project_id: UUID, task_id: UUID | None = None, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Note]:
        """List notes of a project (newest first), optionally narrowed to one task."""
        query: dict[str, Any] = {"user_id": identity.user_id, "project_id": project_id}
        if task_id is not None:
            query["task_id"] = task_id
        return await paginate(self._collection, Note, query, [("created_at", -1)], limit, offset)

    async def create_note(
        self, identity: Identity, project_id: UUID, content: str, title: str | None = None, task_id: UUID | None = None
    ) -> Note:
        """Create a note in a project the caller owns, optionally linked to one of its tasks."""
        content = content.strip()
        if not content:
            raise ValidationError("Note content cannot be empty.")

        await self.core.services.project.get_project(identity, project_id)
        if task_id is not None:
            task = await self.core.services.task.get_task(identity, task_id)
            if task.project_id != project_id:
                raise NotFoundError("Task not found")

        note = Note(
            user_id=identity.user_id,
            project_id=project_id,
            task_id=task_id,
            title=(title or "").strip() or None,
            content=content,
        )
        await self._collection.insert_one(note.to_mongo())
        self.core.services.invalidation.invalidate(ResourceKind.NOTE, project_id=project_id)
        return note

    async def update_details(self, identity: Identity, note_id: UUID, title: str, content: str) -> tuple[Note, list[str]]:
        """Replace title and content of an owned note. Both are required."""
        title, content = title.strip(), content.strip()
        if not title or not content:
            raise ValidationError("Title and content cannot be empty.")

        doc = await update_owned(self._collection, note_id, identity.user_id, {"title": title, "content": content})
        if doc is None:
            raise NotFoundError("Note not found")
        note = Note.model_validate(doc)
        paths = self.core.services.invalidation.invalidate(ResourceKind.NOTE, project_id=note.project_id)
        return note, paths

    async def delete_note(self, identity: Identity, note_id: UUID) -> None:
        doc = await delete_owned(self._collection, note_id, identity.user_id)
        if doc is None:
            raise NotFoundError("Note not found")
        self.core.services.invalidation.invalidate(ResourceKind.NOTE, project_id=doc["project_id"])
        logger.debug("note_deleted", note_id=note_id)
