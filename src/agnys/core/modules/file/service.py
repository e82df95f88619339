from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from agnys.core.core import Service
from agnys.core.db import delete_owned, find_owned
from agnys.core.modules.file.models import StoredFile, UploadResult
from agnys.core.modules.file.utils import MAX_UPLOAD_SIZE
from agnys.core.modules.invalidation.models import ResourceKind
from agnys.core.modules.session.models import Identity
from agnys.errors import NotFoundError, UpstreamServiceError, ValidationError

logger = structlog.get_logger(__name__)


class FileService(Service):
    """Manages uploaded files: blob content plus an ownership-scoped record."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("files")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("project_id", 1)])
        await self._collection.create_index([("user_id", 1), ("task_id", 1)])

    async def upload_file(
        self,
        identity: Identity,
        filename: str,
        content: bytes,
        mime_type: str,
        project_id: UUID | None = None,
        task_id: UUID | None = None,
    ) -> UploadResult:
        """Store a file in blob storage and record it.

        The size ceiling and ownership of the referenced project/task are checked
        before blob storage is touched.

        Raises:
            ValidationError: If the file is empty or larger than 10 MB
            NotFoundError: If the project or task is not owned by the caller
            UpstreamServiceError: If blob storage or the database fails
        """
        if len(content) > MAX_UPLOAD_SIZE:
            logger.info("upload_rejected", reason="too_large", size=len(content), user_id=identity.user_id)
            raise ValidationError("File size exceeds 10MB limit")
        if not content:
            raise ValidationError("No file provided")

        if project_id is not None:
            await self.core.services.project.get_project(identity, project_id)
        if task_id is not None:
            task = await self.core.services.task.get_task(identity, task_id)
            if project_id is not None and task.project_id != project_id:
                raise NotFoundError("Task not found")
            project_id = task.project_id

        blob_storage = self.core.blob_storage
        url = await blob_storage.put(filename, content)

        record = StoredFile(
            user_id=identity.user_id,
            name=filename,
            url=url,
            size=len(content),
            type=mime_type,
            project_id=project_id,
            task_id=task_id,
        )
        try:
            await self._collection.insert_one(record.to_mongo())
        except PyMongoError as e:
            # Do not leave an orphaned blob behind
            try:
                await blob_storage.delete(url)
            except UpstreamServiceError as cleanup_error:
                logger.warning("orphaned_blob", url=url, error=str(cleanup_error))
            raise UpstreamServiceError(f"Failed to save file record: {e}") from e

        self.core.services.invalidation.invalidate(ResourceKind.FILE, project_id=project_id)
        logger.debug("file_uploaded", file_id=record.id, size=record.size, user_id=identity.user_id)
        return UploadResult(url=url, filename=filename, size=record.size, type=mime_type)

    async def list_files(self, identity: Identity, project_id: UUID | None = None, task_id: UUID | None = None) -> list[StoredFile]:
        """List the caller's files, newest first, optionally narrowed to a project or task."""
        query: dict[str, Any] = {"user_id": identity.user_id}
        if project_id is not None:
            query["project_id"] = project_id
        if task_id is not None:
            query["task_id"] = task_id
        return await StoredFile.list_cursor(self._collection.find(query).sort("created_at", -1))

    async def delete_file(self, identity: Identity, file_id: UUID, url: str) -> None:
        """Delete an owned file from blob storage and the database.

        The record is looked up scoped to the caller; a foreign or unknown file, or a URL
        that does not match the record, leaves both stores untouched.
        """
        doc = await find_owned(self._collection, file_id, identity.user_id)
        if doc is None or doc["url"] != url:
            raise NotFoundError("File not found or unauthorized")
        record = StoredFile.model_validate(doc)

        await self.core.blob_storage.delete(record.url)
        await delete_owned(self._collection, file_id, identity.user_id)
        self.core.services.invalidation.invalidate(ResourceKind.FILE, project_id=record.project_id)
        logger.debug("file_deleted", file_id=file_id, user_id=identity.user_id)
