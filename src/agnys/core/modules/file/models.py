from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from agnys.core.db import MongoModel
from agnys.utils import now


class StoredFile(MongoModel):
    """Uploaded file record. The content lives in blob storage at url."""

    user_id: UUID
    name: str  # Original filename from user
    url: str
    size: int  # File size in bytes
    type: str  # Content type (e.g., "image/png")
    project_id: UUID | None = None
    task_id: UUID | None = None
    created_at: datetime = Field(default_factory=now)


class UploadResult(BaseModel):
    """Upload response."""

    url: str = Field(..., description="Public URL of the stored file")
    filename: str = Field(..., description="Original filename")
    size: int = Field(..., description="File size in bytes")
    type: str = Field(..., description="MIME type")
