from datetime import datetime
from uuid import UUID

from pydantic import Field

from agnys.core.db import MongoModel
from agnys.utils import now


class Note(MongoModel):
    """Free-text note attached to a project and optionally to one of its tasks."""

    user_id: UUID
    project_id: UUID
    task_id: UUID | None = None
    title: str | None = None
    content: str
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
