from datetime import datetime
from uuid import UUID

from pydantic import Field

from agnys.core.db import MongoModel
from agnys.utils import now


class ChecklistItem(MongoModel):
    """Checkbox line of a task. Ordered by position within the task."""

    user_id: UUID
    task_id: UUID
    project_id: UUID
    content: str
    is_completed: bool = False
    position: int = 0
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
