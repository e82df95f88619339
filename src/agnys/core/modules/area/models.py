from datetime import datetime
from uuid import UUID

from pydantic import Field

from agnys.core.db import MongoModel
from agnys.utils import now


class Area(MongoModel):
    """Long-running area of responsibility with an optional vision statement."""

    user_id: UUID
    name: str
    vision_statement: str | None = None
    created_at: datetime = Field(default_factory=now)
