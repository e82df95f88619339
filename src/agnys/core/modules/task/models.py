from datetime import date, datetime
from enum import StrEnum
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from agnys.core.db import MongoModel
from agnys.errors import ValidationError
from agnys.utils import now


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(MongoModel):
    """Task inside a project. Indexed on (user_id, project_id)."""

    user_id: UUID
    project_id: UUID
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: str | None = None  # ISO date, YYYY-MM-DD
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


def clean_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise ValidationError("Task title cannot be empty.")
    return title


def clean_priority(priority: str | None) -> TaskPriority:
    if not priority:
        return TaskPriority.MEDIUM
    if priority not in TaskPriority:
        raise ValidationError(f"Invalid priority '{priority}'. Allowed: {', '.join(TaskPriority)}.")
    return TaskPriority(priority)


def clean_status(status: str) -> TaskStatus:
    if status not in TaskStatus:
        raise ValidationError(f"Invalid task status '{status}'. Allowed: {', '.join(TaskStatus)}.")
    return TaskStatus(status)


def clean_due_date(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError as e:
        raise ValidationError(f"Invalid due date '{value}'. Expected YYYY-MM-DD.") from e


class TaskTitleUpdate(BaseModel):
    field: Literal["title"] = "title"
    value: str

    def changes(self) -> dict[str, Any]:
        return {"title": clean_title(self.value)}


class TaskDescriptionUpdate(BaseModel):
    field: Literal["description"] = "description"
    value: str | None = None

    def changes(self) -> dict[str, Any]:
        return {"description": (self.value or "").strip() or None}


class TaskStatusUpdate(BaseModel):
    field: Literal["status"] = "status"
    value: str

    def changes(self) -> dict[str, Any]:
        return {"status": clean_status(self.value)}


class TaskPriorityUpdate(BaseModel):
    field: Literal["priority"] = "priority"
    value: str

    def changes(self) -> dict[str, Any]:
        if not self.value:
            raise ValidationError("Task priority cannot be empty.")
        return {"priority": clean_priority(self.value)}


class TaskDueDateUpdate(BaseModel):
    field: Literal["due_date"] = "due_date"
    value: str | None = None

    def changes(self) -> dict[str, Any]:
        return {"due_date": clean_due_date(self.value)}


TaskFieldUpdate = Annotated[
    TaskTitleUpdate | TaskDescriptionUpdate | TaskStatusUpdate | TaskPriorityUpdate | TaskDueDateUpdate,
    Field(discriminator="field"),
]
