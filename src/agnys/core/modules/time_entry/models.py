from datetime import datetime, timedelta
from uuid import UUID

from pydantic import BaseModel, Field

from agnys.core.db import MongoModel
from agnys.errors import ValidationError
from agnys.utils import now


class TimeEntry(MongoModel):
    """Time spent on a task. A running timer has no end_time yet."""

    user_id: UUID
    task_id: UUID
    project_id: UUID
    description: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    duration_minutes: int | None = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class TimeEntryView(TimeEntry):
    """Time entry with the title of its task, for reports."""

    task_title: str | None = None


class TimeSummary(BaseModel):
    total_minutes: int = 0
    last_7_days_minutes: int = 0


def elapsed_minutes(start: datetime, end: datetime) -> int:
    return max(int((end - start) / timedelta(minutes=1)), 0)


def clean_duration(duration_minutes: int) -> int:
    if duration_minutes <= 0:
        raise ValidationError("Enter a valid duration in minutes.")
    return duration_minutes


def clean_description(description: str | None) -> str | None:
    return (description or "").strip() or None
