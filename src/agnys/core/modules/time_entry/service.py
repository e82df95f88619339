from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.db import delete_owned, find_owned, owned, update_owned
from agnys.core.modules.invalidation.models import ResourceKind
from agnys.core.modules.session.models import Identity
from agnys.core.modules.time_entry.models import (
    TimeEntry,
    TimeEntryView,
    TimeSummary,
    clean_description,
    clean_duration,
    elapsed_minutes,
)
from agnys.errors import NotFoundError, ValidationError
from agnys.utils import as_utc, now

logger = structlog.get_logger(__name__)

SUMMARY_WINDOW = timedelta(days=7)


class TimeEntryService(Service):
    """Tracks time spent on tasks: running timers and manual entries."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("time_entries")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("start_time", 1)])
        await self._collection.create_index([("user_id", 1), ("task_id", 1)])
        await self._collection.create_index([("user_id", 1), ("project_id", 1)])

    async def list_entries(self, identity: Identity, start: datetime, end: datetime) -> list[TimeEntryView]:
        """Entries of the caller that started at or after start and ended at or before end.

        Running timers have no end yet and are not reported.
        """
        start, end = as_utc(start), as_utc(end)
        if end < start:
            raise ValidationError("End date must not be before start date.")
        cursor = self._collection.find(
            {"user_id": identity.user_id, "start_time": {"$gte": start}, "end_time": {"$lte": end}}
        ).sort("start_time", 1)
        entries = await TimeEntry.list_cursor(cursor)
        titles = await self.core.services.task.get_titles(identity, {entry.task_id for entry in entries})
        return [TimeEntryView(**entry.model_dump(), task_title=titles.get(entry.task_id)) for entry in entries]

    async def list_task_entries(self, identity: Identity, task_id: UUID) -> list[TimeEntry]:
        cursor = self._collection.find({"user_id": identity.user_id, "task_id": task_id}).sort("start_time", -1)
        return await TimeEntry.list_cursor(cursor)

    async def start_timer(self, identity: Identity, task_id: UUID, description: str | None = None) -> TimeEntry:
        """Start a timer on an owned task. Only one timer per task may run at a time."""
        task = await self.core.services.task.get_task(identity, task_id)
        running = await self._collection.find_one({"user_id": identity.user_id, "task_id": task_id, "end_time": None})
        if running is not None:
            raise ValidationError("A timer is already running for this task.")

        entry = TimeEntry(
            user_id=identity.user_id,
            task_id=task_id,
            project_id=task.project_id,
            description=clean_description(description),
            start_time=now(),
        )
        await self._collection.insert_one(entry.to_mongo())
        self.core.services.invalidation.invalidate(ResourceKind.TIME_ENTRY, project_id=task.project_id)
        logger.debug("timer_started", entry_id=entry.id, task_id=task_id)
        return entry

    async def stop_timer(self, identity: Identity, entry_id: UUID) -> TimeEntry:
        """Stop a running timer and record its duration in whole minutes."""
        doc = await find_owned(self._collection, entry_id, identity.user_id)
        if doc is None:
            raise NotFoundError("Time entry not found")
        entry = TimeEntry.model_validate(doc)
        if entry.end_time is not None:
            raise ValidationError("Timer is not running.")

        end_time = now()
        # Matches only while still running, so a concurrent stop cannot overwrite the first
        doc = await self._collection.find_one_and_update(
            {**owned(entry_id, identity.user_id), "end_time": None},
            {
                "$set": {
                    "end_time": end_time,
                    "duration_minutes": elapsed_minutes(entry.start_time, end_time),
                    "updated_at": end_time,
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise ValidationError("Timer is not running.")
        stopped = TimeEntry.model_validate(doc)
        self.core.services.invalidation.invalidate(ResourceKind.TIME_ENTRY, project_id=stopped.project_id)
        logger.debug("timer_stopped", entry_id=entry_id, duration_minutes=stopped.duration_minutes)
        return stopped

    async def add_manual_entry(
        self, identity: Identity, task_id: UUID, duration_minutes: int, description: str | None = None
    ) -> TimeEntry:
        """Record time already spent, ending now."""
        duration_minutes = clean_duration(duration_minutes)
        task = await self.core.services.task.get_task(identity, task_id)

        end_time = now()
        entry = TimeEntry(
            user_id=identity.user_id,
            task_id=task_id,
            project_id=task.project_id,
            description=clean_description(description),
            start_time=end_time - timedelta(minutes=duration_minutes),
            end_time=end_time,
            duration_minutes=duration_minutes,
        )
        await self._collection.insert_one(entry.to_mongo())
        self.core.services.invalidation.invalidate(ResourceKind.TIME_ENTRY, project_id=task.project_id)
        return entry

    async def update_entry(
        self, identity: Identity, entry_id: UUID, duration_minutes: int, description: str | None = None
    ) -> TimeEntry:
        changes = {"duration_minutes": clean_duration(duration_minutes), "description": clean_description(description)}
        doc = await update_owned(self._collection, entry_id, identity.user_id, changes)
        if doc is None:
            raise NotFoundError("Time entry not found")
        entry = TimeEntry.model_validate(doc)
        self.core.services.invalidation.invalidate(ResourceKind.TIME_ENTRY, project_id=entry.project_id)
        return entry

    async def delete_entry(self, identity: Identity, entry_id: UUID) -> None:
        doc = await delete_owned(self._collection, entry_id, identity.user_id)
        if doc is None:
            raise NotFoundError("Time entry not found")
        self.core.services.invalidation.invalidate(ResourceKind.TIME_ENTRY, project_id=doc["project_id"])

    async def delete_task_entries(self, identity: Identity, task_id: UUID) -> None:
        await self._collection.delete_many({"user_id": identity.user_id, "task_id": task_id})

    async def project_summary(self, identity: Identity, project_id: UUID) -> TimeSummary:
        """Recorded minutes on a project overall and over the last seven days."""
        window_start = now() - SUMMARY_WINDOW
        summary = TimeSummary()
        cursor = self._collection.find(
            {"user_id": identity.user_id, "project_id": project_id, "duration_minutes": {"$ne": None}}
        )
        async for doc in cursor:
            summary.total_minutes += doc["duration_minutes"]
            if doc["start_time"] >= window_start:
                summary.last_7_days_minutes += doc["duration_minutes"]
        return summary
