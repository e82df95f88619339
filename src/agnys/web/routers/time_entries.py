from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from agnys.core.modules.time_entry.models import TimeEntry, TimeEntryView
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["time-entries"])


class StartTimerRequest(BaseModel):
    task_id: UUID
    description: str | None = None


class ManualEntryRequest(BaseModel):
    task_id: UUID
    duration_minutes: int = Field(..., description="Minutes spent, ending now (positive)")
    description: str | None = None


class UpdateEntryRequest(BaseModel):
    duration_minutes: int = Field(..., description="Corrected duration in minutes (positive)")
    description: str | None = None


class TimeEntryResponse(BaseModel):
    entry: TimeEntry


class TimeEntryListResponse(BaseModel):
    entries: list[TimeEntry]


class SuccessResponse(BaseModel):
    success: bool = True


@router.get(
    "/time-entries",
    summary="Time report",
    description="Finished entries that started at or after `startDate` and ended at or before `endDate`, with task titles.",
    operation_id="listTimeEntries",
    responses={
        400: {"model": ErrorResponse, "description": "Missing or inverted date range"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_time_entries(
    app: AppDep,
    auth_token: AuthTokenDep,
    start_date: Annotated[datetime, Query(alias="startDate")],
    end_date: Annotated[datetime, Query(alias="endDate")],
) -> list[TimeEntryView]:
    return await app.list_time_entries(auth_token, start_date, end_date)


@router.get(
    "/tasks/{task_id}/time-entries",
    summary="List time entries of a task",
    operation_id="listTaskTimeEntries",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
async def list_task_time_entries(task_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> TimeEntryListResponse:
    return TimeEntryListResponse(entries=await app.list_task_time_entries(auth_token, task_id))


@router.post(
    "/time-entries/start",
    summary="Start timer",
    operation_id="startTimer",
    responses={
        400: {"model": ErrorResponse, "description": "A timer is already running for the task"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
async def start_timer(request: StartTimerRequest, app: AppDep, auth_token: AuthTokenDep) -> TimeEntryResponse:
    return TimeEntryResponse(entry=await app.start_timer(auth_token, request.task_id, request.description))


@router.post(
    "/time-entries/{entry_id}/stop",
    summary="Stop timer",
    operation_id="stopTimer",
    responses={
        400: {"model": ErrorResponse, "description": "Timer is not running"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Time entry not found"},
    },
)
async def stop_timer(entry_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> TimeEntryResponse:
    return TimeEntryResponse(entry=await app.stop_timer(auth_token, entry_id))


@router.post(
    "/time-entries/manual",
    summary="Add time manually",
    operation_id="addManualTimeEntry",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid duration"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
async def add_manual_entry(request: ManualEntryRequest, app: AppDep, auth_token: AuthTokenDep) -> TimeEntryResponse:
    entry = await app.add_manual_time_entry(auth_token, request.task_id, request.duration_minutes, request.description)
    return TimeEntryResponse(entry=entry)


@router.post(
    "/time-entries/{entry_id}/update",
    summary="Correct a time entry",
    operation_id="updateTimeEntry",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid duration"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Time entry not found"},
    },
)
async def update_time_entry(
    entry_id: UUID, request: UpdateEntryRequest, app: AppDep, auth_token: AuthTokenDep
) -> TimeEntryResponse:
    entry = await app.update_time_entry(auth_token, entry_id, request.duration_minutes, request.description)
    return TimeEntryResponse(entry=entry)


@router.delete(
    "/time-entries/{entry_id}",
    summary="Delete time entry",
    operation_id="deleteTimeEntry",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Time entry not found"},
    },
)
async def delete_time_entry(entry_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.delete_time_entry(auth_token, entry_id)
    return SuccessResponse()
