from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from agnys.core.modules.task.models import Task, TaskFieldUpdate
from agnys.core.results import ActionResult
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.error_handlers import action_response
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["tasks"])


class CreateTaskRequest(BaseModel):
    title: str = Field(..., description="Task title (required, trimmed)")
    project_id: UUID = Field(..., description="Project the task belongs to; must be owned by the caller")
    description: str | None = None
    priority: str | None = Field(None, description="low, medium (default) or high")
    due_date: str | None = Field(None, description="YYYY-MM-DD")


class TaskResponse(BaseModel):
    task: Task


class SuccessResponse(BaseModel):
    success: bool = True


@router.post(
    "/tasks/create",
    summary="Create task",
    operation_id="createTask",
    responses={
        400: {"model": ErrorResponse, "description": "Missing title or invalid field"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Project not found"},
    },
)
async def create_task(request: CreateTaskRequest, app: AppDep, auth_token: AuthTokenDep) -> TaskResponse:
    task = await app.create_task(
        auth_token, request.project_id, request.title, request.description, request.priority, request.due_date
    )
    return TaskResponse(task=task)


@router.post(
    "/tasks/{task_id}/fields",
    summary="Update one task field",
    description=(
        "Inline edit of a single field: `title` (non-empty), `description`, `status` (todo, in_progress, completed), "
        "`priority` (low, medium, high) or `due_date` (YYYY-MM-DD or null)."
    ),
    operation_id="updateTaskField",
    response_model=ActionResult,
    responses={
        400: {"model": ActionResult, "description": "Validation failed, nothing written"},
        401: {"model": ActionResult, "description": "Not authenticated"},
        404: {"model": ActionResult, "description": "Task not found"},
    },
)
async def update_task_field(
    task_id: UUID, update: Annotated[TaskFieldUpdate, Body()], app: AppDep, auth_token: AuthTokenDep
) -> JSONResponse:
    return action_response(await app.update_task_field(auth_token, task_id, update))


@router.delete(
    "/tasks/{task_id}",
    summary="Delete task",
    operation_id="deleteTask",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
async def delete_task(task_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.delete_task(auth_token, task_id)
    return SuccessResponse()
