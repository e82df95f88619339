from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from agnys.core.modules.checklist.models import ChecklistItem
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["checklist"])


class AddChecklistItemRequest(BaseModel):
    content: str = Field(..., description="Item text (required, trimmed)")


class SetCompletedRequest(BaseModel):
    completed: bool


class ChecklistResponse(BaseModel):
    items: list[ChecklistItem]


class ChecklistItemResponse(BaseModel):
    item: ChecklistItem


class SuccessResponse(BaseModel):
    success: bool = True


@router.get(
    "/tasks/{task_id}/checklist",
    summary="List checklist items",
    description="Items of a task ordered by position.",
    operation_id="listChecklistItems",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_checklist(task_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> ChecklistResponse:
    return ChecklistResponse(items=await app.list_checklist(auth_token, task_id))


@router.post(
    "/tasks/{task_id}/checklist",
    summary="Add checklist item",
    description="Appends an item after the task's last item.",
    operation_id="addChecklistItem",
    responses={
        400: {"model": ErrorResponse, "description": "Empty item"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
async def add_checklist_item(
    task_id: UUID, request: AddChecklistItemRequest, app: AppDep, auth_token: AuthTokenDep
) -> ChecklistItemResponse:
    return ChecklistItemResponse(item=await app.add_checklist_item(auth_token, task_id, request.content))


@router.post(
    "/checklist/{item_id}/completed",
    summary="Check or uncheck item",
    operation_id="setChecklistItemCompleted",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Checklist item not found"},
    },
)
async def set_completed(
    item_id: UUID, request: SetCompletedRequest, app: AppDep, auth_token: AuthTokenDep
) -> ChecklistItemResponse:
    return ChecklistItemResponse(item=await app.set_checklist_item_completed(auth_token, item_id, request.completed))


@router.delete(
    "/checklist/{item_id}",
    summary="Delete checklist item",
    operation_id="deleteChecklistItem",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Checklist item not found"},
    },
)
async def delete_checklist_item(item_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.delete_checklist_item(auth_token, item_id)
    return SuccessResponse()
