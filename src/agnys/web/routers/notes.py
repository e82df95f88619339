from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from agnys.core.modules.note.models import Note
from agnys.core.pagination import PaginationResult
from agnys.core.results import ActionResult
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.error_handlers import action_response
from agnys.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["notes"])


class CreateNoteRequest(BaseModel):
    """Request to create a new note."""

    project_id: UUID = Field(..., description="Project the note belongs to")
    task_id: UUID | None = Field(None, description="Optional task of the same project")
    title: str | None = None
    content: str = Field(..., description="Note body (required)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "project_id": "0b7c2f7e-6a53-4d8e-9d5a-2f1a3c4b5d6e",
                    "title": "Kickoff",
                    "content": "Agreed on the scope for the first milestone.",
                }
            ]
        }
    }


class UpdateNoteDetailsRequest(BaseModel):
    """Title and content replace the stored values together."""

    title: str
    content: str


class NoteResponse(BaseModel):
    note: Note


class SuccessResponse(BaseModel):
    success: bool = True


@router.get(
    "/notes",
    summary="List project notes",
    description="Notes of an owned project, newest first. Optionally narrowed to one task.",
    operation_id="listNotes",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_notes(
    app: AppDep,
    auth_token: AuthTokenDep,
    project_id: UUID,
    task_id: UUID | None = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Note]:
    return await app.list_notes(auth_token, project_id, task_id, limit, offset)


@router.post(
    "/notes/create",
    summary="Create note",
    operation_id="createNote",
    responses={
        400: {"model": ErrorResponse, "description": "Empty content"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Project or task not found"},
    },
)
async def create_note(request: CreateNoteRequest, app: AppDep, auth_token: AuthTokenDep) -> NoteResponse:
    note = await app.create_note(auth_token, request.project_id, request.content, request.title, request.task_id)
    return NoteResponse(note=note)


@router.post(
    "/notes/{note_id}/details",
    summary="Update note title and content",
    operation_id="updateNoteDetails",
    response_model=ActionResult,
    responses={
        400: {"model": ActionResult, "description": "Title or content empty, nothing written"},
        401: {"model": ActionResult, "description": "Not authenticated"},
        404: {"model": ActionResult, "description": "Note not found"},
    },
)
async def update_note_details(
    note_id: UUID, request: UpdateNoteDetailsRequest, app: AppDep, auth_token: AuthTokenDep
) -> JSONResponse:
    return action_response(await app.update_note_details(auth_token, note_id, request.title, request.content))


@router.delete(
    "/notes/{note_id}",
    summary="Delete note",
    operation_id="deleteNote",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found"},
    },
)
async def delete_note(note_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.delete_note(auth_token, note_id)
    return SuccessResponse()
