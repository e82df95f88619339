from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from agnys.core.modules.project.models import Project, ProjectFieldUpdate, ProjectSummary
from agnys.core.results import ActionResult
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.error_handlers import action_response
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["projects"])


class CreateProjectRequest(BaseModel):
    name: str = Field(..., description="Project name (required, trimmed)")
    description: str | None = Field(None, description="Optional description")
    color: str | None = Field(None, description="Hex color #rrggbb, defaults to #22c55e")


class ProjectResponse(BaseModel):
    project: Project


class ProjectListResponse(BaseModel):
    projects: list[ProjectSummary]


@router.post(
    "/projects/create",
    summary="Create project",
    operation_id="createProject",
    responses={
        200: {"description": "Project created"},
        400: {"model": ErrorResponse, "description": "Missing name or invalid color"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        500: {"model": ErrorResponse, "description": "Persistence failure"},
    },
)
async def create_project(request: CreateProjectRequest, app: AppDep, auth_token: AuthTokenDep) -> ProjectResponse:
    project = await app.create_project(auth_token, request.name, request.description, request.color)
    return ProjectResponse(project=project)


@router.get(
    "/projects/list",
    summary="List active projects",
    description="Active projects of the caller, ordered by name.",
    operation_id="listProjects",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_projects(app: AppDep, auth_token: AuthTokenDep) -> ProjectListResponse:
    return ProjectListResponse(projects=await app.list_projects(auth_token))


@router.post(
    "/projects/{project_id}/fields",
    summary="Update one project field",
    description=(
        "Inline edit of a single field. `field` selects the variant: `name` (non-empty), "
        "`description`, `status` (active, paused, not_started, completed, archived) or `color` (#rrggbb). "
        "The result carries the stored value and the view paths to refresh."
    ),
    operation_id="updateProjectField",
    response_model=ActionResult,
    responses={
        400: {"model": ActionResult, "description": "Validation failed, nothing written"},
        401: {"model": ActionResult, "description": "Not authenticated"},
        404: {"model": ActionResult, "description": "Project not found"},
    },
)
async def update_project_field(
    project_id: UUID, update: Annotated[ProjectFieldUpdate, Body()], app: AppDep, auth_token: AuthTokenDep
) -> JSONResponse:
    return action_response(await app.update_project_field(auth_token, project_id, update))
