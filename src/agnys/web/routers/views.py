"""Authenticated pages, served as JSON view documents.

The request gate redirects unauthenticated callers away from /dashboard and
/projects before these handlers run.
"""

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from agnys.core.modules.view.models import DashboardView, ProjectDetailView
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["views"])


class LoginView(BaseModel):
    view: str = "login"


@router.get("/auth/login", summary="Login entry point", operation_id="loginView")
async def login_view() -> LoginView:
    return LoginView()


@router.get(
    "/dashboard",
    summary="Dashboard",
    description="Active projects of the signed-in user with their open task counts.",
    operation_id="dashboardView",
    responses={307: {"description": "Not signed in, redirected to /auth/login"}},
)
async def dashboard(app: AppDep, auth_token: AuthTokenDep) -> DashboardView:
    return await app.get_dashboard(auth_token)


@router.get(
    "/projects/{project_id}",
    summary="Project page",
    operation_id="projectView",
    responses={
        307: {"description": "Not signed in, redirected to /auth/login"},
        404: {"model": ErrorResponse, "description": "Project not found"},
    },
)
async def project_detail(project_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> ProjectDetailView:
    return await app.get_project_view(auth_token, project_id)
