from fastapi import APIRouter
from pydantic import BaseModel, Field

from agnys.core.modules.area.models import Area
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["areas"])


class CreateAreaRequest(BaseModel):
    name: str = Field(..., description="Area name (required)")
    vision_statement: str | None = None


class AreaResponse(BaseModel):
    area: Area


class AreaListResponse(BaseModel):
    areas: list[Area]


@router.post(
    "/areas/create",
    summary="Create area",
    operation_id="createArea",
    responses={
        400: {"model": ErrorResponse, "description": "Area name is required"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_area(request: CreateAreaRequest, app: AppDep, auth_token: AuthTokenDep) -> AreaResponse:
    return AreaResponse(area=await app.create_area(auth_token, request.name, request.vision_statement))


@router.get(
    "/areas/list",
    summary="List areas",
    description="The caller's areas ordered by name.",
    operation_id="listAreas",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_areas(app: AppDep, auth_token: AuthTokenDep) -> AreaListResponse:
    return AreaListResponse(areas=await app.list_areas(auth_token))
