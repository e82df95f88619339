from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Form, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field

from agnys.core.modules.file.models import StoredFile, UploadResult
from agnys.core.modules.file.storage import BLOBS_ROUTE
from agnys.core.modules.file.utils import MAX_UPLOAD_SIZE
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["files"])

# Blob downloads are public and mounted without the /api prefix
blobs_router = APIRouter(tags=["files"])


class DeleteFileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: UUID = Field(..., alias="fileId")
    url: str = Field(..., description="Public URL of the file; must match the stored record")


class FileListResponse(BaseModel):
    files: list[StoredFile]


class SuccessResponse(BaseModel):
    success: bool = True


@router.post(
    "/upload",
    summary="Upload file",
    description="Multipart upload of a single file (max 10 MB), optionally linked to a project or task.",
    operation_id="uploadFile",
    responses={
        200: {"description": "File stored"},
        400: {"model": ErrorResponse, "description": "No file or file exceeds 10MB limit"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Project or task not found"},
        500: {"model": ErrorResponse, "description": "Blob storage or database failure"},
    },
)
async def upload_file(
    file: UploadFile,
    app: AppDep,
    auth_token: AuthTokenDep,
    project_id: Annotated[UUID | None, Form(alias="projectId")] = None,
    task_id: Annotated[UUID | None, Form(alias="taskId")] = None,
) -> UploadResult:
    # Never more than one byte past the limit
    content = await file.read(MAX_UPLOAD_SIZE + 1)
    filename = file.filename or "unnamed"
    mime_type = file.content_type or "application/octet-stream"
    return await app.upload_file(auth_token, filename, content, mime_type, project_id, task_id)


@router.get(
    "/files",
    summary="List files",
    operation_id="listFiles",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_files(
    app: AppDep, auth_token: AuthTokenDep, project_id: UUID | None = None, task_id: UUID | None = None
) -> FileListResponse:
    return FileListResponse(files=await app.list_files(auth_token, project_id, task_id))


@router.delete(
    "/files/delete",
    summary="Delete file",
    description="Delete an owned file. Unknown files, foreign files and mismatched URLs all answer 404.",
    operation_id="deleteFile",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "File not found or unauthorized"},
    },
)
async def delete_file(request: DeleteFileRequest, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.delete_file(auth_token, request.file_id, request.url)
    return SuccessResponse()


@blobs_router.get(
    f"{BLOBS_ROUTE}/{{key}}/{{filename}}",
    summary="Download blob",
    operation_id="downloadBlob",
    response_class=FileResponse,
    responses={404: {"model": ErrorResponse, "description": "File not found"}},
)
async def download_blob(key: str, filename: str, app: AppDep) -> FileResponse:
    path = app.get_blob_path(key, filename)
    return FileResponse(path=path, filename=path.name)
