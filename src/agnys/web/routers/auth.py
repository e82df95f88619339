from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from agnys.core.modules.session.models import Identity, SessionResolution
from agnys.web.cookies import clear_auth_cookie, set_auth_cookie
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class CredentialsRequest(BaseModel):
    """Email and password."""

    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Session token; also set as an httponly cookie")
    user: Identity


def _sign_in(app: AppDep, response: Response, resolution: SessionResolution) -> LoginResponse:
    set_auth_cookie(response, resolution.auth_token, resolution.expires_at, app.config)
    return LoginResponse(token=resolution.auth_token, user=resolution.identity)


@router.post(
    "/auth/register",
    summary="Create account",
    description="Register with email and password. The new account is signed in immediately.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid email, weak password or email taken"},
    },
)
async def register(request: CredentialsRequest, app: AppDep, response: Response) -> LoginResponse:
    resolution = await app.register(request.email, request.password)
    return _sign_in(app, response, resolution)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password to receive a session token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(request: CredentialsRequest, app: AppDep, response: Response) -> LoginResponse:
    """Authenticate user and create session."""
    resolution = await app.login(request.email, request.password)
    return _sign_in(app, response, resolution)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current session and clear the session cookie.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep, response: Response) -> None:
    await app.logout(auth_token)
    clear_auth_cookie(response, app.config)


@router.get(
    "/auth/me",
    summary="Current user",
    operation_id="getCurrentUser",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def get_me(app: AppDep, auth_token: AuthTokenDep) -> Identity:
    return await app.get_current_user(auth_token)
