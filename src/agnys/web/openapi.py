from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from agnys.web.cookies import AUTH_COOKIE

# Endpoints reachable without a session
PUBLIC_ENDPOINTS = {
    ("POST", "/api/auth/login"),
    ("POST", "/api/auth/register"),
    ("GET", "/api/push/vapid-public-key"),
    ("GET", "/auth/login"),
    ("GET", "/health"),
}


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Agnys API",
            version="0.1.0",
            summary="Projects, tasks, time tracking, notes, files and push notifications",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Session token sent as a Bearer token",
            },
            "AuthTokenCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": AUTH_COOKIE,
                "description": "Session token stored in cookie (rotated by the server)",
            },
        }

        # Apply security globally, then clear it on public endpoints
        openapi_schema["security"] = [
            {"BearerAuth": []},
            {"AuthTokenCookie": []},
        ]

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in PUBLIC_ENDPOINTS:
                    operation["security"] = []
                # Request validation failures are answered with 400 ErrorResponse
                operation.get("responses", {}).pop("422", None)

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Authentication required", "type": "authentication_error"},
                {"message": "Project name cannot be empty.", "type": "validation_error"},
                {"message": "File not found or unauthorized", "type": "not_found"},
                {"message": "An upstream service failed.", "type": "upstream_error"},
            ]
        }
    }
