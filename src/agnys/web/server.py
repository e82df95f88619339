from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from agnys.app import App
from agnys.config import Config
from agnys.errors import UpstreamServiceError, UserError
from agnys.web.error_handlers import (
    general_exception_handler,
    request_validation_error_handler,
    upstream_error_handler,
    user_error_handler,
)
from agnys.web.gate import AuthGateMiddleware
from agnys.web.openapi import set_custom_openapi
from agnys.web.routers import (
    areas_router,
    auth_router,
    blobs_router,
    checklist_router,
    files_router,
    notes_router,
    projects_router,
    push_router,
    tasks_router,
    time_entries_router,
    views_router,
)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Agnys API",
        lifespan=lifespan,
        openapi_tags=[],  # Tags will be added by custom OpenAPI function
    )
    # The request gate needs the app before the first request, so it is stored eagerly
    app.state.app = app_instance
    app.state.config = config

    app.add_middleware(AuthGateMiddleware)

    # Add CORS middleware for frontend development
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    # JSON API
    app.include_router(auth_router, prefix="/api")
    app.include_router(projects_router, prefix="/api")
    app.include_router(tasks_router, prefix="/api")
    app.include_router(checklist_router, prefix="/api")
    app.include_router(time_entries_router, prefix="/api")
    app.include_router(notes_router, prefix="/api")
    app.include_router(files_router, prefix="/api")
    app.include_router(areas_router, prefix="/api")
    app.include_router(push_router, prefix="/api")

    # Pages and public blobs
    app.include_router(views_router)
    app.include_router(blobs_router)

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(UpstreamServiceError, upstream_error_handler)
    app.add_exception_handler(PyMongoError, upstream_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
