import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from agnys.core.results import ActionResult
from agnys.errors import UpstreamServiceError, UserError

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "authentication_error": 401,
    "validation_error": 400,
    "not_found": 404,
    "bad_request": 400,
    "upstream_error": 500,
}

UPSTREAM_ERROR_MESSAGE = "An upstream service failed."

REQUEST_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


def action_response(result: ActionResult) -> JSONResponse:
    """Serialize an inline-edit result with the status code of its error type."""
    status_code = 200 if result.success else ERROR_STATUS_CODES.get(result.type or "bad_request", 400)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    error_type = exc.error_type if isinstance(exc, UserError) else "bad_request"
    return create_json_error_response(
        status_code=ERROR_STATUS_CODES.get(error_type, 400), message=str(exc), error_type=error_type
    )


def describe_validation_error(exc: RequestValidationError) -> str:
    """First field error as "<field>: <message>", without the request location prefix."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in REQUEST_LOCATIONS)
    message = str(first.get("msg") or "Invalid value")
    return f"{field}: {message}" if field else message


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Missing or malformed request fields answer 400 like any other validation failure."""
    message = describe_validation_error(exc) if isinstance(exc, RequestValidationError) else str(exc)
    return create_json_error_response(status_code=400, message=message, error_type="validation_error")


async def upstream_error_handler(_: Request, exc: Exception) -> Response:
    """Handle persistence, blob and push failures. Details stay in the server log."""
    logger.error("Upstream service error: %s", exc, exc_info=exc)
    return create_json_error_response(
        status_code=500, message=UPSTREAM_ERROR_MESSAGE, error_type=UpstreamServiceError.error_type
    )


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
