from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """

    error_type = "bad_request"


class NotFoundError(UserError):
    """Raised when a resource is absent or not owned by the caller; both read the same."""

    error_type = "not_found"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    error_type = "authentication_error"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""

    error_type = "validation_error"


class UpstreamServiceError(Exception):
    """Raised when persistence, blob storage or push delivery fails.

    The message is logged server-side only; clients receive an opaque error.
    """

    error_type = "upstream_error"
