from typing import Any, Self

from pydantic import BaseModel, Field

from agnys.errors import UserError


class ActionResult(BaseModel):
    """Outcome of an inline edit action.

    On success value carries the stored (possibly normalized) value and invalidated
    lists the view paths that became stale. On failure error is safe to show to the user.
    """

    success: bool = Field(..., description="Whether the change was applied")
    value: Any = Field(None, description="Server-confirmed value of the edited field")
    error: str | None = Field(None, description="Human-readable failure reason")
    type: str | None = Field(None, description="Machine-readable error type")
    invalidated: list[str] = Field(default_factory=list, description="View paths to refresh")

    @classmethod
    def ok(cls, value: Any, invalidated: list[str]) -> Self:
        return cls(success=True, value=value, invalidated=invalidated)

    @classmethod
    def failed(cls, exc: UserError) -> Self:
        return cls(success=False, error=str(exc), type=exc.error_type)
