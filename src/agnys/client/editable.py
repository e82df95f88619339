"""Optimistic inline editing of a single server-backed value.

An EditableField shows the user's tentative value immediately, sends it to the
server on commit and reconciles with the server's answer: the confirmed value
advances to what the server stored, or the field rolls back to the last
confirmed value.

    title = EditableField(project.name, lambda v: client.update_project_field(project.id, "name", v))
    title.begin_edit()
    title.set_tentative("Renamed")
    await title.commit()
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import cast

import httpx
import structlog

from agnys.client.api import ApiError
from agnys.core.results import ActionResult
from agnys.events import Channel

logger = structlog.get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Could not save the change. Please try again."

# Error types whose server message is meant for the user
SHOWN_ERROR_TYPES = frozenset({"validation_error", "authentication_error"})


class FieldState(StrEnum):
    VIEWING = "viewing"
    EDITING = "editing"
    COMMITTING = "committing"
    ROLLING_BACK = "rolling_back"


class FieldBusyError(Exception):
    """A commit for this field is still in flight."""


def user_message(error: str | None, error_type: str | None) -> str:
    if error and error_type in SHOWN_ERROR_TYPES:
        return error
    return GENERIC_ERROR_MESSAGE


class EditableField[T]:
    """Controller for one inline-editable value.

    At most one commit is outstanding per instance; begin_edit() and commit() raise
    FieldBusyError while one is in flight, and wait_settled() waits for it to finish.
    """

    def __init__(self, value: T, save: Callable[[T], Awaitable[ActionResult]], name: str = "field") -> None:
        self.name = name
        self._save = save
        self._confirmed = value
        self._tentative: T | None = None
        self._state = FieldState.VIEWING
        self._settled = asyncio.Event()
        self._settled.set()
        self.invalidations: Channel[list[str]] = Channel(f"{name}.invalidations")
        self.errors: Channel[str] = Channel(f"{name}.errors")

    @property
    def state(self) -> FieldState:
        return self._state

    @property
    def confirmed_value(self) -> T:
        return self._confirmed

    @property
    def tentative_value(self) -> T | None:
        return self._tentative

    @property
    def displayed_value(self) -> T:
        if self._state in (FieldState.EDITING, FieldState.COMMITTING):
            return cast(T, self._tentative)
        return self._confirmed

    def begin_edit(self) -> None:
        self._ensure_idle()
        if self._state is FieldState.VIEWING:
            self._tentative = self._confirmed
            self._state = FieldState.EDITING

    def set_tentative(self, value: T) -> None:
        if self._state is not FieldState.EDITING:
            self.begin_edit()
        self._tentative = value

    def cancel(self) -> None:
        """Drop the tentative value without contacting the server."""
        self._ensure_idle()
        self._tentative = None
        self._state = FieldState.VIEWING

    async def commit(self) -> bool:
        """Send the tentative value; returns False if the change was rolled back."""
        self._ensure_idle()
        if self._state is not FieldState.EDITING:
            return True
        value = cast(T, self._tentative)
        if value == self._confirmed:
            self._tentative = None
            self._state = FieldState.VIEWING
            return True

        self._state = FieldState.COMMITTING
        self._settled.clear()
        try:
            result = await self._save(value)
        except ApiError as e:
            result = ActionResult(success=False, error=e.message, type=e.error_type)
        except httpx.HTTPError as e:
            logger.warning("field_commit_failed", field=self.name, error=str(e))
            result = ActionResult(success=False, error=str(e), type="transport_error")
        except BaseException:
            # Cancelled or crashed mid-flight: nothing was confirmed
            self._roll_back(None)
            raise

        if not result.success:
            self._roll_back(user_message(result.error, result.type))
            return False

        self._confirmed = cast(T, result.value)
        self._tentative = None
        self._state = FieldState.VIEWING
        self._settled.set()
        if result.invalidated:
            self.invalidations.publish(result.invalidated)
        return True

    async def wait_settled(self) -> None:
        await self._settled.wait()

    def _ensure_idle(self) -> None:
        if self._state in (FieldState.COMMITTING, FieldState.ROLLING_BACK):
            raise FieldBusyError(f"{self.name} is being saved")

    def _roll_back(self, message: str | None) -> None:
        self._state = FieldState.ROLLING_BACK
        self._tentative = None
        if message is not None:
            self.errors.publish(message)
        self._state = FieldState.VIEWING
        self._settled.set()
