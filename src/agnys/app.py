from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from agnys.config import Config
from agnys.core.core import Core
from agnys.core.modules.area.models import Area
from agnys.core.modules.checklist.models import ChecklistItem
from agnys.core.modules.file.models import StoredFile, UploadResult
from agnys.core.modules.file.storage import BlobStorage, LocalBlobStorage
from agnys.core.modules.invalidation.models import Invalidation
from agnys.core.modules.note.models import Note
from agnys.core.modules.project.models import Project, ProjectFieldUpdate, ProjectSummary
from agnys.core.modules.push.models import NotificationPayload, SendReport
from agnys.core.modules.push.sender import PushTransport
from agnys.core.modules.session.models import AuthToken, Identity, SessionResolution
from agnys.core.modules.task.models import Task, TaskFieldUpdate
from agnys.core.modules.time_entry.models import TimeEntry, TimeEntryView
from agnys.core.modules.view.models import DashboardView, ProjectCard, ProjectDetailView
from agnys.core.pagination import PaginationResult
from agnys.core.results import ActionResult
from agnys.errors import AuthenticationError, NotFoundError, UserError
from agnys.events import Subscription


class App:
    """Facade for all application operations.

    Every operation re-verifies the caller's session before delegating to Core, so
    identity is never carried over from an earlier request.
    """

    def __init__(
        self,
        config: Config,
        database: AsyncDatabase[dict[str, Any]] | None = None,
        blob_storage: BlobStorage | None = None,
        push_transport: PushTransport | None = None,
    ) -> None:
        self._core = Core(config, database=database, blob_storage=blob_storage, push_transport=push_transport)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def config(self) -> Config:
        return self._core.config

    def subscribe_invalidations(self, listener: Callable[[Invalidation], None]) -> Subscription:
        """Observe view paths invalidated by successful mutations."""
        return self._core.services.invalidation.subscribe(listener)

    # === Sessions ===
    async def resolve_session(self, auth_token: str, allow_rotation: bool = True) -> SessionResolution | None:
        """Resolve a token for the request gate; cookie sessions may be rotated."""
        return await self._core.services.session.resolve(auth_token, allow_rotation=allow_rotation)

    async def register(self, email: str, password: str) -> SessionResolution:
        """Create an account and sign it in."""
        user = await self._core.services.user.create_user(email, password)
        return await self._core.services.session.create_session(user.id)

    async def login(self, email: str, password: str) -> SessionResolution:
        """Authenticate user and create session."""
        user = await self._core.services.user.authenticate(email, password)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        return await self._core.services.session.create_session(user.id)

    async def logout(self, auth_token: AuthToken) -> None:
        """Invalidate user session."""
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.session.invalidate_session(auth_token)

    async def get_current_user(self, auth_token: AuthToken) -> Identity:
        return await self._core.services.access.ensure_authenticated(auth_token)

    # === Views ===
    async def get_dashboard(self, auth_token: AuthToken) -> DashboardView:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        projects = await self._core.services.project.list_projects(identity)
        cards = [
            ProjectCard(
                **ProjectSummary.from_domain(project).model_dump(),
                open_tasks=await self._core.services.task.count_open_tasks(identity, project.id),
            )
            for project in projects
        ]
        areas = await self._core.services.area.list_areas(identity)
        return DashboardView(email=identity.email, projects=cards, areas=areas)

    async def get_project_view(self, auth_token: AuthToken, project_id: UUID) -> ProjectDetailView:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        project = await self._core.services.project.get_project(identity, project_id)
        tasks = await self._core.services.task.list_project_tasks(identity, project_id)
        notes = await self._core.services.note.list_notes(identity, project_id)
        files = await self._core.services.file.list_files(identity, project_id=project_id)
        checklist_items = await self._core.services.checklist.list_project_items(identity, project_id)
        time_summary = await self._core.services.time_entry.project_summary(identity, project_id)
        return ProjectDetailView(
            project=project,
            tasks=tasks,
            checklist_items=checklist_items,
            notes=notes.items,
            files=files,
            time_summary=time_summary,
        )

    # === Projects ===
    async def list_projects(self, auth_token: AuthToken) -> list[ProjectSummary]:
        """List the caller's active projects."""
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        projects = await self._core.services.project.list_projects(identity)
        return [ProjectSummary.from_domain(project) for project in projects]

    async def create_project(self, auth_token: AuthToken, name: str, description: str | None, color: str | None) -> Project:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.project.create_project(identity, name, description, color)

    async def update_project_field(self, auth_token: AuthToken, project_id: UUID, update: ProjectFieldUpdate) -> ActionResult:
        """Apply an inline edit to a project; failures are reported in the result."""
        try:
            identity = await self._core.services.access.ensure_authenticated(auth_token)
            project, paths = await self._core.services.project.update_field(identity, project_id, update)
        except UserError as e:
            return ActionResult.failed(e)
        return ActionResult.ok(getattr(project, update.field), paths)

    # === Tasks ===
    async def create_task(
        self,
        auth_token: AuthToken,
        project_id: UUID,
        title: str,
        description: str | None = None,
        priority: str | None = None,
        due_date: str | None = None,
    ) -> Task:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.task.create_task(identity, project_id, title, description, priority, due_date)

    async def update_task_field(self, auth_token: AuthToken, task_id: UUID, update: TaskFieldUpdate) -> ActionResult:
        """Apply an inline edit to a task; failures are reported in the result."""
        try:
            identity = await self._core.services.access.ensure_authenticated(auth_token)
            task, paths = await self._core.services.task.update_field(identity, task_id, update)
        except UserError as e:
            return ActionResult.failed(e)
        return ActionResult.ok(getattr(task, update.field), paths)

    async def delete_task(self, auth_token: AuthToken, task_id: UUID) -> None:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.task.delete_task(identity, task_id)

    # === Checklists ===
    async def list_checklist(self, auth_token: AuthToken, task_id: UUID) -> list[ChecklistItem]:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.checklist.list_items(identity, task_id)

    async def add_checklist_item(self, auth_token: AuthToken, task_id: UUID, content: str) -> ChecklistItem:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.checklist.add_item(identity, task_id, content)

    async def set_checklist_item_completed(self, auth_token: AuthToken, item_id: UUID, completed: bool) -> ChecklistItem:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.checklist.set_completed(identity, item_id, completed)

    async def delete_checklist_item(self, auth_token: AuthToken, item_id: UUID) -> None:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.checklist.delete_item(identity, item_id)

    # === Time tracking ===
    async def list_time_entries(self, auth_token: AuthToken, start: datetime, end: datetime) -> list[TimeEntryView]:
        """Finished time entries of the caller within a date range, with task titles."""
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.time_entry.list_entries(identity, start, end)

    async def list_task_time_entries(self, auth_token: AuthToken, task_id: UUID) -> list[TimeEntry]:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.task.get_task(identity, task_id)
        return await self._core.services.time_entry.list_task_entries(identity, task_id)

    async def start_timer(self, auth_token: AuthToken, task_id: UUID, description: str | None = None) -> TimeEntry:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.time_entry.start_timer(identity, task_id, description)

    async def stop_timer(self, auth_token: AuthToken, entry_id: UUID) -> TimeEntry:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.time_entry.stop_timer(identity, entry_id)

    async def add_manual_time_entry(
        self, auth_token: AuthToken, task_id: UUID, duration_minutes: int, description: str | None = None
    ) -> TimeEntry:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.time_entry.add_manual_entry(identity, task_id, duration_minutes, description)

    async def update_time_entry(
        self, auth_token: AuthToken, entry_id: UUID, duration_minutes: int, description: str | None = None
    ) -> TimeEntry:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.time_entry.update_entry(identity, entry_id, duration_minutes, description)

    async def delete_time_entry(self, auth_token: AuthToken, entry_id: UUID) -> None:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.time_entry.delete_entry(identity, entry_id)

    # === Areas ===
    async def list_areas(self, auth_token: AuthToken) -> list[Area]:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.area.list_areas(identity)

    async def create_area(self, auth_token: AuthToken, name: str, vision_statement: str | None = None) -> Area:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.area.create_area(identity, name, vision_statement)

    # === Notes ===
    async def list_notes(
        self, auth_token: AuthToken, project_id: UUID, task_id: UUID | None = None, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Note]:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.note.list_notes(identity, project_id, task_id, limit, offset)

    async def create_note(
        self, auth_token: AuthToken, project_id: UUID, content: str, title: str | None = None, task_id: UUID | None = None
    ) -> Note:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.note.create_note(identity, project_id, content, title, task_id)

    async def update_note_details(self, auth_token: AuthToken, note_id: UUID, title: str, content: str) -> ActionResult:
        """Replace a note's title and content; failures are reported in the result."""
        try:
            identity = await self._core.services.access.ensure_authenticated(auth_token)
            note, paths = await self._core.services.note.update_details(identity, note_id, title, content)
        except UserError as e:
            return ActionResult.failed(e)
        return ActionResult.ok({"title": note.title, "content": note.content}, paths)

    async def delete_note(self, auth_token: AuthToken, note_id: UUID) -> None:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.note.delete_note(identity, note_id)

    # === Files ===
    async def upload_file(
        self,
        auth_token: AuthToken,
        filename: str,
        content: bytes,
        mime_type: str,
        project_id: UUID | None = None,
        task_id: UUID | None = None,
    ) -> UploadResult:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.file.upload_file(identity, filename, content, mime_type, project_id, task_id)

    async def list_files(
        self, auth_token: AuthToken, project_id: UUID | None = None, task_id: UUID | None = None
    ) -> list[StoredFile]:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.file.list_files(identity, project_id, task_id)

    async def delete_file(self, auth_token: AuthToken, file_id: UUID, url: str) -> None:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.file.delete_file(identity, file_id, url)

    def get_blob_path(self, key: str, filename: str) -> Path:
        """Locate a publicly served blob (local blob storage only)."""
        storage = self._core.blob_storage
        if not isinstance(storage, LocalBlobStorage):
            raise NotFoundError("File not found")
        return storage.resolve_path(key, filename)

    # === Push notifications ===
    def get_vapid_public_key(self) -> str:
        return self._core.services.push.get_public_key()

    async def push_subscribe(self, auth_token: AuthToken, endpoint: str, p256dh: str, auth: str) -> None:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.push.subscribe(identity, endpoint, p256dh, auth)

    async def push_unsubscribe(self, auth_token: AuthToken, endpoint: str) -> None:
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.push.unsubscribe(identity, endpoint)

    async def push_send(self, auth_token: AuthToken, payload: NotificationPayload) -> SendReport:
        """Notify all of the caller's own devices."""
        identity = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.push.send_to_user(identity, payload)
