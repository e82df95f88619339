from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from agnys.config import Config

if TYPE_CHECKING:
    from agnys.core.modules.file.storage import BlobStorage
    from agnys.core.modules.push.sender import PushTransport


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from agnys.core.modules.access.service import AccessService  # noqa: PLC0415
    from agnys.core.modules.area.service import AreaService  # noqa: PLC0415
    from agnys.core.modules.checklist.service import ChecklistService  # noqa: PLC0415
    from agnys.core.modules.file.service import FileService  # noqa: PLC0415
    from agnys.core.modules.invalidation.service import InvalidationService  # noqa: PLC0415
    from agnys.core.modules.note.service import NoteService  # noqa: PLC0415
    from agnys.core.modules.project.service import ProjectService  # noqa: PLC0415
    from agnys.core.modules.push.service import PushService  # noqa: PLC0415
    from agnys.core.modules.session.service import SessionService  # noqa: PLC0415
    from agnys.core.modules.task.service import TaskService  # noqa: PLC0415
    from agnys.core.modules.time_entry.service import TimeEntryService  # noqa: PLC0415
    from agnys.core.modules.user.service import UserService  # noqa: PLC0415

    user: UserService
    session: SessionService
    access: AccessService
    invalidation: InvalidationService
    project: ProjectService
    task: TaskService
    checklist: ChecklistService
    time_entry: TimeEntryService
    area: AreaService
    note: NoteService
    file: FileService
    push: PushService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._database = database

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("user", "agnys.core.modules.user.service", "UserService"),
            ("session", "agnys.core.modules.session.service", "SessionService"),
            ("access", "agnys.core.modules.access.service", "AccessService"),
            ("invalidation", "agnys.core.modules.invalidation.service", "InvalidationService"),
            ("project", "agnys.core.modules.project.service", "ProjectService"),
            ("task", "agnys.core.modules.task.service", "TaskService"),
            ("checklist", "agnys.core.modules.checklist.service", "ChecklistService"),
            ("time_entry", "agnys.core.modules.time_entry.service", "TimeEntryService"),
            ("area", "agnys.core.modules.area.service", "AreaService"),
            ("note", "agnys.core.modules.note.service", "NoteService"),
            ("file", "agnys.core.modules.file.service", "FileService"),
            ("push", "agnys.core.modules.push.service", "PushService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, database, external collaborators and all service instances.

    The database, blob storage and push transport can be injected; otherwise they are
    built from config. Blob storage and push transport are built lazily so that missing
    configuration only fails the operations that need them.
    """

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(
        self,
        config: Config,
        database: AsyncDatabase[dict[str, Any]] | None = None,
        blob_storage: BlobStorage | None = None,
        push_transport: PushTransport | None = None,
    ) -> None:
        self.config = config
        if database is None:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        else:
            self.mongo_client = None
        self.database = database
        self._blob_storage = blob_storage
        self._push_transport = push_transport
        self.services = Services(self.database)
        self.services.set_core(self)

    @property
    def blob_storage(self) -> BlobStorage:
        if self._blob_storage is None:
            from agnys.core.modules.file.storage import LocalBlobStorage  # noqa: PLC0415

            self._blob_storage = LocalBlobStorage.from_config(self.config)
        return self._blob_storage

    @property
    def push_transport(self) -> PushTransport:
        if self._push_transport is None:
            from agnys.core.modules.push.sender import WebPushTransport  # noqa: PLC0415

            self._push_transport = WebPushTransport.from_config(self.config)
        return self._push_transport

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
