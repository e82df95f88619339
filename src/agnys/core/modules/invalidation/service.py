from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.modules.invalidation.models import VIEW_PATHS, Invalidation, ResourceKind
from agnys.events import Channel, Subscription

logger = structlog.get_logger(__name__)


class InvalidationService(Service):
    """Publishes the view paths affected by a successful mutation."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._channel: Channel[Invalidation] = Channel("invalidation")

    def subscribe(self, listener: Callable[[Invalidation], None]) -> Subscription:
        return self._channel.subscribe(listener)

    def invalidate(self, kind: ResourceKind, project_id: UUID | None = None) -> list[str]:
        """Render the static path templates for kind and notify subscribers.

        Templates that need a project id are skipped when the resource has none.
        """
        paths: list[str] = []
        for template in VIEW_PATHS[kind]:
            if "{project_id}" in template:
                if project_id is None:
                    continue
                paths.append(template.format(project_id=project_id))
            else:
                paths.append(template)

        if paths:
            self._channel.publish(Invalidation(kind=kind, paths=tuple(paths)))
            logger.debug("views_invalidated", kind=kind, paths=paths)
        return paths
