from dataclasses import dataclass
from enum import StrEnum


class ResourceKind(StrEnum):
    PROJECT = "project"
    TASK = "task"
    NOTE = "note"
    FILE = "file"
    CHECKLIST_ITEM = "checklist_item"
    TIME_ENTRY = "time_entry"
    AREA = "area"
    PUSH_SUBSCRIPTION = "push_subscription"


# View paths that render each resource kind. Static per kind; placeholders are
# filled from the mutated resource.
VIEW_PATHS: dict[ResourceKind, tuple[str, ...]] = {
    ResourceKind.PROJECT: ("/dashboard", "/projects/{project_id}"),
    ResourceKind.TASK: ("/dashboard", "/projects/{project_id}"),
    ResourceKind.NOTE: ("/projects/{project_id}",),
    ResourceKind.FILE: ("/projects/{project_id}",),
    ResourceKind.CHECKLIST_ITEM: ("/projects/{project_id}",),
    ResourceKind.TIME_ENTRY: ("/projects/{project_id}",),
    ResourceKind.AREA: ("/dashboard",),
    ResourceKind.PUSH_SUBSCRIPTION: (),
}


@dataclass(frozen=True)
class Invalidation:
    """Set of view paths whose cached data became stale after a mutation."""

    kind: ResourceKind
    paths: tuple[str, ...]
