from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from agnys.core.db import MongoModel
from agnys.errors import ValidationError
from agnys.utils import is_hex_color, now

DEFAULT_PROJECT_COLOR = "#22c55e"


class ProjectStatus(StrEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    NOT_STARTED = "not_started"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Project(MongoModel):
    """Project owned by a single user. Indexed on (user_id, status, name)."""

    user_id: UUID
    name: str
    description: str | None = None
    color: str = DEFAULT_PROJECT_COLOR
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class ProjectSummary(BaseModel):
    """Compact project representation for pickers and lists."""

    id: UUID
    name: str
    color: str
    status: ProjectStatus

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectSummary":
        return cls(id=project.id, name=project.name, color=project.color, status=project.status)


def clean_project_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Project name cannot be empty.")
    return name


def clean_color(color: str | None) -> str:
    if not color:
        return DEFAULT_PROJECT_COLOR
    if not is_hex_color(color):
        raise ValidationError(f"Invalid color '{color}'. Expected format #rrggbb.")
    return color.lower()


# Inline-edit variants: one arm per editable field, each with its own rule.


class ProjectNameUpdate(BaseModel):
    field: Literal["name"] = "name"
    value: str

    def changes(self) -> dict[str, Any]:
        return {"name": clean_project_name(self.value)}


class ProjectDescriptionUpdate(BaseModel):
    field: Literal["description"] = "description"
    value: str | None = None

    def changes(self) -> dict[str, Any]:
        description = (self.value or "").strip()
        return {"description": description or None}


class ProjectStatusUpdate(BaseModel):
    field: Literal["status"] = "status"
    value: str

    def changes(self) -> dict[str, Any]:
        if self.value not in ProjectStatus:
            allowed = ", ".join(ProjectStatus)
            raise ValidationError(f"Invalid project status '{self.value}'. Allowed: {allowed}.")
        return {"status": ProjectStatus(self.value)}


class ProjectColorUpdate(BaseModel):
    field: Literal["color"] = "color"
    value: str

    def changes(self) -> dict[str, Any]:
        if not self.value:
            raise ValidationError("Project color cannot be empty.")
        return {"color": clean_color(self.value)}


ProjectFieldUpdate = Annotated[
    ProjectNameUpdate | ProjectDescriptionUpdate | ProjectStatusUpdate | ProjectColorUpdate,
    Field(discriminator="field"),
]
