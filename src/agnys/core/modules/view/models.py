"""Read models for the authenticated pages."""

from pydantic import BaseModel, Field

from agnys.core.modules.area.models import Area
from agnys.core.modules.checklist.models import ChecklistItem
from agnys.core.modules.file.models import StoredFile
from agnys.core.modules.note.models import Note
from agnys.core.modules.project.models import Project, ProjectSummary
from agnys.core.modules.task.models import Task
from agnys.core.modules.time_entry.models import TimeSummary


class ProjectCard(ProjectSummary):
    open_tasks: int = Field(..., description="Tasks not yet completed", ge=0)


class DashboardView(BaseModel):
    """Landing page after login: the caller's active projects and areas."""

    email: str
    projects: list[ProjectCard]
    areas: list[Area]


class ProjectDetailView(BaseModel):
    """Project page: the project with its tasks, checklists, latest notes, files and tracked time."""

    project: Project
    tasks: list[Task]
    checklist_items: list[ChecklistItem]
    notes: list[Note]
    files: list[StoredFile]
    time_summary: TimeSummary
