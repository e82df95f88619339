from agnys.web.routers.areas import router as areas_router
from agnys.web.routers.auth import router as auth_router
from agnys.web.routers.checklist import router as checklist_router
from agnys.web.routers.files import blobs_router
from agnys.web.routers.files import router as files_router
from agnys.web.routers.notes import router as notes_router
from agnys.web.routers.projects import router as projects_router
from agnys.web.routers.push import router as push_router
from agnys.web.routers.tasks import router as tasks_router
from agnys.web.routers.time_entries import router as time_entries_router
from agnys.web.routers.views import router as views_router

__all__ = [
    "areas_router",
    "auth_router",
    "blobs_router",
    "checklist_router",
    "files_router",
    "notes_router",
    "projects_router",
    "push_router",
    "tasks_router",
    "time_entries_router",
    "views_router",
]
