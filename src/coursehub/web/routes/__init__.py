"""Route handlers for the Web API."""

from coursehub.web.routes.health import router as health_router
from coursehub.web.routes.students import router as students_router
from coursehub.web.routes.assignments import router as assignments_router
from coursehub.web.routes.discussion import router as discussion_router
from coursehub.web.routes.weekly import router as weekly_router

__all__ = [
    "health_router",
    "students_router",
    "assignments_router",
    "discussion_router",
    "weekly_router",
]
