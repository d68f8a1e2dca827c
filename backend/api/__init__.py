from .bookmarks import router as bookmarks_router
from .memos import router as memos_router
from .schedules import router as schedules_router
from .summary import router as summary_router
from .todos import router as todos_router

__all__ = [
    "memos_router",
    "todos_router",
    "schedules_router",
    "bookmarks_router",
    "summary_router",
]
