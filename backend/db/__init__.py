from .database import Database, close_database, get_database
from .filters import QueryFilter
from .stores import (
    BookmarkStore,
    EntityStore,
    MemoStore,
    ScheduleStore,
    TodoStore,
    merge_changes,
)

__all__ = [
    "Database",
    "get_database",
    "close_database",
    "QueryFilter",
    "EntityStore",
    "MemoStore",
    "TodoStore",
    "ScheduleStore",
    "BookmarkStore",
    "merge_changes",
]
