"""
Cross-entity read operations.

Each aggregate issues its sub-queries concurrently with asyncio.gather and
assembles the result only after all of them completed. A failing sub-query
fails the whole aggregate; no partial payload is ever returned.
"""

import asyncio
from datetime import date
from typing import Any, Dict, List, Optional

RECENT_MEMO_LIMIT = 5


def _matches_text(record: Dict[str, Any], needle: str) -> bool:
    # Same case-insensitive rule the SQL-side memo/bookmark search uses.
    needle = needle.casefold()
    return needle in (record.get("title") or "").casefold() or needle in (
        record.get("description") or ""
    ).casefold()


async def search_all(database, query: str) -> Dict[str, List[Dict[str, Any]]]:
    """
    Free-text search across every entity type.

    Memos and bookmarks use their native ``query`` filter. Todos and schedules
    have no free-text filter, so they are listed and matched in process on
    title and description.
    """
    if not isinstance(query, str):
        raise ValueError("query must be a string.")
    memos, todos, schedules, bookmarks = await asyncio.gather(
        database.memos.list(query=query),
        database.todos.list(),
        database.schedules.list(),
        database.bookmarks.list(query=query),
    )
    return {
        "memos": memos,
        "todos": [todo for todo in todos if _matches_text(todo, query)],
        "schedules": [item for item in schedules if _matches_text(item, query)],
        "bookmarks": bookmarks,
    }


async def today_summary(database, today: Optional[date] = None) -> Dict[str, Any]:
    """Today's schedules, todos due today, counts and the latest memos."""
    today = today or date.today()
    (
        today_schedules,
        due_todos,
        incomplete_count,
        recent_memos,
        bookmark_count,
    ) = await asyncio.gather(
        database.schedules.today(today),
        database.todos.today(today),
        database.todos.incomplete_count(),
        database.memos.recent(RECENT_MEMO_LIMIT),
        database.bookmarks.count(),
    )
    return {
        "date": today.isoformat(),
        "todaySchedules": today_schedules,
        "dueTodos": due_todos,
        "incompleteTodoCount": incomplete_count,
        "recentMemos": recent_memos,
        "bookmarkCount": bookmark_count,
    }


async def overview(database, today: Optional[date] = None) -> Dict[str, Any]:
    """Dashboard statistics: totals per entity plus today's schedules."""
    today = today or date.today()
    (
        memo_total,
        incomplete,
        completed,
        due_today,
        today_schedules,
        bookmark_total,
    ) = await asyncio.gather(
        database.memos.count(),
        database.todos.incomplete_count(),
        database.todos.completed_count(),
        database.todos.due_today_count(today),
        database.schedules.today(today),
        database.bookmarks.count(),
    )
    return {
        "date": today.isoformat(),
        "memos": {"total": memo_total},
        "todos": {
            "incomplete": incomplete,
            "completed": completed,
            "dueToday": due_today,
        },
        "schedules": {"today": today_schedules},
        "bookmarks": {"total": bookmark_total},
    }
