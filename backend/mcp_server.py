"""
MCP Server for the Personal Assistant backend.

Exposes the memo, todo, schedule and bookmark stores as MCP tools so an AI
agent can manage them, plus three read-only resources:

- assistant://summary/today      - today's schedules, due todos, recent memos
- assistant://todos/incomplete   - every todo not yet completed
- assistant://schedules/week     - this week's schedules (Monday start)

Every tool returns a JSON string. Failures never raise to the client; they
come back as {"ok": false, "error": "..."}.
"""

import os
import sys
import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv, find_dotenv

# Ensure we can import from backend modules
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from mcp.server.fastmcp import FastMCP
from sqlalchemy.exc import SQLAlchemyError
from db import get_database
from db.aggregates import search_all as _search_all
from db.aggregates import today_summary as _today_summary

# Load environment variables
# Explicitly look for .env in the parent directory (project root)
current_dir = os.path.dirname(os.path.abspath(__file__))
root_dir = os.path.dirname(current_dir)
dotenv_path = os.path.join(root_dir, ".env")

if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)
else:
    _dotenv_path = find_dotenv(usecwd=True)
    if _dotenv_path:
        load_dotenv(_dotenv_path)

logger = logging.getLogger("personal_assistant.mcp")

# Initialize FastMCP server
mcp = FastMCP("Personal Assistant")


# =============================================================================
# Helper Functions
# =============================================================================


def _to_json(payload: Any) -> str:
    """Serialize payload for MCP string responses."""
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _tool_response(*, ok: bool, message: str, **extra: Any) -> str:
    payload: Dict[str, Any] = {"ok": bool(ok), "message": message}
    payload.update(extra)
    return _to_json(payload)


def _tool_error(error: str) -> str:
    return _to_json({"ok": False, "error": error})


def _not_found(label: str, record_id: int) -> str:
    return _tool_error(f"{label.capitalize()} {record_id} not found.")


def _storage_error(operation: str, exc: SQLAlchemyError) -> str:
    logger.error("Storage error in %s: %s", operation, exc)
    return _tool_error(f"Storage error: {exc}")


def _changes(**fields: Any) -> Dict[str, Any]:
    """Keep only the arguments the caller actually supplied."""
    return {name: value for name, value in fields.items() if value is not None}


async def _create(store, label: str, **fields: Any) -> str:
    try:
        record = await store.create(**fields)
    except ValueError as e:
        return _tool_error(str(e))
    except SQLAlchemyError as e:
        return _storage_error(f"create_{label}", e)
    return _to_json({"ok": True, label: record})


async def _list(store, label: str, **filters: Any) -> str:
    try:
        records = await store.list(**filters)
    except ValueError as e:
        return _tool_error(str(e))
    except SQLAlchemyError as e:
        return _storage_error(f"list_{label}s", e)
    return _to_json({"ok": True, "count": len(records), f"{label}s": records})


async def _get(store, label: str, record_id: int) -> str:
    try:
        record = await store.get_by_id(record_id)
    except SQLAlchemyError as e:
        return _storage_error(f"get_{label}", e)
    if record is None:
        return _not_found(label, record_id)
    return _to_json({"ok": True, label: record})


async def _update(store, label: str, record_id: int, changes: Dict[str, Any]) -> str:
    try:
        record = await store.update(record_id, changes)
    except ValueError as e:
        return _tool_error(str(e))
    except SQLAlchemyError as e:
        return _storage_error(f"update_{label}", e)
    if record is None:
        return _not_found(label, record_id)
    return _to_json({"ok": True, label: record})


async def _delete(store, label: str, record_id: int) -> str:
    try:
        deleted = await store.delete(record_id)
    except SQLAlchemyError as e:
        return _storage_error(f"delete_{label}", e)
    if not deleted:
        return _not_found(label, record_id)
    return _tool_response(ok=True, message=f"{label.capitalize()} {record_id} deleted.")


# =============================================================================
# MCP Tools - Memos
# =============================================================================


@mcp.tool()
async def create_memo(title: str, content: str, tags: Optional[List[str]] = None) -> str:
    """
    Create a new memo.

    Args:
        title: Memo title
        content: Memo body
        tags: Optional list of tags
    """
    return await _create(
        get_database().memos, "memo", title=title, content=content, tags=tags
    )


@mcp.tool()
async def list_memos(query: Optional[str] = None, tag: Optional[str] = None) -> str:
    """
    List memos, most recently updated first.

    Args:
        query: Case-insensitive text to find in title or content
        tag: Only memos carrying this tag
    """
    return await _list(get_database().memos, "memo", query=query, tag=tag)


@mcp.tool()
async def get_memo(id: int) -> str:
    """Get a memo by ID."""
    return await _get(get_database().memos, "memo", id)


@mcp.tool()
async def update_memo(
    id: int,
    title: Optional[str] = None,
    content: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """
    Update a memo. Omitted fields keep their current value.

    Args:
        id: Memo ID
        title: New title
        content: New content
        tags: New tag list (replaces the old one)
    """
    return await _update(
        get_database().memos,
        "memo",
        id,
        _changes(title=title, content=content, tags=tags),
    )


@mcp.tool()
async def delete_memo(id: int) -> str:
    """Delete a memo permanently."""
    return await _delete(get_database().memos, "memo", id)


# =============================================================================
# MCP Tools - Todos
# =============================================================================


@mcp.tool()
async def create_todo(
    title: str,
    description: Optional[str] = None,
    priority: Optional[str] = None,
    due_date: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """
    Create a new todo.

    Args:
        title: Todo title
        description: Details (default empty)
        priority: low, medium or high (default medium)
        due_date: Due date as YYYY-MM-DD
        tags: Optional list of tags
    """
    return await _create(
        get_database().todos,
        "todo",
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
        tags=tags,
    )


@mcp.tool()
async def list_todos(
    completed: Optional[bool] = None,
    priority: Optional[str] = None,
    tag: Optional[str] = None,
) -> str:
    """
    List todos ordered by priority (high first), then due date (undated last).

    Args:
        completed: Only completed (true) or open (false) todos
        priority: Only todos with this priority
        tag: Only todos carrying this tag
    """
    return await _list(
        get_database().todos, "todo", completed=completed, priority=priority, tag=tag
    )


@mcp.tool()
async def get_todo(id: int) -> str:
    """Get a todo by ID."""
    return await _get(get_database().todos, "todo", id)


@mcp.tool()
async def update_todo(
    id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    completed: Optional[bool] = None,
    priority: Optional[str] = None,
    due_date: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """
    Update a todo, including marking it completed. Omitted fields keep their
    current value.

    Args:
        id: Todo ID
        title: New title
        description: New description
        completed: Completion flag
        priority: low, medium or high
        due_date: New due date (YYYY-MM-DD); pass an empty string to clear it
        tags: New tag list (replaces the old one)
    """
    return await _update(
        get_database().todos,
        "todo",
        id,
        _changes(
            title=title,
            description=description,
            completed=completed,
            priority=priority,
            due_date=due_date,
            tags=tags,
        ),
    )


@mcp.tool()
async def delete_todo(id: int) -> str:
    """Delete a todo permanently."""
    return await _delete(get_database().todos, "todo", id)


# =============================================================================
# MCP Tools - Schedules
# =============================================================================


@mcp.tool()
async def create_schedule(
    title: str,
    start_time: str,
    description: Optional[str] = None,
    end_time: Optional[str] = None,
    location: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """
    Create a new schedule entry.

    Args:
        title: Schedule title
        start_time: Start as YYYY-MM-DD HH:MM
        description: Details (default empty)
        end_time: End as YYYY-MM-DD HH:MM
        location: Where it takes place
        tags: Optional list of tags
    """
    return await _create(
        get_database().schedules,
        "schedule",
        title=title,
        start_time=start_time,
        description=description,
        end_time=end_time,
        location=location,
        tags=tags,
    )


@mcp.tool()
async def list_schedules(
    date: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    tag: Optional[str] = None,
) -> str:
    """
    List schedules in start time order.

    Args:
        date: Only schedules starting on this day (YYYY-MM-DD)
        from_date: Only schedules starting on or after this day
        to_date: Only schedules starting on or before this day
        tag: Only schedules carrying this tag
    """
    return await _list(
        get_database().schedules,
        "schedule",
        on_date=date,
        from_date=from_date,
        to_date=to_date,
        tag=tag,
    )


@mcp.tool()
async def get_schedule(id: int) -> str:
    """Get a schedule by ID."""
    return await _get(get_database().schedules, "schedule", id)


@mcp.tool()
async def update_schedule(
    id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    location: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """
    Update a schedule. Omitted fields keep their current value.

    Args:
        id: Schedule ID
        title: New title
        description: New description
        start_time: New start (YYYY-MM-DD HH:MM)
        end_time: New end (YYYY-MM-DD HH:MM); pass an empty string to clear it
        location: New location
        tags: New tag list (replaces the old one)
    """
    return await _update(
        get_database().schedules,
        "schedule",
        id,
        _changes(
            title=title,
            description=description,
            start_time=start_time,
            end_time=end_time,
            location=location,
            tags=tags,
        ),
    )


@mcp.tool()
async def delete_schedule(id: int) -> str:
    """Delete a schedule permanently."""
    return await _delete(get_database().schedules, "schedule", id)


# =============================================================================
# MCP Tools - Bookmarks
# =============================================================================


@mcp.tool()
async def create_bookmark(
    url: str,
    title: str,
    description: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """
    Save a new bookmark.

    Args:
        url: Absolute http(s) URL
        title: Bookmark title
        description: Optional note
        tags: Optional list of tags
    """
    return await _create(
        get_database().bookmarks,
        "bookmark",
        url=url,
        title=title,
        description=description,
        tags=tags,
    )


@mcp.tool()
async def list_bookmarks(query: Optional[str] = None, tag: Optional[str] = None) -> str:
    """
    List bookmarks, newest first.

    Args:
        query: Case-insensitive text to find in title, description or URL
        tag: Only bookmarks carrying this tag
    """
    return await _list(get_database().bookmarks, "bookmark", query=query, tag=tag)


@mcp.tool()
async def get_bookmark(id: int) -> str:
    """Get a bookmark by ID."""
    return await _get(get_database().bookmarks, "bookmark", id)


@mcp.tool()
async def update_bookmark(
    id: int,
    url: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """
    Update a bookmark. Omitted fields keep their current value.

    Args:
        id: Bookmark ID
        url: New URL
        title: New title
        description: New description
        tags: New tag list (replaces the old one)
    """
    return await _update(
        get_database().bookmarks,
        "bookmark",
        id,
        _changes(url=url, title=title, description=description, tags=tags),
    )


@mcp.tool()
async def delete_bookmark(id: int) -> str:
    """Delete a bookmark permanently."""
    return await _delete(get_database().bookmarks, "bookmark", id)


# =============================================================================
# MCP Tools - Cross-entity
# =============================================================================


@mcp.tool()
async def search_all(query: str) -> str:
    """
    Search memos, todos, schedules and bookmarks at once.

    Matching is a case-insensitive substring test on titles, descriptions,
    memo content and bookmark URLs.

    Args:
        query: Text to look for
    """
    if not isinstance(query, str):
        return _tool_error("query must be a string.")
    try:
        results = await _search_all(get_database(), query)
    except SQLAlchemyError as e:
        return _storage_error("search_all", e)
    return _to_json({"ok": True, "query": query, **results})


@mcp.tool()
async def get_today_summary() -> str:
    """
    Today's overview: schedules for today, todos due today, the number of open
    todos, the five most recently updated memos and the bookmark count.
    """
    try:
        summary = await _today_summary(get_database())
    except SQLAlchemyError as e:
        return _storage_error("get_today_summary", e)
    return _to_json({"ok": True, **summary})


# =============================================================================
# MCP Resources
# =============================================================================


@mcp.resource(
    "assistant://summary/today",
    name="today_summary",
    description="Today's schedules, due todos and recent memos",
    mime_type="application/json",
)
async def today_summary_resource() -> str:
    return _to_json(await _today_summary(get_database()))


@mcp.resource(
    "assistant://todos/incomplete",
    name="incomplete_todos",
    description="Every todo that is not completed yet",
    mime_type="application/json",
)
async def incomplete_todos_resource() -> str:
    return _to_json(await get_database().todos.list(completed=False))


@mcp.resource(
    "assistant://schedules/week",
    name="week_schedules",
    description="This week's schedules, Monday through Sunday",
    mime_type="application/json",
)
async def week_schedules_resource() -> str:
    return _to_json(await get_database().schedules.this_week(date.today()))


# =============================================================================
# Startup
# =============================================================================


async def startup():
    """Initialize the database on startup."""
    database = get_database()
    await database.init_db()
    # Pooled connections belong to this event loop; mcp.run() starts its own.
    await database.engine.dispose()


if __name__ == "__main__":
    import asyncio

    # stdout carries the protocol; logs go to stderr.
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(), stream=sys.stderr
    )
    asyncio.run(startup())
    mcp.run()
