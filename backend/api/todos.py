from fastapi import APIRouter, Depends, Query, status

from db import Database, get_database
from .errors import not_found
from .schemas import TodoCreate, TodoUpdate

router = APIRouter(prefix="/api/todos", tags=["todos"])


@router.get("")
async def list_todos(
    completed: bool | None = Query(None),
    priority: str | None = Query(None, description="low | medium | high"),
    tag: str | None = Query(None),
    database: Database = Depends(get_database),
):
    """List todos, highest priority first, then by due date (undated last)."""
    return await database.todos.list(completed=completed, priority=priority, tag=tag)


@router.get("/today")
async def list_todos_due_today(database: Database = Depends(get_database)):
    return await database.todos.today()


@router.get("/{todo_id}")
async def get_todo(todo_id: int, database: Database = Depends(get_database)):
    todo = await database.todos.get_by_id(todo_id)
    if todo is None:
        raise not_found("todo", todo_id)
    return todo


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_todo(body: TodoCreate, database: Database = Depends(get_database)):
    return await database.todos.create(**body.model_dump())


@router.put("/{todo_id}")
async def update_todo(
    todo_id: int, body: TodoUpdate, database: Database = Depends(get_database)
):
    todo = await database.todos.update(todo_id, body.model_dump(exclude_unset=True))
    if todo is None:
        raise not_found("todo", todo_id)
    return todo


@router.delete("/{todo_id}")
async def delete_todo(todo_id: int, database: Database = Depends(get_database)):
    if not await database.todos.delete(todo_id):
        raise not_found("todo", todo_id)
    return {"success": True}
