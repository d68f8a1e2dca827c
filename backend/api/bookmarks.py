from fastapi import APIRouter, Depends, Query, status

from db import Database, get_database
from .errors import not_found
from .schemas import BookmarkCreate, BookmarkUpdate

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


@router.get("")
async def list_bookmarks(
    query: str | None = Query(None, description="Substring of title, description or url"),
    tag: str | None = Query(None),
    database: Database = Depends(get_database),
):
    return await database.bookmarks.list(query=query, tag=tag)


@router.get("/{bookmark_id}")
async def get_bookmark(bookmark_id: int, database: Database = Depends(get_database)):
    bookmark = await database.bookmarks.get_by_id(bookmark_id)
    if bookmark is None:
        raise not_found("bookmark", bookmark_id)
    return bookmark


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bookmark(
    body: BookmarkCreate, database: Database = Depends(get_database)
):
    return await database.bookmarks.create(**body.model_dump())


@router.put("/{bookmark_id}")
async def update_bookmark(
    bookmark_id: int, body: BookmarkUpdate, database: Database = Depends(get_database)
):
    bookmark = await database.bookmarks.update(
        bookmark_id, body.model_dump(exclude_unset=True)
    )
    if bookmark is None:
        raise not_found("bookmark", bookmark_id)
    return bookmark


@router.delete("/{bookmark_id}")
async def delete_bookmark(bookmark_id: int, database: Database = Depends(get_database)):
    if not await database.bookmarks.delete(bookmark_id):
        raise not_found("bookmark", bookmark_id)
    return {"success": True}
