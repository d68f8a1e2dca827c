from fastapi import APIRouter, Depends, Query, status

from db import Database, get_database
from .errors import not_found
from .schemas import MemoCreate, MemoUpdate

router = APIRouter(prefix="/api/memos", tags=["memos"])


@router.get("")
async def list_memos(
    query: str | None = Query(None, description="Substring of title or content"),
    tag: str | None = Query(None),
    database: Database = Depends(get_database),
):
    return await database.memos.list(query=query, tag=tag)


@router.get("/{memo_id}")
async def get_memo(memo_id: int, database: Database = Depends(get_database)):
    memo = await database.memos.get_by_id(memo_id)
    if memo is None:
        raise not_found("memo", memo_id)
    return memo


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_memo(body: MemoCreate, database: Database = Depends(get_database)):
    return await database.memos.create(**body.model_dump())


@router.put("/{memo_id}")
async def update_memo(
    memo_id: int, body: MemoUpdate, database: Database = Depends(get_database)
):
    memo = await database.memos.update(memo_id, body.model_dump(exclude_unset=True))
    if memo is None:
        raise not_found("memo", memo_id)
    return memo


@router.delete("/{memo_id}")
async def delete_memo(memo_id: int, database: Database = Depends(get_database)):
    if not await database.memos.delete(memo_id):
        raise not_found("memo", memo_id)
    return {"success": True}
