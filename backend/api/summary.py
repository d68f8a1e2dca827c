"""
Cross-entity endpoints: dashboard statistics, today's summary and search.
"""

from fastapi import APIRouter, Depends, Query

from db import Database, get_database
from db.aggregates import overview, search_all, today_summary

router = APIRouter(prefix="/api", tags=["summary"])


@router.get("/summary")
async def get_summary(database: Database = Depends(get_database)):
    return await overview(database)


@router.get("/today")
async def get_today(database: Database = Depends(get_database)):
    return await today_summary(database)


@router.get("/search")
async def search(
    query: str = Query(..., description="Text to look for in every entity"),
    database: Database = Depends(get_database),
):
    return await search_all(database, query)
