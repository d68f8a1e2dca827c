from fastapi import APIRouter, Depends, Query, status

from db import Database, get_database
from .errors import not_found
from .schemas import ScheduleCreate, ScheduleUpdate

router = APIRouter(prefix="/api/schedules", tags=["schedules"])


@router.get("")
async def list_schedules(
    on_date: str | None = Query(None, alias="date", description="YYYY-MM-DD"),
    from_date: str | None = Query(None, description="YYYY-MM-DD, inclusive"),
    to_date: str | None = Query(None, description="YYYY-MM-DD, inclusive"),
    tag: str | None = Query(None),
    database: Database = Depends(get_database),
):
    return await database.schedules.list(
        on_date=on_date, from_date=from_date, to_date=to_date, tag=tag
    )


@router.get("/today")
async def list_schedules_today(database: Database = Depends(get_database)):
    return await database.schedules.today()


@router.get("/week")
async def list_schedules_this_week(database: Database = Depends(get_database)):
    """Schedules of the current week, Monday through Sunday."""
    return await database.schedules.this_week()


@router.get("/{schedule_id}")
async def get_schedule(schedule_id: int, database: Database = Depends(get_database)):
    schedule = await database.schedules.get_by_id(schedule_id)
    if schedule is None:
        raise not_found("schedule", schedule_id)
    return schedule


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_schedule(
    body: ScheduleCreate, database: Database = Depends(get_database)
):
    return await database.schedules.create(**body.model_dump())


@router.put("/{schedule_id}")
async def update_schedule(
    schedule_id: int, body: ScheduleUpdate, database: Database = Depends(get_database)
):
    schedule = await database.schedules.update(
        schedule_id, body.model_dump(exclude_unset=True)
    )
    if schedule is None:
        raise not_found("schedule", schedule_id)
    return schedule


@router.delete("/{schedule_id}")
async def delete_schedule(schedule_id: int, database: Database = Depends(get_database)):
    if not await database.schedules.delete(schedule_id):
        raise not_found("schedule", schedule_id)
    return {"success": True}
