"""
Entity stores for memos, todos, schedules and bookmarks.

Each store owns the persistence rules of one table:

- create:     assign id and timestamps, fill declared defaults, reject
              missing required fields before touching storage
- list:       filtered, deterministically ordered listing
- get_by_id:  exact lookup, None when the id does not exist
- update:     read current row, merge the sparse changes, single UPDATE
- delete:     hard delete, True only when a row was removed

Not-found is an ordinary return value (None / False). Validation problems
raise ValueError. Storage failures (SQLAlchemyError) propagate unchanged.

Update is a read-then-write without a surrounding transaction: two concurrent
updates of the same id resolve last-writer-wins, and a delete landing between
the read and the write leaves the UPDATE with zero affected rows, which is
reported as not-found.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from sqlalchemy import case, delete, func, select, update

from .filters import QueryFilter
from .models import PRIORITIES, Bookmark, Memo, Schedule, Todo

PRIORITY_RANK = {"high": 1, "medium": 2, "low": 3}


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _today() -> date:
    return date.today()


def week_window(today: date) -> Tuple[date, date]:
    """Return the ISO week ``[monday, monday + 7 days)`` containing ``today``."""
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=7)


# =============================================================================
# Value coercion
# =============================================================================


def _coerce_string(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string.")
    return value


def _coerce_required_label(field: str, value: Any) -> str:
    value = _coerce_string(field, value)
    if not value.strip():
        raise ValueError(f"{field} must not be empty.")
    return value


def _coerce_tags(field: str, value: Any) -> List[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
        raise ValueError(f"{field} must be a list of strings.")
    tags: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{field} must be a list of strings.")
        if item not in tags:
            tags.append(item)
    return tags


def _coerce_priority(field: str, value: Any) -> str:
    if value not in PRIORITIES:
        raise ValueError(f"{field} must be one of: {', '.join(PRIORITIES)}.")
    return value


def _coerce_bool(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValueError(f"{field} must be a boolean.")


def _coerce_date(field: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            return date.fromisoformat(raw)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(raw).date()
        except ValueError:
            pass
    raise ValueError(f"{field} must be a date (YYYY-MM-DD), got {value!r}.")


def _coerce_datetime(field: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(
                f"{field} must be a timestamp (YYYY-MM-DD HH:MM), got {value!r}."
            ) from None
    else:
        raise ValueError(f"{field} must be a timestamp (YYYY-MM-DD HH:MM).")
    if parsed.tzinfo is not None:
        # Wall-clock value is kept; calendar filters compare date(start_time).
        parsed = parsed.replace(tzinfo=None)
    return parsed


def _coerce_url(field: str, value: Any) -> str:
    value = _coerce_required_label(field, value).strip()
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"{field} must be an absolute http(s) URL, got {value!r}.")
    return value


def _filter_text(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} filter must be a string.")
    return value


# =============================================================================
# Partial update merge
# =============================================================================


def merge_changes(
    current: Mapping[str, Any],
    changes: Mapping[str, Any],
    clearable: FrozenSet[str] = frozenset(),
) -> Dict[str, Any]:
    """
    Apply a sparse update to the stored field values.

    A field missing from ``changes`` keeps its stored value. For ordinary
    fields a None value is treated the same as missing. For ``clearable``
    fields the key's presence is what matters: None clears the stored value.
    """
    merged = dict(current)
    for field, value in changes.items():
        if field not in merged:
            raise ValueError(f"Unknown field: {field}")
        if field in clearable or value is not None:
            merged[field] = value
    return merged


# =============================================================================
# Generic store
# =============================================================================


class EntityStore:
    """CRUD rules shared by every entity table.

    Subclasses declare the writable fields, which of them are required, their
    defaults and coercers, and implement ``_build_filter`` / ``_order_by``.
    """

    model: Any = None
    label = "record"
    fields: Tuple[str, ...] = ()
    required: Tuple[str, ...] = ()
    defaults: Dict[str, Any] = {}
    clearable: FrozenSet[str] = frozenset()
    coercers: Dict[str, Callable[[str, Any], Any]] = {}
    touch_updated_at = True

    def __init__(self, database):
        self._database = database

    @property
    def dialect_name(self) -> str:
        return self._database.dialect_name

    def _new_filter(self) -> QueryFilter:
        return QueryFilter(self.dialect_name)

    def _build_filter(self, **filters: Any) -> QueryFilter:
        raise NotImplementedError

    def _order_by(self) -> List[Any]:
        return [self.model.id.asc()]

    def _check_fields(self, values: Mapping[str, Any]) -> None:
        unknown = sorted(set(values) - set(self.fields))
        if unknown:
            raise ValueError(f"Unknown {self.label} field(s): {', '.join(unknown)}")

    def _default(self, field: str) -> Any:
        value = self.defaults.get(field)
        return value() if callable(value) else value

    def _coerce(self, field: str, value: Any) -> Any:
        if field in self.clearable and (value is None or value == ""):
            return None
        return self.coercers[field](field, value)

    def _to_record(self, row: Any) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        for column in self.model.__table__.columns:
            value = getattr(row, column.key)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            elif column.key == "tags":
                value = list(value or [])
            record[column.key] = value
        return record

    async def _fetch_all(self, statement) -> List[Dict[str, Any]]:
        async with self._database.session() as session:
            result = await session.execute(statement)
            return [self._to_record(row) for row in result.scalars().all()]

    async def _load(self, record_id: int) -> Optional[Dict[str, Any]]:
        """Current writable field values of a row, or None."""
        async with self._database.session() as session:
            row = await session.get(self.model, record_id)
            if row is None:
                return None
            return {field: getattr(row, field) for field in self.fields}

    async def create(self, **values: Any) -> Dict[str, Any]:
        self._check_fields(values)
        row: Dict[str, Any] = {}
        for field in self.fields:
            value = values.get(field)
            if value is None:
                if field in self.required:
                    raise ValueError(f"{self.label} {field} is required.")
                row[field] = self._default(field)
            else:
                row[field] = self._coerce(field, value)

        now = _utc_now_naive()
        row["created_at"] = now
        if self.touch_updated_at:
            row["updated_at"] = now

        async with self._database.session() as session:
            record = self.model(**row)
            session.add(record)
            await session.flush()
            return self._to_record(record)

    async def list(self, **filters: Any) -> List[Dict[str, Any]]:
        query_filter = self._build_filter(**filters)
        statement = query_filter.apply(select(self.model)).order_by(*self._order_by())
        return await self._fetch_all(statement)

    async def get_by_id(self, record_id: int) -> Optional[Dict[str, Any]]:
        async with self._database.session() as session:
            row = await session.get(self.model, record_id)
            return self._to_record(row) if row is not None else None

    async def update(
        self, record_id: int, changes: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Merge ``changes`` into the stored row and return the updated record.

        Returns None when the id does not exist, including when the row
        disappears between the read and the write.
        """
        changes = dict(changes or {})
        self._check_fields(changes)
        coerced: Dict[str, Any] = {}
        for field, value in changes.items():
            if value is None and field not in self.clearable:
                continue
            coerced[field] = self._coerce(field, value)

        current = await self._load(record_id)
        if current is None:
            return None

        values = merge_changes(current, coerced, self.clearable)
        if self.touch_updated_at and coerced:
            values["updated_at"] = _utc_now_naive()

        async with self._database.session() as session:
            result = await session.execute(
                update(self.model)
                .where(self.model.id == record_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None
            row = await session.get(self.model, record_id)
            return self._to_record(row) if row is not None else None

    async def delete(self, record_id: int) -> bool:
        async with self._database.session() as session:
            result = await session.execute(
                delete(self.model).where(self.model.id == record_id)
            )
            return result.rowcount > 0

    async def count(self, *predicates: Any) -> int:
        statement = select(func.count()).select_from(self.model)
        if predicates:
            statement = statement.where(*predicates)
        async with self._database.session() as session:
            return int((await session.execute(statement)).scalar() or 0)


# =============================================================================
# Concrete stores
# =============================================================================


class MemoStore(EntityStore):
    model = Memo
    label = "memo"
    fields = ("title", "content", "tags")
    required = ("title", "content")
    defaults = {"tags": list}
    coercers = {
        "title": _coerce_required_label,
        "content": _coerce_string,
        "tags": _coerce_tags,
    }

    def _build_filter(
        self, query: Optional[str] = None, tag: Optional[str] = None
    ) -> QueryFilter:
        query_filter = self._new_filter()
        if query is not None:
            query_filter.contains_text(
                [Memo.title, Memo.content], _filter_text("query", query)
            )
        if tag is not None:
            query_filter.has_tag(Memo.tags, _filter_text("tag", tag))
        return query_filter

    def _order_by(self) -> List[Any]:
        return [Memo.updated_at.desc(), Memo.id.desc()]

    async def recent(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Most recently updated memos."""
        statement = select(Memo).order_by(*self._order_by()).limit(max(0, int(limit)))
        return await self._fetch_all(statement)


class TodoStore(EntityStore):
    model = Todo
    label = "todo"
    fields = ("title", "description", "completed", "priority", "due_date", "tags")
    required = ("title",)
    defaults = {
        "description": "",
        "completed": False,
        "priority": "medium",
        "due_date": None,
        "tags": list,
    }
    clearable = frozenset({"due_date"})
    coercers = {
        "title": _coerce_required_label,
        "description": _coerce_string,
        "completed": _coerce_bool,
        "priority": _coerce_priority,
        "due_date": _coerce_date,
        "tags": _coerce_tags,
    }

    def _build_filter(
        self,
        completed: Optional[bool] = None,
        priority: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> QueryFilter:
        query_filter = self._new_filter()
        if completed is not None:
            query_filter.equals(Todo.completed, _coerce_bool("completed", completed))
        if priority is not None:
            query_filter.equals(Todo.priority, _filter_text("priority", priority))
        if tag is not None:
            query_filter.has_tag(Todo.tags, _filter_text("tag", tag))
        return query_filter

    def _order_by(self) -> List[Any]:
        rank = case(PRIORITY_RANK, value=Todo.priority, else_=len(PRIORITY_RANK) + 1)
        return [rank, Todo.due_date.is_(None), Todo.due_date.asc(), Todo.id.asc()]

    async def today(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Incomplete todos due today."""
        statement = (
            select(Todo)
            .where(Todo.due_date == (today or _today()))
            .where(Todo.completed.is_(False))
            .order_by(Todo.id.asc())
        )
        return await self._fetch_all(statement)

    async def incomplete_count(self) -> int:
        return await self.count(Todo.completed.is_(False))

    async def completed_count(self) -> int:
        return await self.count(Todo.completed.is_(True))

    async def due_today_count(self, today: Optional[date] = None) -> int:
        return await self.count(
            Todo.due_date == (today or _today()), Todo.completed.is_(False)
        )


class ScheduleStore(EntityStore):
    model = Schedule
    label = "schedule"
    fields = ("title", "description", "start_time", "end_time", "location", "tags")
    required = ("title", "start_time")
    defaults = {"description": "", "end_time": None, "location": "", "tags": list}
    clearable = frozenset({"end_time"})
    coercers = {
        "title": _coerce_required_label,
        "description": _coerce_string,
        "start_time": _coerce_datetime,
        "end_time": _coerce_datetime,
        "location": _coerce_string,
        "tags": _coerce_tags,
    }

    def _build_filter(
        self,
        on_date: Optional[Any] = None,
        from_date: Optional[Any] = None,
        to_date: Optional[Any] = None,
        tag: Optional[str] = None,
    ) -> QueryFilter:
        query_filter = self._new_filter()
        if on_date is not None:
            query_filter.on_date(Schedule.start_time, _coerce_date("date", on_date))
        if from_date is not None:
            query_filter.on_or_after(
                Schedule.start_time, _coerce_date("from_date", from_date)
            )
        if to_date is not None:
            query_filter.on_or_before(
                Schedule.start_time, _coerce_date("to_date", to_date)
            )
        if tag is not None:
            query_filter.has_tag(Schedule.tags, _filter_text("tag", tag))
        return query_filter

    def _order_by(self) -> List[Any]:
        return [Schedule.start_time.asc(), Schedule.id.asc()]

    async def today(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        return await self.list(on_date=today or _today())

    async def this_week(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Schedules in the current ISO week (Monday start)."""
        monday, next_monday = week_window(today or _today())
        query_filter = self._new_filter()
        query_filter.on_or_after(Schedule.start_time, monday)
        query_filter.before(Schedule.start_time, next_monday)
        statement = query_filter.apply(select(Schedule)).order_by(*self._order_by())
        return await self._fetch_all(statement)


class BookmarkStore(EntityStore):
    model = Bookmark
    label = "bookmark"
    fields = ("url", "title", "description", "tags")
    required = ("url", "title")
    defaults = {"description": "", "tags": list}
    coercers = {
        "url": _coerce_url,
        "title": _coerce_required_label,
        "description": _coerce_string,
        "tags": _coerce_tags,
    }
    touch_updated_at = False

    def _build_filter(
        self, query: Optional[str] = None, tag: Optional[str] = None
    ) -> QueryFilter:
        query_filter = self._new_filter()
        if query is not None:
            query_filter.contains_text(
                [Bookmark.title, Bookmark.description, Bookmark.url],
                _filter_text("query", query),
            )
        if tag is not None:
            query_filter.has_tag(Bookmark.tags, _filter_text("tag", tag))
        return query_filter

    def _order_by(self) -> List[Any]:
        return [Bookmark.created_at.desc(), Bookmark.id.desc()]
