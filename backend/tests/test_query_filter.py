from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from db.filters import QueryFilter, escape_like
from db.models import Memo
from db.stores import (
    BookmarkStore,
    MemoStore,
    ScheduleStore,
    TodoStore,
    merge_changes,
    week_window,
)


class _StubDatabase:
    def __init__(self, dialect_name: str = "sqlite"):
        self.dialect_name = dialect_name


def _sql(predicate, dialect) -> str:
    return str(predicate.compile(dialect=dialect))


def test_absent_filters_add_no_predicates() -> None:
    for store in (
        MemoStore(_StubDatabase()),
        TodoStore(_StubDatabase()),
        ScheduleStore(_StubDatabase()),
        BookmarkStore(_StubDatabase()),
    ):
        query_filter = store._build_filter()
        assert len(query_filter) == 0
        assert query_filter.params == []


def test_empty_tag_is_a_filter_not_a_no_op() -> None:
    query_filter = MemoStore(_StubDatabase())._build_filter(tag="")

    assert len(query_filter) == 1
    assert query_filter.params == [""]


def test_memo_query_binds_the_same_pattern_for_title_and_content() -> None:
    query_filter = MemoStore(_StubDatabase())._build_filter(query="plan", tag="work")

    assert len(query_filter) == 2
    assert query_filter.params == ["%plan%", "%plan%", "work"]


def test_bookmark_query_covers_title_description_and_url() -> None:
    query_filter = BookmarkStore(_StubDatabase())._build_filter(query="docs")

    assert query_filter.params == ["%docs%"] * 3
    rendered = _sql(query_filter.predicates[0], sqlite.dialect())
    assert "bookmarks.title" in rendered
    assert "bookmarks.description" in rendered
    assert "bookmarks.url" in rendered


def test_like_wildcards_in_query_are_escaped() -> None:
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
    query_filter = MemoStore(_StubDatabase())._build_filter(query="50%")
    assert query_filter.params[0] == "%50\\%%"


def test_completed_false_is_a_filter() -> None:
    query_filter = TodoStore(_StubDatabase())._build_filter(completed=False)

    assert len(query_filter) == 1
    assert query_filter.params == [False]


def test_todo_filters_keep_insertion_order() -> None:
    query_filter = TodoStore(_StubDatabase())._build_filter(
        completed=True, priority="high", tag="home"
    )

    assert query_filter.params == [True, "high", "home"]


def test_schedule_date_range_params_are_dates() -> None:
    query_filter = ScheduleStore(_StubDatabase())._build_filter(
        from_date="2024-01-01", to_date=date(2024, 1, 31)
    )

    assert query_filter.params == [date(2024, 1, 1), date(2024, 1, 31)]


def test_schedule_malformed_date_filter_raises() -> None:
    with pytest.raises(ValueError, match="from_date"):
        ScheduleStore(_StubDatabase())._build_filter(from_date="next tuesday")


def test_non_string_tag_filter_raises() -> None:
    with pytest.raises(ValueError, match="tag"):
        BookmarkStore(_StubDatabase())._build_filter(tag=3)


def test_tag_membership_uses_json_each_on_sqlite() -> None:
    query_filter = QueryFilter("sqlite").has_tag(Memo.tags, "work")

    rendered = _sql(query_filter.predicates[0], sqlite.dialect())
    assert "EXISTS" in rendered
    assert "json_each(memos.tags)" in rendered


def test_tag_membership_uses_containment_on_postgresql() -> None:
    query_filter = QueryFilter("postgresql").has_tag(Memo.tags, "work")

    assert "@>" in _sql(query_filter.predicates[0], postgresql.dialect())


def test_apply_without_predicates_returns_statement_unchanged() -> None:
    statement = object()
    assert QueryFilter().apply(statement) is statement


def test_merge_keeps_omitted_fields() -> None:
    current = {"title": "a", "due_date": date(2024, 1, 5)}

    assert merge_changes(current, {}) == current
    assert merge_changes(current, {"title": "b"}, frozenset({"due_date"})) == {
        "title": "b",
        "due_date": date(2024, 1, 5),
    }


def test_merge_none_keeps_ordinary_field_but_clears_clearable_one() -> None:
    current = {"title": "a", "due_date": date(2024, 1, 5)}

    merged = merge_changes(
        current, {"title": None, "due_date": None}, frozenset({"due_date"})
    )

    assert merged == {"title": "a", "due_date": None}


def test_merge_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError, match="Unknown field"):
        merge_changes({"title": "a"}, {"colour": "red"})


@pytest.mark.parametrize(
    "today, expected_monday",
    [
        (date(2024, 1, 1), date(2024, 1, 1)),
        (date(2024, 1, 3), date(2024, 1, 1)),
        (date(2024, 1, 7), date(2024, 1, 1)),
        (date(2024, 1, 8), date(2024, 1, 8)),
    ],
)
def test_week_window_starts_on_monday(today: date, expected_monday: date) -> None:
    monday, next_monday = week_window(today)

    assert monday == expected_monday
    assert (next_monday - monday).days == 7


def test_params_mirror_the_values_bound_in_the_compiled_statement() -> None:
    query_filter = MemoStore(_StubDatabase())._build_filter(query="plan", tag="work")

    compiled = query_filter.apply(select(Memo)).compile(dialect=sqlite.dialect())
    bound = [compiled.params[name] for name in compiled.positiontup]

    assert bound == query_filter.params
