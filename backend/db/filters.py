"""
Query filter construction shared by the entity stores.

A QueryFilter collects predicates in the order they were added, together with
the raw parameter values bound into them. Nothing supplied by a caller is ever
rendered into SQL text: every value travels as a bound parameter, and the
stores AND the predicates onto an otherwise unconditional SELECT.

An absent filter (None) adds no predicate. An empty string is a real filter:
an empty tag never matches, an empty free-text query matches everything.
"""

from datetime import date
from typing import Any, List, Sequence

from sqlalchemy import Date, and_, func, literal, literal_column, or_, select, type_coerce
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql.elements import ColumnElement


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class QueryFilter:
    """Ordered predicate list plus the positionally aligned parameter values.

    SQLAlchemy binds the values carried inside each predicate; ``params`` is a
    read-only mirror of them kept for inspection and is never sent to the
    database.
    """

    def __init__(self, dialect_name: str = "sqlite"):
        self.dialect_name = dialect_name
        self.predicates: List[ColumnElement] = []
        self.params: List[Any] = []

    def __len__(self) -> int:
        return len(self.predicates)

    def add(self, predicate: ColumnElement, *params: Any) -> "QueryFilter":
        self.predicates.append(predicate)
        self.params.extend(params)
        return self

    def equals(self, column, value: Any) -> "QueryFilter":
        return self.add(column == value, value)

    def contains_text(self, columns: Sequence, text: str) -> "QueryFilter":
        """Case-insensitive substring match against any of ``columns``.

        The same pattern is bound once per column.
        """
        pattern = f"%{escape_like(text)}%"
        predicate = or_(*(column.ilike(pattern, escape="\\") for column in columns))
        return self.add(predicate, *([pattern] * len(columns)))

    def has_tag(self, column, tag: str) -> "QueryFilter":
        """Match rows whose tag array contains ``tag``."""
        if self.dialect_name == "postgresql":
            return self.add(type_coerce(column, JSONB).contains([tag]), tag)
        elements = func.json_each(column).table_valued("value")
        predicate = (
            select(literal_column("1"))
            .select_from(elements)
            .where(elements.c.value == tag)
            .exists()
        )
        return self.add(predicate, tag)

    def on_date(self, column, day: date) -> "QueryFilter":
        return self.add(func.date(column) == literal(day, Date), day)

    def on_or_after(self, column, day: date) -> "QueryFilter":
        return self.add(func.date(column) >= literal(day, Date), day)

    def on_or_before(self, column, day: date) -> "QueryFilter":
        return self.add(func.date(column) <= literal(day, Date), day)

    def before(self, column, day: date) -> "QueryFilter":
        return self.add(func.date(column) < literal(day, Date), day)

    def apply(self, statement):
        """AND every collected predicate onto ``statement``."""
        if not self.predicates:
            return statement
        return statement.where(and_(*self.predicates))
