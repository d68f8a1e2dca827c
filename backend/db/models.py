"""
ORM models for the personal assistant store.

Four independent tables, no foreign keys between them. Tags are kept as a
JSON array (JSONB on PostgreSQL) so both supported engines can answer
membership queries.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

PRIORITIES = ("low", "medium", "high")

TagList = JSON().with_variant(JSONB(), "postgresql")


class Memo(Base):
    __tablename__ = "memos"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    tags = Column(TagList, nullable=False, default=lambda: [])
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)


class Todo(Base):
    __tablename__ = "todos"
    __table_args__ = (
        CheckConstraint(
            "priority IN ('low', 'medium', 'high')", name="ck_todos_priority"
        ),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    completed = Column(Boolean, nullable=False, default=False)
    priority = Column(String(10), nullable=False, default="medium")
    due_date = Column(Date, nullable=True)
    tags = Column(TagList, nullable=False, default=lambda: [])
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    location = Column(String(255), nullable=False, default="")
    tags = Column(TagList, nullable=False, default=lambda: [])
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)


class Bookmark(Base):
    """A saved link. Bookmarks carry no updated_at column."""

    __tablename__ = "bookmarks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(Text, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    tags = Column(TagList, nullable=False, default=lambda: [])
    created_at = Column(DateTime, nullable=False)
