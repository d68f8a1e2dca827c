"""
Database access for the personal assistant backend.

Owns the async engine, the session factory and one store per entity table.
SQLite (aiosqlite) is the default engine; PostgreSQL (asyncpg) is supported.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .models import Base
from .stores import BookmarkStore, MemoStore, ScheduleStore, TodoStore

# Load environment variables
_dotenv_path = find_dotenv(usecwd=True)
if _dotenv_path:
    load_dotenv(_dotenv_path)

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///personal_assistant.db"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on", "enabled"}


def resolve_database_url() -> str:
    """
    Resolve the database URL from the environment.

    DATABASE_URL wins. Otherwise DB_HOST (plus DB_PORT, DB_NAME, DB_USER,
    DB_PASSWORD) selects PostgreSQL, and the SQLite file is the fallback.
    """
    database_url = (os.getenv("DATABASE_URL") or "").strip()
    if database_url:
        return database_url
    host = (os.getenv("DB_HOST") or "").strip()
    if not host:
        return DEFAULT_DATABASE_URL
    port = os.getenv("DB_PORT", "5432")
    name = os.getenv("DB_NAME", "personal_assistant")
    user = os.getenv("DB_USER", "assistant")
    password = os.getenv("DB_PASSWORD", "")
    credentials = f"{user}:{password}" if password else user
    return f"postgresql+asyncpg://{credentials}@{host}:{port}/{name}"


class Database:
    """
    Async database handle with one store per entity.

    Stores:
    - memos:     MemoStore
    - todos:     TodoStore
    - schedules: ScheduleStore
    - bookmarks: BookmarkStore
    """

    def __init__(self, database_url: str, echo: bool = False):
        """
        Args:
            database_url: SQLAlchemy async URL, e.g.
                          "sqlite+aiosqlite:///personal_assistant.db"
        """
        self.database_url = database_url
        self.engine = create_async_engine(database_url, echo=echo)
        self.async_session = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )
        self.memos = MemoStore(self)
        self.todos = TodoStore(self)
        self.schedules = ScheduleStore(self)
        self.bookmarks = BookmarkStore(self)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def init_db(self):
        """Create tables if they don't exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready (%s)", self.dialect_name)

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def close(self):
        """Close the database connection."""
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self):
        """Get an async session context manager."""
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


# =============================================================================
# Global Singleton
# =============================================================================

_database: Optional[Database] = None


def get_database() -> Database:
    """Get the global Database instance."""
    global _database
    if _database is None:
        _database = Database(resolve_database_url(), echo=_env_bool("DB_ECHO", False))
    return _database


async def close_database():
    """Close the global Database connection."""
    global _database
    if _database:
        await _database.close()
        _database = None
