from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio

from db import Database
from db import stores as stores_module


def sqlite_url(db_path: Path) -> str:
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture
async def database(tmp_path: Path):
    db = Database(sqlite_url(tmp_path / "assistant.db"))
    await db.init_db()
    try:
        yield db
    finally:
        await db.close()


@pytest.fixture
def ticking_clock(monkeypatch: pytest.MonkeyPatch):
    """Make every store timestamp one second later than the previous one."""
    state = {"now": datetime(2024, 1, 1, 9, 0, 0)}

    def _tick() -> datetime:
        state["now"] += timedelta(seconds=1)
        return state["now"]

    monkeypatch.setattr(stores_module, "_utc_now_naive", _tick)
    return state
