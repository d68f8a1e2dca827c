import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from api import (
    bookmarks_router,
    memos_router,
    schedules_router,
    summary_router,
    todos_router,
)
from api.errors import register_exception_handlers
from db import Database, get_database, close_database

logger = logging.getLogger("personal_assistant.api")


def _utc_iso_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: bootstrap the schema, dispose the engine."""
    logger.info("Personal Assistant API starting...")

    try:
        database = get_database()
        await database.init_db()
        logger.info("Database initialized.")
    except Exception as e:
        logger.error("Failed to initialize database: %s", e)
        raise RuntimeError("Failed to initialize database during startup") from e

    yield

    logger.info("Closing database connections...")
    await close_database()


app = FastAPI(
    title="Personal Assistant API",
    description="Memos, todos, schedules and bookmarks",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(memos_router)
app.include_router(todos_router)
app.include_router(schedules_router)
app.include_router(bookmarks_router)
app.include_router(summary_router)


@app.get("/")
async def root():
    return {
        "message": "Personal Assistant API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health(database: Database = Depends(get_database)):
    """Liveness plus database reachability."""
    payload: Dict[str, Any] = {
        "status": "ok",
        "timestamp": _utc_iso_now(),
    }
    try:
        await database.ping()
        payload["database"] = "ok"
    except Exception as e:
        payload["status"] = "degraded"
        payload["database"] = str(e)
    return payload


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    uvicorn.run(
        app,
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "3001")),
    )
