import os
import sys
import logging
from contextlib import asynccontextmanager

import uvicorn
from starlette.applications import Starlette
from starlette.routing import Mount
from starlette.types import ASGIApp

# Ensure we can import from backend dir
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from mcp_server import mcp
from db import close_database, get_database

logger = logging.getLogger("personal_assistant.mcp.sse")


@asynccontextmanager
async def _lifespan(_app: Starlette):
    await get_database().init_db()
    yield
    await close_database()


def create_sse_app() -> ASGIApp:
    """Starlette app serving the MCP server at /sse with the database bootstrapped."""
    return Starlette(routes=[Mount("/", app=mcp.sse_app())], lifespan=_lifespan)


def main():
    """
    Run the Personal Assistant MCP server using SSE (Server-Sent Events) transport.
    This is required for clients that don't support stdio (like some web-based tools).
    """
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

    app = create_sse_app()

    port = int(os.getenv("MCP_SSE_PORT", 8000))
    host = os.getenv("MCP_SSE_HOST", "0.0.0.0")

    logger.info("Starting SSE Server on http://%s:%s (endpoint /sse)", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
