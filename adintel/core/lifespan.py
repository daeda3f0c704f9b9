from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from adintel.core.config import settings
from adintel.db.session import Database
from adintel.services.indexing_queue import IndexingQueue

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI lifespan context manager for startup/shutdown events."""
    database: Database = app.state.database
    queue: IndexingQueue = app.state.indexing_queue
    http_client: httpx.AsyncClient = app.state.http_client
    try:
        # Startup
        if settings.environment != "test":
            await database.verify_connection()
        await queue.recover()
        queue.start()
        logger.info("Indexing worker started")
        yield

        # Shutdown
    finally:
        await queue.stop()
        await http_client.aclose()
        await database.dispose()
