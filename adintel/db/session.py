from __future__ import annotations

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


class Database:
    """Owns the async engine and session factory for one application instance."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_maker = async_sessionmaker[AsyncSession](
            bind=engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs: Any) -> Database:
        if database_url.startswith("postgresql"):
            engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_async_engine(database_url, **engine_kwargs))

    async def verify_connection(self) -> None:
        """Verify database connectivity. Raises if connection fails."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            raise RuntimeError(f"Failed to connect to database: {e}") from e

    async def dispose(self) -> None:
        await self.engine.dispose()
