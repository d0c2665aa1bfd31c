"""Async database engine and session management.

Provides an explicitly constructed ``Database`` handle wrapping the async
engine and session factory (SQLAlchemy 2.x with asyncpg). The handle is
owned by whoever creates it (the app lifespan or a CLI command) and passed
down to the code that needs it; there is no process-wide engine.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


class Database:
    """Owns an async engine and its session factory."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(engine, expire_on_commit=False)

    def session(self) -> AsyncSession:
        """Open a new session. Use as ``async with database.session() as session``."""
        return self.session_factory()

    async def dispose(self) -> None:
        """Dispose of the async engine and release connections."""
        await self.engine.dispose()


def create_database(database_url: str, *, schema: str | None = None, **kwargs: object) -> Database:
    """Create an async engine and wrap it in a ``Database`` handle.

    Args:
        database_url: Async SQLAlchemy connection string.
        schema: Optional PostgreSQL schema for isolated environments.
        **kwargs: Additional arguments passed to create_async_engine.

    Returns:
        A new Database handle.
    """
    if schema is not None:
        connect_args = kwargs.pop("connect_args", {})
        if not isinstance(connect_args, dict):
            msg = "connect_args must be a dict"
            raise TypeError(msg)
        connect_args["server_settings"] = {"search_path": f"{schema},public"}
        kwargs["connect_args"] = connect_args
    # Only set pool defaults for connection-pooled engines (not SQLite/StaticPool)
    uses_static_pool = kwargs.get("poolclass") is StaticPool or "sqlite" in database_url
    if not uses_static_pool:
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 5)
    return Database(create_async_engine(database_url, **kwargs))
