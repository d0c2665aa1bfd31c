"""Unit tests for the Database handle."""

from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.database import Database, create_database


class TestCreateDatabase:
    """Tests for create_database."""

    async def test_sqlite_handle_opens_sessions(self) -> None:
        database = create_database("sqlite+aiosqlite:///:memory:")
        try:
            async with database.session() as session:
                assert isinstance(session, AsyncSession)
                result = await session.execute(text("SELECT 1"))
                assert result.scalar_one() == 1
        finally:
            await database.dispose()

    def test_handles_are_independent(self) -> None:
        first = create_database("sqlite+aiosqlite:///:memory:")
        second = create_database("sqlite+aiosqlite:///:memory:")
        assert first.engine is not second.engine
        assert first.session_factory is not second.session_factory

    def test_pool_defaults_for_postgres(self) -> None:
        with patch("ballot_api.core.database.create_async_engine") as mock_create:
            create_database("postgresql+asyncpg://localhost/db")
        kwargs = mock_create.call_args.kwargs
        assert kwargs["pool_size"] == 10
        assert kwargs["max_overflow"] == 5

    def test_no_pool_defaults_for_sqlite(self) -> None:
        with patch("ballot_api.core.database.create_async_engine") as mock_create:
            create_database("sqlite+aiosqlite:///:memory:")
        kwargs = mock_create.call_args.kwargs
        assert "pool_size" not in kwargs

    def test_schema_sets_search_path(self) -> None:
        with patch("ballot_api.core.database.create_async_engine") as mock_create:
            database = create_database("postgresql+asyncpg://localhost/db", schema="pr_42")
        kwargs = mock_create.call_args.kwargs
        assert kwargs["connect_args"]["server_settings"] == {"search_path": "pr_42,public"}
        assert isinstance(database, Database)

    def test_schema_rejects_non_dict_connect_args(self) -> None:
        with pytest.raises(TypeError, match="connect_args"):
            create_database("postgresql+asyncpg://localhost/db", schema="pr_42", connect_args="bad")
