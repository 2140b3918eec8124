"""Shared test fixtures.

Provides:
- A file-backed SQLite engine (aiosqlite) per test with all meeting history tables
- A session_factory callable matching the repository constructor contract
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from src.meeting_history.core.database import Base
import src.meeting_history.meetings.models  # noqa: F401
import src.meeting_history.models.identity  # noqa: F401


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """Fresh database file per test; every session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'meetings.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(sqlite_engine):
    """Async generator factory yielding sessions on the test engine."""

    async def _factory() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
            yield session

    return _factory
