"""Infrastructure test fixtures — DatabaseSessionManager over in-memory SQLite.

Design Decisions:
    - SQLite in-memory: fast, no external dependency; PostgreSQL-specific
      features are not exercised by the repositories
    - The manager picks a StaticPool for SQLite URLs, so the schema created here
      is the one every session sees
"""

import pytest

import skyview.models  # noqa: F401
from skyview.db.base import Base
from skyview.infrastructure.database import DatabaseSessionManager


@pytest.fixture
async def db_manager():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await manager.engine.dispose()
