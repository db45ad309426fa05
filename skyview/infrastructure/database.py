"""Database Session Manager — async engine, per-call sessions, SkyView error mapping.

Invariants:
    - Every session rolls back on exception; nothing half-written is committed
    - SQLAlchemy exceptions leave session() only as DatabaseError (core/errors.py)
    - A unique-index hit on viewer_states.short_id becomes ShortIdConflictError,
      the one database failure callers are expected to retry
    - Transient connection failures carry retry_after_ms for the HTTP layer

Design Decisions:
    - Singleton db_manager initialized on startup; the FastAPI lifespan owns it
    - expire_on_commit=False: repositories read columns after commit, outside the session
    - SQLite URLs (tests, local runs) get a StaticPool so an in-memory database
      survives across sessions; pool sizing applies only to server databases
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

from skyview.core.errors import DatabaseError, ErrorContext, ShortIdConflictError

logger = logging.getLogger(__name__)

SHORT_ID_CONSTRAINT_MARKER = "short_id"
TRANSIENT_RETRY_AFTER_MS = 1000


def engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict[str, Any]:
    """create_async_engine kwargs for the backend named in the URL."""
    if make_url(database_url).get_backend_name() == "sqlite":
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


def map_database_error(error: SQLAlchemyError) -> DatabaseError:
    """Translate a SQLAlchemy failure into the SkyView error a caller can act on."""
    if isinstance(error, IntegrityError):
        if SHORT_ID_CONSTRAINT_MARKER in str(error.orig):
            return ShortIdConflictError()
        return DatabaseError("Integrity constraint violated", "commit")
    if isinstance(error, OperationalError):
        return DatabaseError(
            "Connection or operational error", "execute",
            ErrorContext(retry_after_ms=TRANSIENT_RETRY_AFTER_MS),
        )
    if isinstance(error, DBAPIError):
        return DatabaseError("Database driver error", "query")
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Hands out async sessions that roll back and translate errors on failure."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine: AsyncEngine = create_async_engine(
            database_url, **engine_options(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            mapped = map_database_error(e)
            log = logger.warning if isinstance(mapped, ShortIdConflictError) else logger.error
            log(
                f"DB {mapped.operation} failed ({type(e).__name__}): {e}",
                extra={"error_code": mapped.code},
            )
            raise mapped from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
