"""
core/database.py -- Async SQLAlchemy engine factory and connection helpers.

Pattern: every store receives an AsyncEngine built here and opens connections
through connect(), which turns pool exhaustion into a typed, retryable error
instead of a raw SQLAlchemy TimeoutError.

Pool policy [P1]:
  Bounded pool (db_pool_size, no overflow) with an acquisition timeout
  (db_pool_timeout). In-memory SQLite has a single shared connection and
  uses StaticPool, so size/timeout do not apply there.

  [P2] Because every StaticPool checkout wraps that same DBAPI connection,
  connect() serializes them behind a per-engine asyncio.Lock held for the
  life of the checkout. Without it, concurrent transactions would interleave
  their BEGIN/COMMIT/ROLLBACK on one connection.

SQLite specifics:
  WAL journal mode and foreign key enforcement are per-connection PRAGMAs,
  so they are set from a "connect" event listener on every new connection.
  Foreign keys are what make a token row impossible without its subscriber.

Layer rule: core/ is the kernel. No imports from api/, auth/, subscriptions/,
or newsletter/.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from core.config import Settings
from core.errors import DatabaseBusy

logger = logging.getLogger("mailomat.db")

_PG_UNIQUE_VIOLATION = "23505"

# Engines whose pool hands out one shared connection. [P2]
_shared_connection_locks: weakref.WeakKeyDictionary[Engine, asyncio.Lock] = weakref.WeakKeyDictionary()


# ---------------------------------------------------------------------------
# SQLite connection setup
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign keys for each new SQLite connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_sqlite(database: str | None, query: dict) -> bool:
    return not database or database == ":memory:" or query.get("mode") == "memory"


# ---------------------------------------------------------------------------
# Engine factory
# ---------------------------------------------------------------------------


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the shared AsyncEngine for all stores from application settings."""
    url = make_url(settings.database_url)
    kwargs: dict = {"echo": settings.db_echo}
    is_sqlite = url.get_backend_name() == "sqlite"

    if is_sqlite and _is_memory_sqlite(url.database, dict(url.query)):
        kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            poolclass=AsyncAdaptedQueuePool,
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
        )

    engine = create_async_engine(url, **kwargs)
    if kwargs["poolclass"] is StaticPool:
        _shared_connection_locks[engine.sync_engine] = asyncio.Lock()
    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _set_sqlite_pragmas)
    logger.info(
        "Database engine created (backend=%s, pool_size=%s)",
        url.get_backend_name(),
        kwargs.get("pool_size", "static"),
    )
    return engine


@asynccontextmanager
async def connect(engine: AsyncEngine) -> AsyncIterator[AsyncConnection]:
    """Check a connection out of the pool; raise DatabaseBusy on pool timeout.

    The connection is always returned to the pool on exit. Closing a
    connection with an open transaction rolls that transaction back, so an
    exception inside the block never leaves partial writes behind.

    On a shared-connection engine the checkout is exclusive [P2]; do not
    nest connect() calls on such an engine.
    """
    async with AsyncExitStack() as stack:
        lock = _shared_connection_locks.get(engine.sync_engine)
        if lock is not None:
            await stack.enter_async_context(lock)
        try:
            conn = await engine.connect()
        except PoolTimeoutError as exc:
            logger.warning("Database pool exhausted: %s", exc)
            raise DatabaseBusy("No database connection available; try again later.") from exc
        stack.push_async_callback(conn.close)
        yield conn


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_unique_violation(exc: IntegrityError) -> bool:
    """Return True if the IntegrityError is a UNIQUE constraint violation.

    PostgreSQL drivers expose SQLSTATE 23505. SQLite only offers the error
    name (Python 3.11+) or the message text.
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == _PG_UNIQUE_VIOLATION
    errorname = getattr(orig, "sqlite_errorname", None)
    if errorname is not None:
        return errorname in ("SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY")
    return "UNIQUE constraint failed" in str(orig)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    # Fixed width so stored timestamps compare correctly as strings.
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
