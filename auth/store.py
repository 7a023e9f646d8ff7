"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore and SessionStore are the repositories; _row_to_principal /
_row_to_session are the mappers. The authenticator and session manager never
touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Session ids are 256-bit values from secrets.token_urlsafe and are the
  primary key, so one id can never name two sessions, let alone two principals.

  Inactivity expiry is owned here: get() treats a session whose last_seen is
  older than idle_timeout as absent and deletes it. Nothing is cached in
  process -- every get() is a database read.

Layer rule: no imports from api/, subscriptions/, or newsletter/.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from uuid import UUID, uuid4

from sqlalchemy import Column, MetaData, String, Table, Text, Uuid, func, select
from sqlalchemy.ext.asyncio import AsyncEngine

from auth.models import Principal, SessionRecord
from core.database import connect, from_iso, to_iso, utc_now

logger = logging.getLogger("mailomat.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("user_id", Uuid, primary_key=True),
    Column("username", Text, nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),  # PHC string, never a raw secret
)

_sessions = Table(
    "sessions",
    _metadata,
    Column("session_id", String(64), primary_key=True),
    Column("principal_id", Uuid, nullable=False, index=True),
    Column("first_seen", String(40), nullable=False),  # ISO 8601 UTC
    Column("last_seen", String(40), nullable=False),  # ISO 8601 UTC
)


async def create_schema(engine: AsyncEngine) -> None:
    """Create the users and sessions tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(_metadata.create_all)


def _new_session_id() -> str:
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Principals
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for Principal rows.

    Usage:
        store = UserStore(engine)
        await store.create_principal("admin", hasher.hash(SecretStr("secret")))
        principal = await store.lookup_principal("admin")
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def lookup_principal(self, username: str) -> Principal | None:
        """Look up a principal by exact username (case-sensitive). Returns None if not found."""
        async with connect(self.engine) as conn:
            row = (await conn.execute(_users.select().where(_users.c.username == username))).fetchone()
        return _row_to_principal(row) if row is not None else None

    async def create_principal(self, username: str, password_hash: str, user_id: UUID | None = None) -> UUID:
        """Insert a principal and return its id. Provisioning tool only.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        user_id = user_id or uuid4()
        async with connect(self.engine) as conn:
            await conn.execute(
                _users.insert().values(user_id=user_id, username=username, password_hash=password_hash)
            )
            await conn.commit()
        return user_id

    async def has_users(self) -> bool:
        async with connect(self.engine) as conn:
            count = (await conn.execute(select(func.count()).select_from(_users))).scalar()
        return (count or 0) > 0


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for server-side sessions.

    Every mutating method commits before returning, so by the time a caller
    sends a response the change is durable.
    """

    def __init__(self, engine: AsyncEngine, idle_timeout_seconds: int = 3600) -> None:
        self.engine = engine
        self.idle_timeout = timedelta(seconds=idle_timeout_seconds)

    async def create(self, principal_id: UUID) -> str:
        """Insert a session for principal_id and return its id."""
        session_id = _new_session_id()
        now = to_iso(utc_now())
        async with connect(self.engine) as conn:
            await conn.execute(
                _sessions.insert().values(
                    session_id=session_id,
                    principal_id=principal_id,
                    first_seen=now,
                    last_seen=now,
                )
            )
            await conn.commit()
        return session_id

    async def rotate(self, session_id: str) -> str | None:
        """Give an existing session a fresh id. Returns None if session_id is unknown.

        One UPDATE of the primary key: the old id stops working in the same
        statement that makes the new one valid.
        """
        new_id = _new_session_id()
        async with connect(self.engine) as conn:
            result = await conn.execute(
                _sessions.update().where(_sessions.c.session_id == session_id).values(session_id=new_id)
            )
            await conn.commit()
        return new_id if result.rowcount > 0 else None

    async def get(self, session_id: str) -> SessionRecord | None:
        """Return the session if it exists and has not been idle past the timeout."""
        async with connect(self.engine) as conn:
            row = (await conn.execute(_sessions.select().where(_sessions.c.session_id == session_id))).fetchone()
        if row is None:
            return None
        record = _row_to_session(row)
        if utc_now() - record.last_seen > self.idle_timeout:
            logger.info("Session for principal %s expired after inactivity", record.principal_id)
            await self.delete(session_id)
            return None
        return record

    async def touch(self, session_id: str) -> str | None:
        """Stamp last_seen with the current time. Returns the stored timestamp, None if unknown."""
        now = to_iso(utc_now())
        async with connect(self.engine) as conn:
            result = await conn.execute(
                _sessions.update().where(_sessions.c.session_id == session_id).values(last_seen=now)
            )
            await conn.commit()
        return now if result.rowcount > 0 else None

    async def delete(self, session_id: str) -> bool:
        async with connect(self.engine) as conn:
            result = await conn.execute(_sessions.delete().where(_sessions.c.session_id == session_id))
            await conn.commit()
        return result.rowcount > 0

    async def purge_expired(self) -> int:
        """Delete all sessions idle past the timeout. Returns number of rows removed."""
        cutoff = to_iso(utc_now() - self.idle_timeout)
        async with connect(self.engine) as conn:
            result = await conn.execute(_sessions.delete().where(_sessions.c.last_seen < cutoff))
            await conn.commit()
        return result.rowcount


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_principal(row) -> Principal:
    return Principal(user_id=row.user_id, username=row.username, password_hash=row.password_hash)


def _row_to_session(row) -> SessionRecord:
    return SessionRecord(
        session_id=row.session_id,
        principal_id=row.principal_id,
        first_seen=from_iso(row.first_seen),
        last_seen=from_iso(row.last_seen),
    )
