"""
subscriptions/store.py -- SQLAlchemy Core persistence for subscribers and tokens.

Pattern: Repository + Data Mapper, as in auth/store.py.

Transactions:
  insert_subscriber and insert_token take an open AsyncConnection instead of
  opening their own, so the lifecycle can run both inside one transaction.
  Everything else opens, commits and closes its own connection.

Integrity:
  subscriptions.email is UNIQUE -- the database, not a read-then-write check,
  decides which of two concurrent registrations wins.
  subscription_tokens.subscriber_id is a FOREIGN KEY -- a token row cannot
  exist without its subscriber (SQLite enforces it via PRAGMA foreign_keys,
  set in core/database.py).

Layer rule: no imports from api/, auth/, or newsletter/.
"""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from sqlalchemy import Column, ForeignKey, MetaData, String, Table, Text, Uuid, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from core.database import connect, from_iso, is_unique_violation, to_iso, utc_now
from subscriptions.errors import DuplicateSubscriber
from subscriptions.models import Subscriber, SubscriptionStatus, ValidSubscriber
from subscriptions.tokens import SubscriptionToken

logger = logging.getLogger("mailomat.subscriptions")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_subscriptions = Table(
    "subscriptions",
    _metadata,
    Column("id", Uuid, primary_key=True),
    Column("email", Text, nullable=False, unique=True),
    Column("name", Text, nullable=False),
    Column("subscribed_at", String(40), nullable=False),  # ISO 8601 UTC
    Column("status", String(32), nullable=False),  # SubscriptionStatus value
)

_tokens = Table(
    "subscription_tokens",
    _metadata,
    Column("subscription_token", String(86), primary_key=True),
    Column("subscriber_id", Uuid, ForeignKey("subscriptions.id"), nullable=False, index=True),
)


async def create_schema(engine: AsyncEngine) -> None:
    """Create the subscriptions and subscription_tokens tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(_metadata.create_all)


class SubscriberStore:
    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Writes inside a caller-owned transaction
    # ------------------------------------------------------------------

    async def insert_subscriber(self, conn: AsyncConnection, subscriber: ValidSubscriber) -> UUID:
        """Insert a pending subscriber and return its id.

        Raises DuplicateSubscriber if the email is already registered. Any other
        IntegrityError propagates unchanged.
        """
        subscriber_id = uuid4()
        try:
            await conn.execute(
                _subscriptions.insert().values(
                    id=subscriber_id,
                    email=subscriber.email,
                    name=subscriber.name,
                    subscribed_at=to_iso(utc_now()),
                    status=SubscriptionStatus.pending_confirmation.value,
                )
            )
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateSubscriber(subscriber.email) from exc
            raise
        return subscriber_id

    async def insert_token(self, conn: AsyncConnection, token: SubscriptionToken, subscriber_id: UUID) -> None:
        await conn.execute(_tokens.insert().values(subscription_token=token.value, subscriber_id=subscriber_id))

    # ------------------------------------------------------------------
    # Self-contained operations
    # ------------------------------------------------------------------

    async def find_subscriber_id(self, token: SubscriptionToken) -> UUID | None:
        """Return the subscriber id the token was issued to, or None."""
        async with connect(self.engine) as conn:
            row = (
                await conn.execute(
                    select(_tokens.c.subscriber_id).where(_tokens.c.subscription_token == token.value)
                )
            ).fetchone()
        return row.subscriber_id if row is not None else None

    async def confirm_subscriber(self, subscriber_id: UUID) -> bool:
        """Mark the subscriber confirmed. Returns True only on the transition.

        The status guard in the WHERE clause makes repeated or concurrent
        confirmations no-ops rather than errors.
        """
        async with connect(self.engine) as conn:
            result = await conn.execute(
                _subscriptions.update()
                .where(
                    _subscriptions.c.id == subscriber_id,
                    _subscriptions.c.status != SubscriptionStatus.confirmed.value,
                )
                .values(status=SubscriptionStatus.confirmed.value)
            )
            await conn.commit()
        return result.rowcount > 0

    async def confirmed_emails(self) -> list[str]:
        async with connect(self.engine) as conn:
            rows = (
                await conn.execute(
                    select(_subscriptions.c.email)
                    .where(_subscriptions.c.status == SubscriptionStatus.confirmed.value)
                    .order_by(_subscriptions.c.subscribed_at)
                )
            ).fetchall()
        return [row.email for row in rows]

    async def get_by_email(self, email: str) -> Subscriber | None:
        async with connect(self.engine) as conn:
            row = (await conn.execute(_subscriptions.select().where(_subscriptions.c.email == email))).fetchone()
        return _row_to_subscriber(row) if row is not None else None

    async def get_by_id(self, subscriber_id: UUID) -> Subscriber | None:
        async with connect(self.engine) as conn:
            row = (
                await conn.execute(_subscriptions.select().where(_subscriptions.c.id == subscriber_id))
            ).fetchone()
        return _row_to_subscriber(row) if row is not None else None

    async def count_subscribers(self) -> int:
        async with connect(self.engine) as conn:
            count = (await conn.execute(select(func.count()).select_from(_subscriptions))).scalar()
        return count or 0

    async def count_tokens(self, subscriber_id: UUID | None = None) -> int:
        stmt = select(func.count()).select_from(_tokens)
        if subscriber_id is not None:
            stmt = stmt.where(_tokens.c.subscriber_id == subscriber_id)
        async with connect(self.engine) as conn:
            count = (await conn.execute(stmt)).scalar()
        return count or 0


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_subscriber(row) -> Subscriber:
    return Subscriber(
        id=row.id,
        email=row.email,
        name=row.name,
        subscribed_at=from_iso(row.subscribed_at),
        status=SubscriptionStatus(row.status),
    )
