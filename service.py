"""
service.py -- MailingListService: the facade an HTTP application mounts.

Wires one engine, one PasswordHasher and one EmailClient into the auth,
subscription and newsletter components and exposes the caller-facing
operations. Build it once at startup, store it on app.state, close it on
shutdown:

    @asynccontextmanager
    async def lifespan(app):
        service = MailingListService.create(get_settings(), email_client)
        await service.create_schema()
        app.state.settings = service.settings
        app.state.sessions = service.sessions
        app.state.mailing_list = service
        yield
        await service.close()

Layer rule: service.py may import from every package except api/.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncEngine

from auth import store as auth_store
from auth.authenticator import Authenticator
from auth.models import Credentials, SessionHandle, SessionRecord
from auth.passwords import PasswordHasher
from auth.sessions import SessionManager
from auth.store import SessionStore, UserStore
from core.config import Settings
from core.database import create_engine
from core.email import EmailClient
from newsletter.publisher import NewsletterIssue, NewsletterPublisher
from subscriptions import store as subscriptions_store
from subscriptions.lifecycle import SubscriptionLifecycle
from subscriptions.models import StandardResponse
from subscriptions.store import SubscriberStore

logger = logging.getLogger("mailomat.service")


class MailingListService:
    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine,
        hasher: PasswordHasher,
        email_client: EmailClient,
    ) -> None:
        self.settings = settings
        self.engine = engine
        self.hasher = hasher
        self.email_client = email_client

        self.users = UserStore(engine)
        self.subscribers = SubscriberStore(engine)
        self.authenticator = Authenticator(self.users, hasher)
        self.sessions = SessionManager(SessionStore(engine, settings.session_idle_timeout_seconds))
        self.lifecycle = SubscriptionLifecycle(self.subscribers, email_client, settings.base_url)
        self.publisher = NewsletterPublisher(self.authenticator, self.subscribers, email_client)

    @classmethod
    def create(cls, settings: Settings, email_client: EmailClient) -> MailingListService:
        return cls(settings, create_engine(settings), PasswordHasher.from_settings(settings), email_client)

    async def create_schema(self) -> None:
        await auth_store.create_schema(self.engine)
        await subscriptions_store.create_schema(self.engine)
        logger.info("Database schema ready")

    # ------------------------------------------------------------------
    # Authentication and sessions
    # ------------------------------------------------------------------

    async def authenticate(self, credentials: Credentials) -> UUID:
        return await self.authenticator.authenticate(credentials)

    async def establish_session(self, principal_id: UUID, presented_session_id: str | None = None) -> SessionHandle:
        return await self.sessions.establish_session(principal_id, presented_session_id)

    async def login(self, credentials: Credentials, presented_session_id: str | None = None) -> SessionHandle:
        """authenticate + establish_session, the admin login form's whole job."""
        principal_id = await self.authenticate(credentials)
        return await self.establish_session(principal_id, presented_session_id)

    async def require_session(self, session_id: str | None) -> SessionRecord:
        return await self.sessions.require_session(session_id)

    async def record_activity(self, record: SessionRecord) -> SessionRecord:
        return await self.sessions.record_activity(record)

    async def end_session(self, session_id: str | None) -> None:
        await self.sessions.end_session(session_id)

    # ------------------------------------------------------------------
    # Subscriptions and newsletters
    # ------------------------------------------------------------------

    async def register_subscriber(self, name: str, email: str) -> StandardResponse:
        return await self.lifecycle.register(name, email)

    async def confirm_subscription(self, token_candidate: str) -> UUID:
        return await self.lifecycle.confirm(token_candidate)

    async def publish_newsletter(self, credentials: Credentials, issue: NewsletterIssue) -> int:
        return await self.publisher.publish(credentials, issue)

    async def close(self) -> None:
        self.hasher.close()
        await self.engine.dispose()
        logger.info("Mailing list service closed")
