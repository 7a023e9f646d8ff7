"""
subscriptions/lifecycle.py -- Subscribe and confirm.

State machine per email address:

    (absent) --register--> pending_confirmation --confirm--> confirmed
                                                  <--confirm-- (no-op)

Security design decisions:
  [L1] No existence leak: register() returns StandardResponse.SUCCESS whether
       the email was new or already present, and sends mail only for new ones.

  [L2] Exactly-once: the subscriber row and its token row are written in one
       transaction. A duplicate email (including the loser of two concurrent
       registrations) hits the UNIQUE constraint, the transaction rolls back,
       and the caller still sees SUCCESS.

  [L3] The transaction runs under asyncio.shield. A client disconnect cancels
       the handler but not the in-flight insert/commit, so cancellation can
       never leave a subscriber without its token.

  [L4] The confirmation email is sent after commit. If the transport fails the
       subscriber stays pending and the error propagates (a 500 upstream);
       there is no automatic resend.

Layer rule: no imports from api/, auth/, or newsletter/.
"""

from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from core.database import connect
from core.email import EmailClient
from subscriptions.emails import CONFIRMATION_SUBJECT, confirmation_link, render_confirmation
from subscriptions.errors import DuplicateSubscriber, UnknownSubscriptionToken
from subscriptions.models import StandardResponse, ValidSubscriber
from subscriptions.store import SubscriberStore
from subscriptions.tokens import SubscriptionToken

logger = logging.getLogger("mailomat.subscriptions")


class SubscriptionLifecycle:
    def __init__(self, store: SubscriberStore, email_client: EmailClient, base_url: str) -> None:
        self.store = store
        self.email_client = email_client
        self.base_url = base_url.rstrip("/")

    async def register(self, name: str, email: str) -> StandardResponse:
        """Register name/email as a pending subscriber and send the confirmation email.

        Raises:
            InvalidSubscriberData subclass: name or email failed validation.
            DatabaseBusy / SQLAlchemyError: persistence failed, nothing written.
            EmailTransportError: row committed but the email was not sent.
        """
        subscriber, token = await asyncio.gather(
            asyncio.to_thread(ValidSubscriber.parse, name, email),
            asyncio.to_thread(SubscriptionToken.generate),
        )

        # [L3]
        created = await asyncio.shield(self._store_pending(subscriber, token))
        if not created:
            # [L1] -- same answer, no email
            return StandardResponse.SUCCESS

        await self._send_confirmation(subscriber, token)
        return StandardResponse.SUCCESS

    async def _store_pending(self, subscriber: ValidSubscriber, token: SubscriptionToken) -> bool:
        """Insert subscriber + token atomically. Returns False if the email already exists. [L2]"""
        async with connect(self.store.engine) as conn:
            try:
                async with conn.begin():
                    subscriber_id = await self.store.insert_subscriber(conn, subscriber)
                    await self.store.insert_token(conn, token, subscriber_id)
            except DuplicateSubscriber:
                logger.info("Registration for an existing email; nothing written")
                return False
        logger.info("Subscriber %s registered, pending confirmation", subscriber_id)
        return True

    async def _send_confirmation(self, subscriber: ValidSubscriber, token: SubscriptionToken) -> None:
        link = confirmation_link(self.base_url, token.value)
        html_body, text_body = render_confirmation(subscriber.name, link)
        await self.email_client.send(subscriber.email, CONFIRMATION_SUBJECT, html_body, text_body)
        logger.info("Confirmation email sent")

    async def confirm(self, token_candidate: str) -> UUID:
        """Confirm the subscriber the token was issued to and return its id.

        Idempotent: confirming an already-confirmed subscriber succeeds.

        Raises:
            InvalidSubscriptionToken: candidate is not a well-formed token.
            UnknownSubscriptionToken: no subscriber holds this token.
        """
        token = SubscriptionToken.parse(token_candidate)
        subscriber_id = await self.store.find_subscriber_id(token)
        if subscriber_id is None:
            raise UnknownSubscriptionToken()

        if await self.store.confirm_subscriber(subscriber_id):
            logger.info("Subscriber %s confirmed", subscriber_id)
        else:
            logger.info("Subscriber %s was already confirmed", subscriber_id)
        return subscriber_id
