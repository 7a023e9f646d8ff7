"""
newsletter/publisher.py -- Send a newsletter issue to every confirmed subscriber.

Flow:
  1. Authenticate the operator's Basic credentials (same Authenticator, same
     timing behaviour as the admin login).
  2. Load confirmed subscriber emails.
  3. Re-validate each address. Everything in the table was validated on the
     way in, so a failure here is a bug: it is logged and the address skipped.
  4. Send one batch email if there is at least one recipient.

Pending subscribers never receive an issue.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from auth.authenticator import Authenticator
from auth.models import Credentials
from core.email import EmailClient
from core.errors import MailomatError
from subscriptions.errors import InvalidSubscriberData
from subscriptions.models import parse_email
from subscriptions.store import SubscriberStore

logger = logging.getLogger("mailomat.newsletter")


class InvalidNewsletterIssue(MailomatError):
    """The issue itself is malformed (e.g. empty title)."""


@dataclass(frozen=True)
class NewsletterIssue:
    title: str
    text: str
    html: str

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise InvalidNewsletterIssue("newsletter title is empty")


class NewsletterPublisher:
    def __init__(self, authenticator: Authenticator, store: SubscriberStore, email_client: EmailClient) -> None:
        self.authenticator = authenticator
        self.store = store
        self.email_client = email_client

    async def publish(self, credentials: Credentials, issue: NewsletterIssue) -> int:
        """Send issue to all confirmed subscribers. Returns the number of recipients.

        Raises:
            AuthFailure / CredentialsError subclass: operator not authenticated.
            EmailTransportError: the batch send failed.
        """
        principal_id = await self.authenticator.authenticate(credentials)

        recipients: list[str] = []
        for email in await self.store.confirmed_emails():
            try:
                recipients.append(parse_email(email))
            except InvalidSubscriberData as exc:
                logger.error("BUG: stored subscriber email failed validation (%s); skipping", exc)

        if recipients:
            await self.email_client.send_batch(recipients, issue.title, issue.html, issue.text)
        logger.info("Principal %s published %r to %d subscriber(s)", principal_id, issue.title, len(recipients))
        return len(recipients)
