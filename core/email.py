"""
core/email.py -- Outbound email transport interface.

Mailomat does not talk to an email provider itself. Callers inject an object
satisfying EmailClient; any provider adapter must collapse its network, 4xx
and 5xx failures into core.errors.EmailTransportError.

OutboxEmailClient is the development transport: it records every message in
memory and logs the recipients, so a local instance (and the test suite) can
run the full subscribe/confirm/publish flow without a provider account.

Layer rule: no imports from api/, auth/, subscriptions/, or newsletter/.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from core.errors import EmailTransportError

logger = logging.getLogger("mailomat.email")


@dataclass(frozen=True)
class EmailMessage:
    recipients: tuple[str, ...]
    subject: str
    html_body: str
    text_body: str


class EmailClient(Protocol):
    """What the engine needs from an email transport."""

    async def send(self, recipient: str, subject: str, html_body: str, text_body: str) -> None: ...

    async def send_batch(self, recipients: Sequence[str], subject: str, html_body: str, text_body: str) -> None: ...


class OutboxEmailClient:
    """In-memory transport for development and tests.

    fail_with, when set, makes every send raise EmailTransportError with that
    message -- handy for exercising the "committed but not notified" path.
    """

    def __init__(self, sender: str, fail_with: str | None = None) -> None:
        self.sender = sender
        self.fail_with = fail_with
        self.outbox: list[EmailMessage] = []

    async def send(self, recipient: str, subject: str, html_body: str, text_body: str) -> None:
        await self.send_batch([recipient], subject, html_body, text_body)

    async def send_batch(self, recipients: Sequence[str], subject: str, html_body: str, text_body: str) -> None:
        if self.fail_with is not None:
            raise EmailTransportError(self.fail_with)
        message = EmailMessage(tuple(recipients), subject, html_body, text_body)
        self.outbox.append(message)
        logger.info("Queued email %r from %s to %d recipient(s)", subject, self.sender, len(message.recipients))
