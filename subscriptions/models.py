"""
subscriptions/models.py -- Domain types for subscribers.

ValidSubscriber is the only way a name/email pair reaches the store: parse()
either returns a fully validated value or raises an InvalidSubscriberData
subclass. Validation is pure and synchronous; the lifecycle runs it in a
worker thread.

Layer rule: no imports from api/, auth/, or newsletter/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from core.text import MAX_GRAPHEMES, exceeds_limit
from subscriptions.errors import (
    EmailInvalid,
    EmailTooLong,
    SubscriberNameEmpty,
    SubscriberNameForbiddenChars,
    SubscriberNameTooLong,
)

FORBIDDEN_NAME_CHARS = frozenset('/()"<>\\{}')


class SubscriptionStatus(str, Enum):
    pending_confirmation = "pending_confirmation"
    confirmed = "confirmed"


class StandardResponse(str, Enum):
    """The one answer register() gives, whether or not the email was new."""

    SUCCESS = "If this email is not already subscribed, you will receive a confirmation email shortly."


@dataclass(frozen=True)
class Subscriber:
    id: UUID
    email: str
    name: str
    subscribed_at: datetime
    status: SubscriptionStatus


@dataclass(frozen=True)
class ValidSubscriber:
    """A name/email pair that passed validation. Build with parse()."""

    name: str
    email: str

    @classmethod
    def parse(cls, name: str, email: str) -> ValidSubscriber:
        return cls(name=parse_name(name), email=parse_email(email))


def parse_name(value: str) -> str:
    """Validate a subscriber name. The value is stored as given."""
    if exceeds_limit(value, MAX_GRAPHEMES):
        raise SubscriberNameTooLong(MAX_GRAPHEMES)
    if not value.strip():
        raise SubscriberNameEmpty()
    if any(ch in FORBIDDEN_NAME_CHARS for ch in value):
        raise SubscriberNameForbiddenChars()
    return value


def parse_email(value: str) -> str:
    """Validate an email address and return its normalized form.

    RFC shape only: no DNS or deliverability lookups.
    """
    if exceeds_limit(value, MAX_GRAPHEMES):
        raise EmailTooLong(MAX_GRAPHEMES)
    try:
        validated = validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise EmailInvalid() from None
    return validated.normalized
