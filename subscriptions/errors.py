"""
subscriptions/errors.py -- Error kinds raised by the subscription lifecycle.

  InvalidSubscriberData -- name or email failed validation (client input).
  InvalidSubscriptionToken -- a token that cannot possibly have been issued.
  UnknownSubscriptionToken -- a well-formed token nobody was issued.
  DuplicateSubscriber -- store-internal signal; the lifecycle turns it into a
      normal success response and it never leaves this package.

Layer rule: no imports from api/, auth/, or newsletter/.
"""

from __future__ import annotations

from core.errors import MailomatError


class SubscriptionError(MailomatError):
    """Base class for subscription lifecycle errors."""


# ---------------------------------------------------------------------------
# Subscriber data
# ---------------------------------------------------------------------------


class InvalidSubscriberData(SubscriptionError):
    """Base class for name/email validation failures."""


class SubscriberNameEmpty(InvalidSubscriberData):
    def __init__(self) -> None:
        super().__init__("missing subscriber name")


class SubscriberNameTooLong(InvalidSubscriberData):
    def __init__(self, limit: int) -> None:
        super().__init__(f"subscriber name longer than {limit} characters")


class SubscriberNameForbiddenChars(InvalidSubscriberData):
    def __init__(self) -> None:
        super().__init__("subscriber name contains forbidden characters")


class EmailInvalid(InvalidSubscriberData):
    def __init__(self) -> None:
        super().__init__("email invalid")


class EmailTooLong(InvalidSubscriberData):
    def __init__(self, limit: int) -> None:
        super().__init__(f"email longer than {limit} characters")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class InvalidSubscriptionToken(SubscriptionError):
    def __init__(self) -> None:
        # The candidate itself is not echoed back.
        super().__init__("invalid subscription token")


class UnknownSubscriptionToken(SubscriptionError):
    def __init__(self) -> None:
        super().__init__("subscription token not recognised")


# ---------------------------------------------------------------------------
# Store-internal
# ---------------------------------------------------------------------------


class DuplicateSubscriber(SubscriptionError):
    """The email is already registered. Handled inside the lifecycle."""
