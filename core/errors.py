"""
core/errors.py -- Root of the Mailomat exception hierarchy.

Every error raised on purpose by this codebase derives from MailomatError so
the HTTP layer can map it in one place (api/errors.py). Subsystems define their
own subclasses next to the code that raises them; this module only holds the
root and the infrastructure kinds that several layers share.

Layer rule: no imports from api/, auth/, subscriptions/, or newsletter/.
"""

from __future__ import annotations


class MailomatError(Exception):
    """Base class for every error raised by Mailomat."""


class InfrastructureError(MailomatError):
    """A collaborator (database, session store, email transport) failed."""


class DatabaseBusy(InfrastructureError):
    """No pooled database connection became available before the timeout.

    Retryable: the caller may try again once load drops.
    """


class EmailTransportError(InfrastructureError):
    """The email transport could not deliver a message.

    Network errors, 4xx and 5xx provider responses all collapse into this one
    kind at the transport boundary.
    """
