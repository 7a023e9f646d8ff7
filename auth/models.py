"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; stores, the authenticator and the session manager do the work.

Layer rule: no imports from api/, subscriptions/, or newsletter/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from pydantic import SecretStr


@dataclass(frozen=True)
class Principal:
    """An operator allowed to log in and publish newsletters.

    Rows are provisioned out-of-band (scripts/create_admin.py). This package
    only ever reads them.

    password_hash is a PHC string: "$argon2id$v=19$m=...,t=...,p=...$salt$digest".
    Algorithm, parameters and salt travel with the digest, so old hashes keep
    verifying after the configured parameters change.
    """

    user_id: UUID
    username: str
    password_hash: str


@dataclass(frozen=True)
class Credentials:
    """Username/password pair extracted from a single request.

    password is a SecretStr: repr(), str() and logging all show '**********'.
    Read the value only where it is handed to the hasher.
    """

    username: str
    password: SecretStr


@dataclass(frozen=True)
class SessionRecord:
    """Server-side session row. Expiry is decided by the store, not here."""

    session_id: str
    principal_id: UUID
    first_seen: datetime
    last_seen: datetime


@dataclass(frozen=True)
class SessionHandle:
    """What establish_session hands back to the HTTP layer.

    session_id is the post-rotation identifier -- the only one the client
    should ever see.
    """

    session_id: str
    principal_id: UUID
    first_seen: datetime
