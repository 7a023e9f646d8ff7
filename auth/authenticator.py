"""
auth/authenticator.py -- Verify credentials against stored principals.

Security design decisions:
  [C1] Timing equalisation: when the username does not exist we still run a
       full Argon2id verification, against the hasher's placeholder hash. The
       slow path runs on every request that passes the bound check, so response
       time does not reveal whether the username exists.

  [C2] The "user not found" outcome is raised only after the hash work has
       finished. Both failure kinds map to the same client message
       ("Invalid username or password."); the distinction exists for logs.

  [C3] Read-only: no attempt counters, no last-login stamp. Nothing an
       attacker does here writes to the database.

Layer rule: no imports from api/, subscriptions/, or newsletter/.
"""

from __future__ import annotations

import logging
from uuid import UUID

from auth.credentials import check_bounds
from auth.errors import PasswordInvalid, UsernameNotFound
from auth.models import Credentials
from auth.passwords import PasswordHasher
from auth.store import UserStore

logger = logging.getLogger("mailomat.auth")


class Authenticator:
    def __init__(self, store: UserStore, hasher: PasswordHasher) -> None:
        self.store = store
        self.hasher = hasher

    async def authenticate(self, credentials: Credentials) -> UUID:
        """Return the principal's user_id, or raise an AuthFailure subclass.

        Raises:
            UsernameTooLong / PasswordTooLong: input bounds (no hashing done).
            UsernameNotFound: no principal with that username.
            PasswordInvalid: wrong password or unparsable stored hash.
        """
        check_bounds(credentials.username, credentials.password.get_secret_value())

        principal = await self.store.lookup_principal(credentials.username)
        # [C1] -- always verify, even for unknown users
        hash_string = principal.password_hash if principal is not None else self.hasher.placeholder_hash
        try:
            await self.hasher.verify_async(credentials.password, hash_string)
        except PasswordInvalid:
            if principal is not None:
                logger.info("Failed login for user %s: invalid password", principal.user_id)
                raise

        if principal is None:
            # [C2]
            logger.info("Failed login: unknown username")
            raise UsernameNotFound(credentials.username)

        logger.info("User %s authenticated", principal.user_id)
        return principal.user_id
