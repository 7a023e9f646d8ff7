"""
auth/passwords.py -- Argon2id password hashing on a dedicated thread pool.

Security design decisions:
  Algorithm: Argon2id via argon2-cffi. Memory-hard, so GPU/ASIC brute force of
       a leaked users table is expensive. Parameters come from Settings and are
       never influenced by request input [A1].

  Single failure kind: verify() raises PasswordInvalid for a wrong password AND
       for a stored hash that does not parse. Callers must not be able to use
       the difference as an oracle. The log line tells them apart.

  Placeholder hash: computed at construction by hashing a random secret with
       the configured parameters. The authenticator verifies against it when a
       username does not exist, so unknown users cost a full Argon2 run
       [C1]. Computing it (instead of embedding a literal) guarantees it always
       parses and always costs the same as a real hash.

  Thread pool: Argon2 is deliberately slow CPU work. hash_async/verify_async
       run it on a ThreadPoolExecutor owned by this object, never on the event
       loop and never on asyncio's default executor, so a burst of logins
       cannot starve unrelated requests. argon2-cffi releases the GIL while
       hashing, so the workers run in parallel.

Construct one PasswordHasher at startup and pass it to whatever needs it.

Layer rule: no imports from api/, subscriptions/, or newsletter/.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from concurrent.futures import ThreadPoolExecutor
from functools import partial

from argon2 import PasswordHasher as Argon2Hasher
from argon2 import Type
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from pydantic import SecretStr

from auth.errors import HashingError, PasswordInvalid
from core.config import Settings

logger = logging.getLogger("mailomat.auth")

_HASH_LEN = 32
_SALT_LEN = 16


class PasswordHasher:
    """Argon2id hasher with fixed parameters and its own worker pool.

    Usage:
        hasher = PasswordHasher.from_settings(get_settings())
        stored = await hasher.hash_async(SecretStr("correct horse"))
        await hasher.verify_async(SecretStr("correct horse"), stored)  # raises PasswordInvalid on mismatch
        hasher.close()
    """

    def __init__(
        self,
        time_cost: int = 2,
        memory_cost: int = 19456,
        parallelism: int = 1,
        max_workers: int = 4,
    ) -> None:
        self._argon2 = Argon2Hasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=_HASH_LEN,
            salt_len=_SALT_LEN,
            type=Type.ID,
        )
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="argon2")
        self.placeholder_hash: str = self._argon2.hash(secrets.token_urlsafe(32))

    @classmethod
    def from_settings(cls, settings: Settings) -> PasswordHasher:
        return cls(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
            max_workers=settings.hashing_workers,
        )

    # ------------------------------------------------------------------
    # Blocking API -- call from worker threads or scripts only
    # ------------------------------------------------------------------

    def hash(self, raw_password: SecretStr) -> str:
        """Return a PHC-encoded Argon2id hash with a fresh random salt."""
        try:
            return self._argon2.hash(raw_password.get_secret_value())
        except Argon2HashingError as exc:
            raise HashingError(str(exc)) from exc

    def verify(self, raw_password: SecretStr, hash_string: str) -> None:
        """Recompute with the parameters embedded in hash_string; constant-time compare.

        Raises PasswordInvalid on any failure.
        """
        try:
            self._argon2.verify(hash_string, raw_password.get_secret_value())
        except VerifyMismatchError:
            logger.debug("Password verification failed: mismatch")
            raise PasswordInvalid() from None
        except InvalidHashError:
            logger.error("Password verification failed: stored hash is not a valid Argon2 hash")
            raise PasswordInvalid() from None
        except VerificationError as exc:
            logger.error("Password verification failed: %s", exc)
            raise PasswordInvalid() from None

    # ------------------------------------------------------------------
    # Async API -- safe to await from request handlers
    # ------------------------------------------------------------------

    async def hash_async(self, raw_password: SecretStr) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(self.hash, raw_password))

    async def verify_async(self, raw_password: SecretStr, hash_string: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, partial(self.verify, raw_password, hash_string))

    def close(self) -> None:
        self._executor.shutdown(wait=False)
