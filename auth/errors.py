"""
auth/errors.py -- Error kinds raised by the authentication layer.

Three families:
  CredentialsError -- the request did not carry well-formed credentials.
      Deterministic, safe to echo back to the client.
  AuthFailure      -- credentials were well-formed but did not authenticate.
      Subclasses exist for logging only; clients always see one message.
  Unauthorized     -- no valid session is attached to the request.

api/errors.py maps every concrete class here to a client-visible kind.

Layer rule: no imports from api/, subscriptions/, or newsletter/.
"""

from __future__ import annotations

from core.errors import MailomatError


class AuthError(MailomatError):
    """Base class for authentication and authorization errors."""


# ---------------------------------------------------------------------------
# Malformed credentials
# ---------------------------------------------------------------------------


class CredentialsError(AuthError):
    """Base class for credential extraction failures."""


class MissingAuthHeader(CredentialsError):
    def __init__(self) -> None:
        super().__init__("header 'Authorization' is missing from the request")


class InvalidHeaderEncoding(CredentialsError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"invalid encoding in 'Authorization' header: {detail}")


class WrongAuthScheme(CredentialsError):
    def __init__(self, expected: str = "Basic") -> None:
        self.expected = expected
        super().__init__(f"received the wrong authentication scheme, expected: {expected}")


class InvalidBase64(CredentialsError):
    def __init__(self) -> None:
        super().__init__("'Authorization' header credentials are not valid base64")


class MissingColon(CredentialsError):
    def __init__(self) -> None:
        super().__init__("missing colon in 'Authorization' header, can't split username and password")


class UsernameTooLong(CredentialsError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"username longer than {limit} characters")


class PasswordTooLong(CredentialsError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"password longer than {limit} characters")


# ---------------------------------------------------------------------------
# Authentication failures
# ---------------------------------------------------------------------------


class AuthFailure(AuthError):
    """Well-formed credentials that did not authenticate."""


class UsernameNotFound(AuthFailure):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"the user wasn't found: {username}")


class PasswordInvalid(AuthFailure):
    """Wrong password, or a stored hash that could not be parsed.

    The two causes are deliberately the same kind; only the log line written
    by PasswordHasher.verify() tells them apart.
    """

    def __init__(self) -> None:
        super().__init__("invalid password")


class HashingError(AuthError):
    """Argon2 failed to produce a hash (resource exhaustion, bad parameters)."""


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class Unauthorized(AuthError):
    """No valid session: missing cookie, unknown id, or idle-expired."""

    def __init__(self, reason: str = "no valid session") -> None:
        super().__init__(reason)
