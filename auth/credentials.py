"""
auth/credentials.py -- Turn transport-level credentials into a Credentials value.

Two entry shapes funnel into the same type and the same length bounds:

  Basic auth (newsletter publishing API):
      Authorization: Basic base64(username ":" password)
      Every way the header can be wrong is its own error class, so the HTTP
      layer can decide between a 401 challenge (missing header, other scheme)
      and a 400 (garbled header).

  Form login (admin login page):
      Fields arrive already decoded; only the bounds apply.

The bound check is public, input-shape validation: it may answer faster than
the hashing path because it says nothing about which users exist.

Parsing is cheap and pure, so it runs inline on the event loop.

Layer rule: no imports from api/, subscriptions/, or newsletter/.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping

from pydantic import SecretStr

from auth.errors import (
    InvalidBase64,
    InvalidHeaderEncoding,
    MissingAuthHeader,
    MissingColon,
    PasswordTooLong,
    UsernameTooLong,
    WrongAuthScheme,
)
from auth.models import Credentials
from core.text import MAX_GRAPHEMES, exceeds_limit

_BASIC_PREFIX = "Basic "


def check_bounds(username: str, password: str) -> None:
    """Reject usernames or passwords longer than MAX_GRAPHEMES grapheme clusters."""
    if exceeds_limit(username, MAX_GRAPHEMES):
        raise UsernameTooLong(MAX_GRAPHEMES)
    if exceeds_limit(password, MAX_GRAPHEMES):
        raise PasswordTooLong(MAX_GRAPHEMES)


def credentials_from_basic_auth(headers: Mapping[str, str]) -> Credentials:
    """Parse an RFC 7617 Basic Authorization header.

    headers may be any case-insensitive mapping (Starlette Headers) or a plain
    dict; for plain dicts both "Authorization" and "authorization" are tried.
    """
    header_val = headers.get("Authorization")
    if header_val is None:
        header_val = headers.get("authorization")
    if header_val is None:
        raise MissingAuthHeader()

    # Starlette decodes raw header bytes as latin-1. Anything outside ASCII
    # cannot be part of a valid base64 payload.
    if not header_val.isascii():
        raise InvalidHeaderEncoding("non-ASCII characters in header value")

    if not header_val.startswith(_BASIC_PREFIX):
        raise WrongAuthScheme("Basic")

    encoded = header_val[len(_BASIC_PREFIX) :].strip()
    try:
        decoded_bytes = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidBase64() from None

    try:
        decoded = decoded_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidHeaderEncoding(f"credentials are not valid UTF-8 ({exc.reason})") from None

    username, sep, password = decoded.partition(":")
    if not sep:
        raise MissingColon()

    check_bounds(username, password)
    return Credentials(username=username, password=SecretStr(password))


def credentials_from_form(username: str, password: str) -> Credentials:
    """Build Credentials from already-decoded login form fields."""
    check_bounds(username, password)
    return Credentials(username=username, password=SecretStr(password))
