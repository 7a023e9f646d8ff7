"""
subscriptions/tokens.py -- Opaque confirmation tokens.

A token is 64 bytes from the OS CSPRNG, base64url-encoded without padding:
always 86 characters. parse() is the gate for anything coming back from a
client -- only strings that generate() could have produced get through, so
the store is never queried with junk.

Canonical form: 86 base64url characters carry 516 bits, 4 more than 64 bytes
need. Strings whose last character sets those spare bits decode to the same
bytes as a canonical token; parse() rejects them by re-encoding and comparing.

Layer rule: no imports from api/, auth/, or newsletter/.
"""

from __future__ import annotations

import base64
import binascii
import re
import secrets
from dataclasses import dataclass

from subscriptions.errors import InvalidSubscriptionToken

TOKEN_BYTES = 64
TOKEN_LENGTH = 86

_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]{86}")


def _b64u_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@dataclass(frozen=True)
class SubscriptionToken:
    value: str

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> SubscriptionToken:
        return cls.from_bytes(secrets.token_bytes(TOKEN_BYTES))

    @classmethod
    def from_bytes(cls, raw: bytes) -> SubscriptionToken:
        if len(raw) != TOKEN_BYTES:
            raise ValueError(f"subscription token needs exactly {TOKEN_BYTES} bytes, got {len(raw)}")
        return cls(_b64u_encode(raw))

    @classmethod
    def parse(cls, candidate: str) -> SubscriptionToken:
        """Accept only canonical 86-char base64url strings; else InvalidSubscriptionToken."""
        if not isinstance(candidate, str) or _TOKEN_RE.fullmatch(candidate) is None:
            raise InvalidSubscriptionToken()
        try:
            raw = base64.urlsafe_b64decode(candidate + "==")
        except (binascii.Error, ValueError):
            raise InvalidSubscriptionToken() from None
        if len(raw) != TOKEN_BYTES or _b64u_encode(raw) != candidate:
            raise InvalidSubscriptionToken()
        return cls(candidate)
