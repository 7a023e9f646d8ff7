"""
tests/test_credentials.py -- Unit tests for auth/credentials.py and core/text.py.

Every malformed Basic header maps to its own error class; the HTTP layer's
status code depends on which one is raised, so each is pinned here.
"""

from __future__ import annotations

import base64

import pytest

from auth.credentials import check_bounds, credentials_from_basic_auth, credentials_from_form
from auth.errors import (
    InvalidBase64,
    InvalidHeaderEncoding,
    MissingAuthHeader,
    MissingColon,
    PasswordTooLong,
    UsernameTooLong,
    WrongAuthScheme,
)
from core.text import MAX_GRAPHEMES, exceeds_limit, grapheme_count


def _basic(payload: bytes) -> dict[str, str]:
    return {"Authorization": "Basic " + base64.b64encode(payload).decode("ascii")}


class TestBasicAuthHappyPath:
    def test_username_and_password_extracted(self) -> None:
        creds = credentials_from_basic_auth(_basic(b"alice:wonderland"))
        assert creds.username == "alice"
        assert creds.password.get_secret_value() == "wonderland"

    def test_split_on_first_colon_only(self) -> None:
        creds = credentials_from_basic_auth(_basic(b"alice:pa:ss:word"))
        assert creds.username == "alice"
        assert creds.password.get_secret_value() == "pa:ss:word"

    def test_empty_password_allowed(self) -> None:
        creds = credentials_from_basic_auth(_basic(b"alice:"))
        assert creds.password.get_secret_value() == ""

    def test_utf8_credentials(self) -> None:
        creds = credentials_from_basic_auth(_basic("josé:päss".encode()))
        assert creds.username == "josé"

    def test_lowercase_header_key(self) -> None:
        header = _basic(b"alice:wonderland")["Authorization"]
        creds = credentials_from_basic_auth({"authorization": header})
        assert creds.username == "alice"

    def test_password_hidden_in_repr(self) -> None:
        creds = credentials_from_basic_auth(_basic(b"alice:wonderland"))
        assert "wonderland" not in repr(creds)


class TestBasicAuthErrors:
    def test_missing_header(self) -> None:
        with pytest.raises(MissingAuthHeader):
            credentials_from_basic_auth({})

    def test_bearer_scheme_rejected(self) -> None:
        with pytest.raises(WrongAuthScheme):
            credentials_from_basic_auth({"Authorization": "Bearer abc.def.ghi"})

    def test_non_ascii_header_value(self) -> None:
        with pytest.raises(InvalidHeaderEncoding):
            credentials_from_basic_auth({"Authorization": "Basic ééé"})

    def test_invalid_base64(self) -> None:
        with pytest.raises(InvalidBase64):
            credentials_from_basic_auth({"Authorization": "Basic !!!not-base64!!!"})

    def test_payload_not_utf8(self) -> None:
        with pytest.raises(InvalidHeaderEncoding):
            credentials_from_basic_auth(_basic(b"\xff\xfe:\xfd"))

    def test_missing_colon(self) -> None:
        with pytest.raises(MissingColon):
            credentials_from_basic_auth(_basic(b"alicewonderland"))

    def test_username_too_long(self) -> None:
        with pytest.raises(UsernameTooLong):
            credentials_from_basic_auth(_basic(b"a" * 257 + b":pw"))

    def test_password_too_long(self) -> None:
        with pytest.raises(PasswordTooLong):
            credentials_from_basic_auth(_basic(b"alice:" + b"p" * 257))


class TestFormCredentials:
    def test_form_fields_pass_through(self) -> None:
        creds = credentials_from_form("alice", "wonderland")
        assert creds.username == "alice"
        assert creds.password.get_secret_value() == "wonderland"

    def test_form_bounds_apply(self) -> None:
        with pytest.raises(PasswordTooLong):
            credentials_from_form("alice", "p" * 300)


class TestGraphemeBounds:
    def test_exactly_limit_is_allowed(self) -> None:
        check_bounds("a" * MAX_GRAPHEMES, "p" * MAX_GRAPHEMES)

    def test_combining_sequences_count_once(self) -> None:
        # e + combining diaeresis: two code points, one grapheme
        value = "e\u0308" * MAX_GRAPHEMES
        assert len(value) == 2 * MAX_GRAPHEMES
        assert grapheme_count(value) == MAX_GRAPHEMES
        assert not exceeds_limit(value)
        check_bounds(value, "pw")

    def test_emoji_family_is_one_grapheme(self) -> None:
        family = "\U0001f468\u200d\U0001f469\u200d\U0001f467"
        assert grapheme_count(family) == 1

    def test_one_over_limit(self) -> None:
        assert exceeds_limit("x" * (MAX_GRAPHEMES + 1))
