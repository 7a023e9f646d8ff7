"""
tests/test_tokens.py -- Unit tests for subscriptions/tokens.py.
"""

from __future__ import annotations

import base64

import pytest

from subscriptions.errors import InvalidSubscriptionToken
from subscriptions.tokens import TOKEN_LENGTH, SubscriptionToken


class TestGenerate:
    def test_generated_tokens_are_86_chars(self) -> None:
        for _ in range(100):
            assert len(SubscriptionToken.generate().value) == TOKEN_LENGTH == 86

    def test_generated_tokens_are_url_safe_without_padding(self) -> None:
        token = SubscriptionToken.generate().value
        assert "=" not in token and "+" not in token and "/" not in token

    def test_generated_tokens_parse(self) -> None:
        for _ in range(100):
            token = SubscriptionToken.generate()
            assert SubscriptionToken.parse(token.value) == token

    def test_generated_tokens_differ(self) -> None:
        assert len({SubscriptionToken.generate().value for _ in range(200)}) == 200


class TestFromBytes:
    def test_all_zero_bytes(self) -> None:
        assert SubscriptionToken.from_bytes(bytes(64)).value == "A" * 86

    def test_matches_base64url(self) -> None:
        raw = bytes(range(64))
        expected = base64.urlsafe_b64encode(raw).decode().rstrip("=")
        assert SubscriptionToken.from_bytes(raw).value == expected

    @pytest.mark.parametrize("size", [0, 63, 65])
    def test_wrong_length_rejected(self, size: int) -> None:
        with pytest.raises(ValueError):
            SubscriptionToken.from_bytes(bytes(size))


class TestParse:
    @pytest.mark.parametrize(
        "candidate",
        [
            "",
            "A" * 85,
            "A" * 87,
            "A" * 84 + "==",  # padding is not part of the alphabet
            "A" * 85 + "+",  # standard base64, not base64url
            "A" * 85 + "/",
            "A" * 85 + "é",
            " " + "A" * 85,
        ],
    )
    def test_malformed_rejected(self, candidate: str) -> None:
        with pytest.raises(InvalidSubscriptionToken):
            SubscriptionToken.parse(candidate)

    @pytest.mark.parametrize("size, encoded_length", [(63, 84), (65, 87)])
    def test_encoded_wrong_byte_length_rejected(self, size: int, encoded_length: int) -> None:
        candidate = base64.urlsafe_b64encode(bytes(range(size))).decode("ascii").rstrip("=")
        assert len(candidate) == encoded_length
        with pytest.raises(InvalidSubscriptionToken):
            SubscriptionToken.parse(candidate)

    def test_non_canonical_trailing_bits_rejected(self) -> None:
        # "B" sets one of the 4 spare low bits of the last sextet.
        with pytest.raises(InvalidSubscriptionToken):
            SubscriptionToken.parse("A" * 85 + "B")

    def test_canonical_last_char_accepted(self) -> None:
        # "Q" == 16: only the high 2 bits of the sextet are set.
        assert SubscriptionToken.parse("A" * 85 + "Q").value == "A" * 85 + "Q"

    def test_error_does_not_echo_candidate(self) -> None:
        with pytest.raises(InvalidSubscriptionToken) as exc_info:
            SubscriptionToken.parse("secret-looking-value")
        assert "secret-looking-value" not in str(exc_info.value)
