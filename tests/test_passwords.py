"""
tests/test_passwords.py -- Unit tests for auth/passwords.py.

Coverage:
  - hash() produces a PHC Argon2id string with the configured parameters
  - verify() accepts the right password and rejects the wrong one
  - malformed stored hashes raise the same PasswordInvalid kind
  - placeholder_hash is a real, verifiable Argon2id hash
  - async variants run off the event loop on the dedicated pool
"""

from __future__ import annotations

import threading

import pytest
from pydantic import SecretStr

from auth.errors import PasswordInvalid
from auth.passwords import PasswordHasher


@pytest.fixture
def hasher():
    h = PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1, max_workers=2)
    yield h
    h.close()


class TestHashing:
    def test_hash_is_argon2id_phc_string(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash(SecretStr("s3cret"))
        assert hashed.startswith("$argon2id$v=19$m=1024,t=1,p=1$")

    def test_same_password_hashes_differently(self, hasher: PasswordHasher) -> None:
        """Fresh random salt per call."""
        assert hasher.hash(SecretStr("s3cret")) != hasher.hash(SecretStr("s3cret"))

    def test_default_parameters_are_owasp_baseline(self) -> None:
        h = PasswordHasher()
        try:
            assert "$m=19456,t=2,p=1$" in h.placeholder_hash
        finally:
            h.close()


class TestVerify:
    def test_correct_password_verifies(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash(SecretStr("s3cret"))
        hasher.verify(SecretStr("s3cret"), hashed)  # no exception

    def test_wrong_password_raises_password_invalid(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash(SecretStr("s3cret"))
        with pytest.raises(PasswordInvalid):
            hasher.verify(SecretStr("wrong"), hashed)

    @pytest.mark.parametrize("stored", ["", "not-a-hash", "$argon2id$v=19$m=1024,t=1,p=1$garbage"])
    def test_malformed_hash_raises_same_kind(self, hasher: PasswordHasher, stored: str) -> None:
        with pytest.raises(PasswordInvalid):
            hasher.verify(SecretStr("s3cret"), stored)

    def test_hash_with_other_parameters_still_verifies(self, hasher: PasswordHasher) -> None:
        """Parameters travel inside the PHC string."""
        other = PasswordHasher(time_cost=2, memory_cost=2048, parallelism=1, max_workers=1)
        try:
            hashed = other.hash(SecretStr("s3cret"))
        finally:
            other.close()
        hasher.verify(SecretStr("s3cret"), hashed)


class TestPlaceholder:
    def test_placeholder_is_valid_argon2id(self, hasher: PasswordHasher) -> None:
        assert hasher.placeholder_hash.startswith("$argon2id$v=19$m=1024,t=1,p=1$")

    def test_placeholder_rejects_guesses(self, hasher: PasswordHasher) -> None:
        for guess in ("", "password", "admin"):
            with pytest.raises(PasswordInvalid):
                hasher.verify(SecretStr(guess), hasher.placeholder_hash)

    def test_each_hasher_gets_its_own_placeholder(self, hasher: PasswordHasher) -> None:
        other = PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1, max_workers=1)
        try:
            assert other.placeholder_hash != hasher.placeholder_hash
        finally:
            other.close()


class TestAsync:
    @pytest.mark.asyncio
    async def test_hash_and_verify_async_round_trip(self, hasher: PasswordHasher) -> None:
        hashed = await hasher.hash_async(SecretStr("s3cret"))
        await hasher.verify_async(SecretStr("s3cret"), hashed)
        with pytest.raises(PasswordInvalid):
            await hasher.verify_async(SecretStr("nope"), hashed)

    @pytest.mark.asyncio
    async def test_work_runs_on_argon2_threads(self, hasher: PasswordHasher, monkeypatch) -> None:
        seen: list[str] = []
        original = hasher.hash

        def spy(raw: SecretStr) -> str:
            seen.append(threading.current_thread().name)
            return original(raw)

        monkeypatch.setattr(hasher, "hash", spy)
        await hasher.hash_async(SecretStr("s3cret"))
        assert seen and seen[0].startswith("argon2")
