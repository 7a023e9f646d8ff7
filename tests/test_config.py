"""
tests/test_config.py -- Tests for core/config.py and core/database.py engine setup.
"""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError
from sqlalchemy import text

from core.config import Settings, get_settings
from core.database import connect, create_engine, from_iso, to_iso, utc_now


class TestSettings:
    def test_defaults_are_production_safe(self) -> None:
        s = Settings(debug=False)
        assert s.argon2_memory_cost == 19456
        assert s.argon2_time_cost == 2
        assert s.argon2_parallelism == 1
        assert s.db_pool_size == 10
        assert s.db_pool_timeout == 5.0

    def test_weak_argon2_rejected_in_production(self) -> None:
        with pytest.raises(ValidationError, match="too weak"):
            Settings(debug=False, argon2_memory_cost=1024)

    def test_weak_argon2_allowed_in_debug(self) -> None:
        s = Settings(debug=True, argon2_memory_cost=1024, argon2_time_cost=1)
        assert s.argon2_memory_cost == 1024

    @pytest.mark.parametrize(
        "field",
        ["argon2_parallelism", "hashing_workers", "db_pool_size", "db_pool_timeout", "session_idle_timeout_seconds"],
    )
    def test_non_positive_values_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            Settings(debug=True, **{field: 0})

    def test_base_url_trailing_slash_stripped(self) -> None:
        assert Settings(base_url="https://news.example.com/").base_url == "https://news.example.com"

    def test_env_vars_are_read(self, monkeypatch) -> None:
        monkeypatch.setenv("SESSION_COOKIE_NAME", "custom_cookie")
        monkeypatch.setenv("DB_POOL_SIZE", "3")
        s = Settings()
        assert s.session_cookie_name == "custom_cookie"
        assert s.db_pool_size == 3

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestEngine:
    @pytest.mark.asyncio
    async def test_sqlite_pragmas_applied(self, settings) -> None:
        engine = create_engine(settings)
        try:
            async with engine.connect() as conn:
                journal = (await conn.execute(text("PRAGMA journal_mode"))).scalar()
                foreign_keys = (await conn.execute(text("PRAGMA foreign_keys"))).scalar()
        finally:
            await engine.dispose()
        assert journal.lower() == "wal"
        assert foreign_keys == 1

    @pytest.mark.asyncio
    async def test_in_memory_engine_uses_static_pool(self) -> None:
        engine = create_engine(Settings(debug=True, database_url="sqlite+aiosqlite:///:memory:"))
        try:
            assert type(engine.pool).__name__ == "StaticPool"
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_in_memory_checkouts_are_exclusive(self) -> None:
        engine = create_engine(Settings(debug=True, database_url="sqlite+aiosqlite:///:memory:"))
        acquired = asyncio.Event()

        async def second_checkout() -> None:
            async with connect(engine):
                acquired.set()

        try:
            async with connect(engine):
                task = asyncio.create_task(second_checkout())
                await asyncio.sleep(0.05)
                assert not acquired.is_set()
            await asyncio.wait_for(task, timeout=2)
            assert acquired.is_set()
        finally:
            await engine.dispose()


class TestTimestamps:
    def test_iso_round_trip_is_utc(self) -> None:
        now = utc_now()
        assert from_iso(to_iso(now)) == now

    def test_naive_timestamps_read_as_utc(self) -> None:
        assert from_iso("2026-01-01T00:00:00").utcoffset().total_seconds() == 0

    def test_iso_strings_sort_chronologically(self) -> None:
        a = utc_now().replace(microsecond=0)
        b = a.replace(microsecond=1)
        assert to_iso(a) < to_iso(b)
