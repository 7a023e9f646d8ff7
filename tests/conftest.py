"""
tests/conftest.py -- Shared test fixtures for Mailomat.

This module provides:
  - make_settings(): Settings pointed at a file-backed SQLite DB in tmp_path,
    with cheap Argon2 parameters (allowed because DEBUG=true)
  - service: a MailingListService with schema created and an OutboxEmailClient
  - admin: a provisioned principal (username, password, user_id)
  - make_app(): a FastAPI app whose patched lifespan builds the service inside
    TestClient's own event loop

Design: file-backed SQLite (not :memory:) so the pool hands out real separate
connections -- concurrency and pool-exhaustion tests need that. aiosqlite
connections are tied to the loop that opened them, which is why TestClient
apps build their service in the lifespan rather than reusing the async
fixtures above.

The DEBUG env var must be set before any core import so weak test Argon2
parameters are accepted with a warning instead of raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

# CRITICAL: Set DEBUG before any core import.
os.environ.setdefault("DEBUG", "true")

import pytest
import pytest_asyncio
from fastapi import FastAPI
from pydantic import SecretStr

from api.errors import register_error_handlers
from core.config import Settings
from core.email import OutboxEmailClient
from service import MailingListService

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct horse battery staple"


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "debug": True,
        "base_url": "http://testserver/",
        "database_url": f"sqlite+aiosqlite:///{tmp_path}/test.db",
        "db_pool_size": 5,
        "db_pool_timeout": 5.0,
        "argon2_time_cost": 1,
        "argon2_memory_cost": 1024,
        "argon2_parallelism": 1,
        "hashing_workers": 2,
    }
    values.update(overrides)
    return Settings(**values)


@dataclass(frozen=True)
class Admin:
    username: str
    password: str
    user_id: UUID


# ---------------------------------------------------------------------------
# Async fixtures -- engine and service live on the test's event loop
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def outbox(settings: Settings) -> OutboxEmailClient:
    return OutboxEmailClient(sender=settings.email_sender)


@pytest_asyncio.fixture
async def service(settings: Settings, outbox: OutboxEmailClient) -> AsyncIterator[MailingListService]:
    svc = MailingListService.create(settings, outbox)
    await svc.create_schema()
    yield svc
    await svc.close()


@pytest_asyncio.fixture
async def admin(service: MailingListService) -> Admin:
    password_hash = await service.hasher.hash_async(SecretStr(ADMIN_PASSWORD))
    user_id = await service.users.create_principal(ADMIN_USERNAME, password_hash)
    return Admin(ADMIN_USERNAME, ADMIN_PASSWORD, user_id)


# ---------------------------------------------------------------------------
# FastAPI app helpers -- for dependency and error-handler tests
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, outbox: OutboxEmailClient):
    """Return a lifespan that builds the service and seeds the admin principal.

    Runs inside TestClient's event loop, so the engine's connections belong
    to the loop that serves the requests.
    """

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        svc = MailingListService.create(settings, outbox)
        await svc.create_schema()
        password_hash = await svc.hasher.hash_async(SecretStr(ADMIN_PASSWORD))
        await svc.users.create_principal(ADMIN_USERNAME, password_hash)
        app.state.settings = settings
        app.state.sessions = svc.sessions
        app.state.mailing_list = svc
        yield
        await svc.close()

    return test_lifespan


def make_app(settings: Settings, outbox: OutboxEmailClient) -> FastAPI:
    app = FastAPI(lifespan=_patch_lifespan(settings, outbox))
    register_error_handlers(app)
    return app


@pytest.fixture
def app(settings: Settings, outbox: OutboxEmailClient) -> FastAPI:
    """A bare app with error handlers; tests mount their own throwaway routes."""
    return make_app(settings, outbox)


@pytest.fixture
def admin_credentials() -> tuple[str, str]:
    return ADMIN_USERNAME, ADMIN_PASSWORD
