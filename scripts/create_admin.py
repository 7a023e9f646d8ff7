#!/usr/bin/env python3
"""
scripts/create_admin.py -- Provision an admin principal out-of-band.

The engine never creates principals; this is the only writer of the users
table. Prompts for a username and password, hashes the password with the
configured Argon2id parameters and inserts the row.

    DATABASE_URL=sqlite+aiosqlite:///./mailomat.db python scripts/create_admin.py
"""

from __future__ import annotations

import asyncio
import logging
from getpass import getpass

from pydantic import SecretStr
from sqlalchemy.exc import IntegrityError

from auth.credentials import check_bounds
from auth.errors import CredentialsError
from auth.passwords import PasswordHasher
from auth.store import UserStore, create_schema
from core.config import get_settings
from core.database import create_engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("mailomat.scripts")


async def provision(username: str, password: SecretStr) -> None:
    settings = get_settings()
    engine = create_engine(settings)
    hasher = PasswordHasher.from_settings(settings)
    try:
        await create_schema(engine)
        password_hash = await hasher.hash_async(password)
        user_id = await UserStore(engine).create_principal(username, password_hash)
    finally:
        hasher.close()
        await engine.dispose()

    print(f"user_id:       {user_id}")
    print(f"username:      {username}")
    print(f"password_hash: {password_hash}")


def main() -> None:
    username = input("Username: ").strip()
    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if not username:
        raise SystemExit("Username must not be empty")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")
    try:
        check_bounds(username, pw1)
    except CredentialsError as exc:
        raise SystemExit(str(exc)) from None

    try:
        asyncio.run(provision(username, SecretStr(pw1)))
    except IntegrityError:
        raise SystemExit(f"User {username!r} already exists") from None
    logger.info("Admin principal %r created", username)


if __name__ == "__main__":
    main()
