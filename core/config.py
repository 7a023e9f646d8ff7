"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Mailomat happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_url -> DATABASE_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. Production mode refuses weak Argon2 parameters; dev mode
      (DEBUG=true) accepts them with a warning so tests can hash quickly.

Security notes:
  [A1] Argon2id minimums follow the OWASP baseline: 19 MiB memory, 2 passes,
       1 lane. Anything cheaper makes offline brute force of a leaked users
       table practical.

  [P1] The connection pool is bounded and has an acquisition timeout. An
       unbounded wait would turn pool exhaustion into hung requests.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
subscriptions/, or newsletter/.
"""

import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("mailomat.config")

_MIN_ARGON2_MEMORY_KIB = 19456
_MIN_ARGON2_TIME_COST = 2


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Public origin used to build confirmation links in emails.
    base_url: str = "http://127.0.0.1:8000"

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    database_url: str = "sqlite+aiosqlite:///./mailomat.db"
    db_pool_size: int = 10
    db_pool_timeout: float = 5.0  # seconds to wait for a pooled connection [P1]
    db_echo: bool = False

    # ------------------------------------------------------------------
    # Password hashing (Argon2id)
    # ------------------------------------------------------------------

    argon2_time_cost: int = 2
    argon2_memory_cost: int = 19456  # KiB
    argon2_parallelism: int = 1
    # Size of the dedicated thread pool that runs Argon2. Kept separate from
    # the event loop and from asyncio's default executor.
    hashing_workers: int = 4

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_cookie_name: str = "mailomat_session"
    session_idle_timeout_seconds: int = 3600
    secure_cookies: bool = False

    # ------------------------------------------------------------------
    # Email
    # ------------------------------------------------------------------

    email_sender: str = "newsletter@mailomat.local"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_security_parameters(self) -> "Settings":
        """Enforce hashing and pool policy [A1] [P1].

        Dev mode (DEBUG=true): weak Argon2 parameters are allowed with a
            warning. The test suite relies on this to keep hashing cheap.

        Production mode: weak Argon2 parameters are a hard startup failure.

        Both modes: the pool must hold at least one connection and the
            acquisition timeout must be positive, otherwise pool exhaustion
            either cannot happen gracefully or never times out.
        """
        weak = self.argon2_memory_cost < _MIN_ARGON2_MEMORY_KIB or self.argon2_time_cost < _MIN_ARGON2_TIME_COST
        if weak:
            if self.debug:
                logger.warning(
                    "WARNING: Argon2 parameters below the production minimum "
                    "(m=%d KiB, t=%d). Acceptable for local development only.",
                    self.argon2_memory_cost,
                    self.argon2_time_cost,
                )
            else:
                raise ValueError(
                    f"Argon2 parameters too weak for production: memory_cost must be >= "
                    f"{_MIN_ARGON2_MEMORY_KIB} KiB and time_cost >= {_MIN_ARGON2_TIME_COST}. "
                    "To run in development mode, set DEBUG=true."
                )
        if self.argon2_parallelism < 1:
            raise ValueError("ARGON2_PARALLELISM must be at least 1.")
        if self.hashing_workers < 1:
            raise ValueError("HASHING_WORKERS must be at least 1.")
        if self.db_pool_size < 1:
            raise ValueError("DB_POOL_SIZE must be at least 1.")
        if self.db_pool_timeout <= 0:
            raise ValueError("DB_POOL_TIMEOUT must be a positive number of seconds.")
        if self.session_idle_timeout_seconds < 1:
            raise ValueError("SESSION_IDLE_TIMEOUT_SECONDS must be at least 1.")
        self.base_url = self.base_url.rstrip("/")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
