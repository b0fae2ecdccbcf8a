"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Datify happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. token_expire_seconds -> TOKEN_EXPIRE_SECONDS). The signing secret
      also answers to DATIFY_SECRET, the name existing deployments use.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Dev mode generates a key with a warning,
      production mode refuses to start without one.

Security notes:
  A SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies
  on key entropy -- a short key weakens every token.

  In production mode (DEBUG not set or false), a missing secret is a hard
  startup failure. Tokens are never issued with an empty key.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from urllib.parse import quote, urlencode

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("datify.config")

_DEFAULT_SQLITE_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'datify.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = Field(default="", validation_alias=AliasChoices("DATIFY_SECRET", "SECRET_KEY", "secret_key"))

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = 7 * 24 * 3600
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit: str = "15/minute"
    rate_limit_storage_uri: str = "memory://"

    # ------------------------------------------------------------------
    # Database
    #
    # DATABASE_URL wins when set. Otherwise the PG* variables describe a
    # Postgres endpoint reached over TLS; with neither, a local SQLite file.
    # ------------------------------------------------------------------

    database_url: str = ""
    pghost: str = ""
    pgdatabase: str = ""
    pguser: str = ""
    pgpassword: str = ""
    endpoint_id: str = ""

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = 3000

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the signing-secret policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if the
            secret is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated DATIFY_SECRET. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "DATIFY_SECRET is required in production mode. "
                    "Set DATIFY_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("DATIFY_SECRET must be at least 32 characters.")
        return self

    def resolved_database_url(self) -> str:
        """Return the SQLAlchemy URL for the user store."""
        if self.database_url:
            return self.database_url
        if self.pghost:
            query = {"sslmode": "require"}
            if self.endpoint_id:
                query["options"] = f"project={self.endpoint_id}"
            return (
                f"postgresql+psycopg://{quote(self.pguser, safe='')}:{quote(self.pgpassword, safe='')}"
                f"@{self.pghost}:5432/{self.pgdatabase}?{urlencode(query)}"
            )
        return _DEFAULT_SQLITE_URL


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
