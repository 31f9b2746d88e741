"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for TaskVault happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. store_url -> STORE_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. Dev mode (DEBUG=true) generates a SECRET_KEY with a warning,
      production mode refuses to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies
  on key entropy -- a short key makes forged tokens practical.

  BCRYPT_ROUNDS below 10 is rejected. The cost factor is what makes offline
  guessing of stolen hashes expensive.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, store/, or tasks/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("taskvault.config")

_MIN_BCRYPT_ROUNDS = 10


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
    )

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"  # noqa: S104 # nosec B104 -- container default
    port: int = 3000
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Comma-separated list of allowed browser origins. "*" allows any.
    cors_origin: str = "*"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    token_expire_seconds: int = 3600
    bcrypt_rounds: int = _MIN_BCRYPT_ROUNDS

    # ------------------------------------------------------------------
    # Record store
    # ------------------------------------------------------------------

    store_url: str = "http://localhost:3001"
    store_timeout_seconds: float = 5.0

    # ------------------------------------------------------------------
    # Rate limiting (slowapi limit strings)
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    api_rate_limit: str = "100/15minutes"
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        if value < _MIN_BCRYPT_ROUNDS:
            raise ValueError(f"BCRYPT_ROUNDS must be at least {_MIN_BCRYPT_ROUNDS}.")
        return value

    @field_validator("store_url")
    @classmethod
    def strip_store_url(cls, value: str) -> str:
        """Drop the trailing slash so resource paths join cleanly."""
        return value.rstrip("/")

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @property
    def cors_origins(self) -> list[str]:
        """CORS_ORIGIN split into a list for CORSMiddleware."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
