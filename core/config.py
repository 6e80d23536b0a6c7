"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the account service happen here. No module
should call os.getenv() or os.environ.get() directly -- entry points call
get_settings() and hand the resulting Settings to create_app().

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call. Only entry points (main.py) use it; the app factory and the rest of
      the code receive an explicit Settings value.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. user_token_secret -> USER_TOKEN_SECRET).

  @model_validator(mode="after"): Cross-field validation of the two token
      secrets once every field is resolved.

Security notes:
  Each token audience ("user", "admin") signs with its own secret. Identical
  secrets would let a leaked user-signing key forge admin tokens, so the
  validator refuses them.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or accounts/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("accounts.config")

_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file, provided DEBUG=true.
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
    log_level: str = "INFO"
    database_url: str = "sqlite:///./accounts.db"

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The validator either
    # generates a dev secret or raises, so callers never see "".
    user_token_secret: str = ""
    admin_token_secret: str = ""
    # 0 means tokens carry no exp claim.
    token_expire_seconds: int = Field(default=0, ge=0)
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True
    list_exposes_password_hash: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_token_secrets(self) -> "Settings":
        """Enforce the token secret policy.

        Dev mode (DEBUG=true): missing secrets are generated with a warning.
            Tokens will not survive a restart.

        Production mode: a missing secret is a startup failure.

        Both modes: secrets shorter than 32 characters, or the same secret
            used for both audiences, are rejected.
        """
        for field_name in ("user_token_secret", "admin_token_secret"):
            value = getattr(self, field_name)
            if not value:
                if not self.debug:
                    raise ValueError(
                        f"{field_name.upper()} is required in production mode. "
                        "Set it in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
                value = secrets.token_hex(32)
                setattr(self, field_name, value)
                logger.warning("Using auto-generated %s. Issued tokens will not survive a restart.", field_name.upper())
            if len(value) < _MIN_SECRET_LENGTH:
                raise ValueError(f"{field_name.upper()} must be at least {_MIN_SECRET_LENGTH} characters.")
        if self.user_token_secret == self.admin_token_secret:
            raise ValueError("USER_TOKEN_SECRET and ADMIN_TOKEN_SECRET must differ.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process Settings, built once from the environment.

    In tests: construct Settings(...) directly, or call
    get_settings.cache_clear() after changing environment variables.
    """
    return Settings()
