"""
core/config.py -- Environment-driven settings for the listing service.

get_settings() builds one Settings instance from the environment (and an
optional .env file) and caches it; nothing else reads os.environ.

JWT_SECRET must be at least 32 characters. With DEBUG on and no secret set, a
throwaway secret is generated and a warning logged, so sessions do not survive
a restart. ADMIN_SETUP_TOKEN and CRON_SCRAPE_TOKEN are optional; left blank
they count as unset and the setup and cron routes refuse to authorize with them.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("jobboard.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'jobboard.db'}"


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
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    port: int = Field(default=4000, gt=0)
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev secret or raises, so callers never see "".
    jwt_secret: str = ""
    # Seven days. Cookie max_age and JWT exp are both derived from this.
    token_expire_seconds: int = Field(default=7 * 24 * 3600, gt=0)
    # None means "derive from DEBUG": secure everywhere except local dev.
    secure_cookies: Optional[bool] = None
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Shared secrets (optional)
    # ------------------------------------------------------------------

    admin_setup_token: Optional[str] = None
    cron_scrape_token: Optional[str] = None
    cron_user_agent: str = "vercel-cron/1.0"

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    slug_max_attempts: int = Field(default=1000, ge=1)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = ["http://localhost:3000"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("admin_setup_token", "cron_scrape_token", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("admin_setup_token")
    @classmethod
    def validate_setup_token(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) < 24:
            raise ValueError("ADMIN_SETUP_TOKEN must be at least 24 characters.")
        return value

    @field_validator("cron_scrape_token")
    @classmethod
    def validate_cron_token(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) < 16:
            raise ValueError("CRON_SCRAPE_TOKEN must be at least 16 characters.")
        return value

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Apply the JWT_SECRET rules above and default SECURE_COOKIES to not DEBUG."""
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated JWT_SECRET. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        if self.secure_cookies is None:
            self.secure_cookies = not self.debug
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
