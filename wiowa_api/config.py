"""Application configuration management."""
from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from datetime import timedelta
from functools import lru_cache
from sqlalchemy.engine.url import make_url, URL
from typing import Optional
import logging

from wiowa_api.utils.durations import is_valid_duration, parse_duration

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./wiowa.db"
DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"

DEFAULT_ACCESS_TOKEN_LIFETIME = timedelta(minutes=15)
DEFAULT_REFRESH_TOKEN_LIFETIME = timedelta(days=7)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Application
    frontend_url: str = "http://localhost:4200"
    allowed_origins: str = ""  # Comma-separated; empty uses the development defaults
    environment: str = "development"

    # Tokens
    secret_key: str = DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    access_token_expiration: str = "15m"
    refresh_token_expiration: str = "7d"
    access_token_cookie_name: str = "wiowa_access_token"
    refresh_token_cookie_name: str = "wiowa_refresh_token"

    # Accounts
    bcrypt_rounds: int = 10
    password_min_length: int = 8
    email_verification_token_hours: int = 24
    password_reset_token_hours: int = 1
    require_verified_email: bool = True

    # Memory match storage
    redis_url: str = ""  # Empty keeps match data in memory
    match_history_limit: int = 50
    storage_version: str = "1.0"

    # Maintenance
    token_cleanup_enabled: bool = True
    token_cleanup_interval_minutes: int = 60
    revoked_token_retention_days: int = 30

    @field_validator("storage_version", mode="before")
    @classmethod
    def coerce_storage_version(cls, value):
        """Keep version tags as strings even when given as numbers."""
        if value is None:
            return "1.0"
        return str(value).strip()

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated origins from ``allowed_origins``."""
        return [item.strip() for item in self.allowed_origins.split(",") if item.strip()]

    @property
    def access_token_lifetime(self) -> timedelta:
        return parse_duration(self.access_token_expiration, DEFAULT_ACCESS_TOKEN_LIFETIME)

    @property
    def refresh_token_lifetime(self) -> timedelta:
        return parse_duration(self.refresh_token_expiration, DEFAULT_REFRESH_TOKEN_LIFETIME)

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate security configuration and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        # Security validation
        if self.environment == "production":
            if self.secret_key == DEFAULT_SECRET_KEY:
                raise ValueError("secret_key must be changed from default value in production")

        # Validate JWT algorithm
        if self.jwt_algorithm not in ["HS256", "HS384", "HS512"]:
            raise ValueError(f"Unsupported JWT algorithm: {self.jwt_algorithm}. Use HS256, HS384, or HS512.")

        # Malformed expirations are tolerated and fall back to the defaults
        for field_name in ("access_token_expiration", "refresh_token_expiration"):
            value = getattr(self, field_name)
            if not is_valid_duration(value):
                logger.warning(f"{field_name}={value!r} is not of the form <number><d|h|m>; using default")

        if self.bcrypt_rounds < 4 or self.bcrypt_rounds > 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")

        if self.password_min_length < 8:
            raise ValueError("password_min_length must be at least 8")

        if self.match_history_limit < 1:
            raise ValueError("match_history_limit must be at least 1")

        if self.token_cleanup_interval_minutes < 1:
            raise ValueError("token_cleanup_interval_minutes must be at least 1 minute")

        # Database URL normalization
        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        parsed: Optional[URL] = None
        try:
            parsed = make_url(url)
        except Exception as e:  # pragma: no cover
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            logger.warning("Invalid DATABASE_URL; falling back to default sqlite database.")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            old_drivername = drivername
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {old_drivername} -> {parsed.drivername}")

        # Use render_as_string to properly re-encode special characters in password
        self.database_url = parsed.render_as_string(hide_password=False)
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
