import os
import sys
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    For local development, load `.env` automatically so `SECRET_KEY` can be
    provided from `backend/.env`. **SECRET_KEY remains required** and must be
    set in production via environment variables.

    Do NOT auto-load `.env` when running under pytest or in CI.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'staging', 'test' or 'production'",
    )

    DATABASE_URL: str = "sqlite:///./data/forum.db"
    SECRET_KEY: str = Field(
        ...,  # Required, no default
        description="JWT secret key - must be set via SECRET_KEY environment variable",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # Seed admin account (used by init_db.py, skipped when unset)
    ADMIN_EMAIL: str | None = Field(
        default=None,
        description="Email of the admin account created by init_db.py",
    )
    ADMIN_PASSWORD: str | None = Field(
        default=None,
        description="Password of the admin account created by init_db.py",
    )

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(
        default=5,
        description="Number of persistent connections in pool",
    )
    DB_MAX_OVERFLOW: int = Field(
        default=10,
        description="Extra connections when pool exhausted",
    )
    DB_POOL_TIMEOUT: int = Field(
        default=30,
        description="Seconds to wait for connection from pool",
    )
    DB_POOL_RECYCLE: int = Field(
        default=1800,
        description="Recycle connections after N seconds (30 min default)",
    )

    # Safety: avoid creating DB schema automatically unless explicitly enabled.
    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="When true (development only), call Base.metadata.create_all on startup",
    )

    # Performance settings
    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # Pagination
    PAGINATION_DEFAULT_LIMIT: int = Field(
        default=20,
        description="Page size used when the client does not send one",
    )
    PAGINATION_MAX_LIMIT: int = Field(
        default=50,
        description="Larger page sizes are clamped to this value",
    )

    # Maintenance mode
    MAINTENANCE_CACHE_TTL_SECONDS: float = Field(
        default=10.0,
        description="How long the maintenance flag is cached between reads",
    )

    # Rate limits (slowapi syntax)
    RATE_LIMIT_LOGIN: str = Field(
        default="10/minute",
        description="Rate limit for login and registration per client IP",
    )
    RATE_LIMIT_REPORTS: str = Field(
        default="20/hour",
        description="Rate limit for report creation per client IP",
    )

    PROJECT_NAME: str = Field(
        default="Forum",
        description="Project name used in the API title",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars (e.g., SENTRY_DSN) without validation errors
    )


# Instantiating Settings() raises pydantic.ValidationError if SECRET_KEY isn't set.
settings = Settings()  # type: ignore[call-arg]