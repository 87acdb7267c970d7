import os
import sys
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Decide whether `backend/.env` is read.

    Local development reads it for convenience. Under pytest or CI the file
    is ignored so tests see only the variables they set.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    ENVIRONMENT: str = Field(
        default="development",
        description="'development' (console logs, open CORS), 'staging' or 'production'",
    )
    PROJECT_NAME: str = Field(
        default="DiscussBoard Moderation",
        description="Project name used for the API title and logs",
    )

    DATABASE_URL: str = "sqlite:///./data/moderation.db"

    # Tokens are issued by the identity service; this backend only verifies them
    SECRET_KEY: str = Field(
        ...,
        description="JWT secret key shared with the identity service",
    )
    ALGORITHM: str = "HS256"
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Moderation dashboard origins, comma-separated in the env var",
    )

    # Store timeouts: exceeding any of these surfaces as a 503, never a hang
    DB_POOL_SIZE: int = Field(default=5, description="Persistent pool connections")
    DB_MAX_OVERFLOW: int = Field(
        default=10, description="Connections allowed beyond DB_POOL_SIZE"
    )
    DB_POOL_TIMEOUT: int = Field(
        default=30, description="Seconds to wait for a pooled connection"
    )
    DB_POOL_RECYCLE: int = Field(
        default=1800, description="Seconds before a pooled connection is replaced"
    )
    DB_STATEMENT_TIMEOUT_MS: int = Field(
        default=5000,
        description="Statement timeout on PostgreSQL, busy timeout on SQLite (ms)",
    )

    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="Create tables with create_all on startup (development only)",
    )

    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Requests slower than this many seconds are logged as warnings",
    )
    TRANSIENT_RETRY_AFTER_SECONDS: int = Field(
        default=2,
        description="Retry-After hint returned with 503 responses",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Accept a comma-separated string from the environment."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        # SENTRY_DSN and friends are read directly from the environment
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
