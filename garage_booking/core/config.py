# garage_booking/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).resolve().parents[2] / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    """Runtime configuration for the garage booking backend."""

    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development", description="Deployment environment name"
    )
    database_url: str = Field(
        default="sqlite:///./garage_booking.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    log_level: str = Field(default="INFO", description="Root log level")

    # Slot allocation locking
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for cross-process slot locks; process-local locks when unset",
    )
    slot_lock_ttl_seconds: int = Field(
        default=90, ge=1, description="Expiry of a held slot lock in seconds"
    )
    slot_lock_wait_seconds: float = Field(
        default=5.0, ge=0, description="How long a writer waits for a busy slot lock"
    )
    slot_lock_poll_interval: float = Field(
        default=0.05, gt=0, description="Polling interval while waiting for a slot lock"
    )

    # Notifications
    notification_missing_template_fatal: bool = Field(
        default=False,
        description="Abort the booking operation when a notification template is missing",
    )

    # API behaviour
    strict_schemas: bool = Field(
        default=False, description="Serve error responses as application/problem+json"
    )
    default_per_page: int = Field(default=20, ge=1, le=100)
    max_per_page: int = Field(default=100, ge=1, le=500)
    trust_gateway_headers: bool = Field(
        default=True,
        description="Build the request context from headers set by the auth gateway",
    )

    model_config = SettingsConfigDict(
        env_prefix="GARAGE_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator("redis_url")
    @classmethod
    def _blank_redis_url_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        cleaned = v.strip()
        return cleaned or None

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_database_url(self) -> str:
        """Return the database URL, forcing the in-memory engine under pytest."""
        if is_running_tests() and self.environment == "test":
            return "sqlite+pysqlite:///:memory:"
        return self.database_url


settings = Settings()
