# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import DEFAULT_SLOT_DURATION, MAX_SLOT_DURATION, MIN_SLOT_DURATION

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path} (exists={env_path.exists()})")
    load_dotenv(env_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["local", "development", "staging", "production", "test"] = Field(
        default="local", description="Deployment environment name"
    )

    database_url: str = Field(
        default="sqlite:///./scheduling.db",
        description="SQLAlchemy URL of the scheduling database",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    clinic_timezone: str = Field(
        default="America/Bogota",
        description="IANA timezone in which 'now' and 'today' are evaluated",
    )

    default_slot_duration_minutes: int = Field(default=DEFAULT_SLOT_DURATION)
    min_slot_duration_minutes: int = Field(default=MIN_SLOT_DURATION)
    max_slot_duration_minutes: int = Field(default=MAX_SLOT_DURATION)

    policy_cache_backend: Literal["memory", "redis"] = Field(
        default="memory", description="Where resolved booking policies are cached"
    )
    redis_url: str = Field(default="redis://localhost:6379/0")
    policy_cache_redis_prefix: str = Field(default="booking_policy")

    slow_operation_threshold_seconds: float = Field(default=1.0, ge=0)
    log_level: str = Field(default="INFO")

    @field_validator("clinic_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_duration_bounds(self) -> "Settings":
        if not (
            self.min_slot_duration_minutes
            <= self.default_slot_duration_minutes
            <= self.max_slot_duration_minutes
        ):
            raise ValueError("default slot duration must lie between the min and max durations")
        return self


settings = Settings()
