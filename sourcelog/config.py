"""Logging configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging settings loaded from environment variables.

    A field counts as explicitly set when it appears in model_fields_set,
    i.e. it came from the environment, the .env file or the constructor.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOURCELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Format selection
    log_format: str = "console"  # console | json
    log_encoder: str = "console"  # Legacy selector, superseded by log_format

    # Backend
    # None lets development pick DEBUG, otherwise INFO
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] | None = None
    development: bool = True
    add_caller: bool = False
    # Frames between the sink decorator and the call site
    caller_skip: int = Field(default=3, ge=0)

    # Facade redirection
    redirect_stdlib: bool = True
    redirect_structlog: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def log_format_explicit(self) -> bool:
        return "log_format" in self.model_fields_set

    @property
    def log_encoder_explicit(self) -> bool:
        return "log_encoder" in self.model_fields_set


@lru_cache
def get_settings() -> LoggingSettings:
    """Get cached settings instance."""
    return LoggingSettings()
