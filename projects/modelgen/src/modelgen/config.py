"""Settings for a generation run, read from the environment and a `.env` file."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENV_FILE = Path(".env")
DEFAULT_MIGRATIONS_DIR = Path("internal/migrations/sql")
DEFAULT_MODELS_DIR = Path("internal/db/models")

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Model generator settings."""

    model_config = SettingsConfigDict(extra="ignore", env_file_encoding="utf-8")

    db_connection_string: str | None = Field(
        default=None,
        validation_alias="DB_CONNECTION_STRING",
    )
    db_schema: str | None = Field(default=None, validation_alias="DB_SCHEMA")
    db_timeout: int = Field(default=30, gt=0, validation_alias="DB_TIMEOUT")
    migrations_dir: Path = Field(
        default=DEFAULT_MIGRATIONS_DIR,
        validation_alias="MIGRATIONS_DIR",
    )
    models_dir: Path = Field(default=DEFAULT_MODELS_DIR, validation_alias="MODELS_DIR")
    log_level: LogLevel = Field(default="WARNING", validation_alias="LOG_LEVEL")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: object) -> object:
        """Accept level names in any case."""
        return value.upper() if isinstance(value, str) else value


def load_settings(env_file: Path = DEFAULT_ENV_FILE) -> Settings:
    """Load settings, a missing env file only leaves the environment as source."""
    return Settings(_env_file=env_file if env_file.is_file() else None)  # pyright: ignore[reportCallIssue]
