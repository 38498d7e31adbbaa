"""Configuration for Taskkeeper."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Config(BaseSettings):
    """Application configuration (environment variables prefixed TASKKEEPER_)."""

    model_config = SettingsConfigDict(env_prefix="TASKKEEPER_")

    data_file: str = Field(default="tasks.yaml")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r} (expected one of: {', '.join(LOG_LEVELS)})")
        return level

    @property
    def data_path(self) -> Path:
        """Task file path with ~ expanded."""
        return Path(self.data_file).expanduser()
