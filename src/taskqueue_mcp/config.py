"""Configuration management for TaskQueue MCP."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
import os
import sys

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR_NAME = "taskqueue-mcp"
DATA_FILE_NAME = "tasks.json"


def default_file_path() -> Path:
    """Return the OS-appropriate location of the task queue data file."""

    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        xdg_data = os.environ.get("XDG_DATA_HOME")
        base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME / DATA_FILE_NAME


class TaskQueueSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    file_path: Path = Field(default_factory=default_file_path, validation_alias="TASK_MANAGER_FILE_PATH")
    log_level: str = Field(default="INFO", validation_alias="TASKQUEUE_LOG_LEVEL")

    @field_validator("file_path", mode="before")
    @classmethod
    def _default_when_blank(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return default_file_path()
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "TASKQUEUE_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized


@lru_cache(maxsize=1)
def get_settings() -> TaskQueueSettings:
    """Return cached settings instance."""

    settings = TaskQueueSettings()
    settings.file_path = settings.file_path.expanduser().resolve()
    return settings


__all__ = ["TaskQueueSettings", "default_file_path", "get_settings"]
