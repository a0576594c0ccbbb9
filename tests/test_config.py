from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from taskqueue_mcp.config import TaskQueueSettings, default_file_path, get_settings


def test_file_path_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASK_MANAGER_FILE_PATH", str(tmp_path / "custom.json"))

    settings = TaskQueueSettings()

    assert settings.file_path == tmp_path / "custom.json"
    assert settings.log_level == "INFO"


def test_blank_file_path_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASK_MANAGER_FILE_PATH", "  ")

    assert TaskQueueSettings().file_path == default_file_path()


def test_default_path_honours_xdg_data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("taskqueue_mcp.config.sys.platform", "linux")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert default_file_path() == tmp_path / "taskqueue-mcp" / "tasks.json"


def test_default_path_on_macos(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("taskqueue_mcp.config.sys.platform", "darwin")

    path = default_file_path()

    assert path.parts[-4:] == ("Library", "Application Support", "taskqueue-mcp", "tasks.json")


def test_invalid_log_level_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKQUEUE_LOG_LEVEL", "loud")

    with pytest.raises(ValidationError):
        TaskQueueSettings()


def test_get_settings_expands_user(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("TASK_MANAGER_FILE_PATH", "~/queue/tasks.json")
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()

    assert settings.file_path == (tmp_path / "queue" / "tasks.json").resolve()
