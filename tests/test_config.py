"""Tests for Config."""

from pathlib import Path

import pydantic
import pytest

from taskkeeper.config import Config


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATA_FILE", "HOST", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(f"TASKKEEPER_{name}", raising=False)

    config = Config()

    assert config.data_file == "tasks.yaml"
    assert config.host == "127.0.0.1"
    assert config.port == 8000
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKKEEPER_DATA_FILE", str(tmp_path / "mine.yaml"))
    monkeypatch.setenv("TASKKEEPER_PORT", "9001")

    config = Config()

    assert config.data_path == tmp_path / "mine.yaml"
    assert config.port == 9001


def test_data_path_expands_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    config = Config(data_file="~/tasks.yaml")

    assert config.data_path == tmp_path / "tasks.yaml"


def test_log_level_normalized() -> None:
    assert Config(log_level=" debug ").log_level == "DEBUG"


def test_invalid_log_level_rejected() -> None:
    with pytest.raises(pydantic.ValidationError, match="log level"):
        Config(log_level="chatty")


def test_main_reports_invalid_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that a bad TASKKEEPER_LOG_LEVEL exits cleanly instead of crashing."""
    from taskkeeper.__main__ import main

    monkeypatch.setattr("taskkeeper.factory._config", None)
    monkeypatch.setenv("TASKKEEPER_LOG_LEVEL", "chatty")

    assert main() == 2
