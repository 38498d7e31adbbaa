"""Test fixtures for Taskkeeper."""

import itertools
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from taskkeeper.service.task_service import TaskService
from taskkeeper.storage.task_store import FileTaskStore

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=UTC)


class FakeClock:
    """Controllable clock for deterministic timestamps."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    """Path of a not yet existing task file."""
    return tmp_path / "data" / "tasks.yaml"


@pytest.fixture
def store(data_file: Path) -> FileTaskStore:
    """Empty store over a temporary file."""
    return FileTaskStore(data_file)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Sequential ids: task-1, task-2, ..."""
    counter = itertools.count(1)
    return lambda: f"task-{next(counter)}"


@pytest.fixture
def service(store: FileTaskStore, clock: FakeClock, id_factory: Callable[[], str]) -> TaskService:
    return TaskService(store, clock=clock, id_factory=id_factory)
