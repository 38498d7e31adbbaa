"""Durable task store backed by a single YAML file."""

import logging
import os
import tempfile
import threading
from collections.abc import Callable, Mapping
from contextlib import suppress
from pathlib import Path
from types import MappingProxyType
from typing import Protocol

import pydantic
import yaml

from taskkeeper.errors import NotFoundError, PersistenceCorruptionError, PersistenceError
from taskkeeper.errors import ValidationError as TaskValidationError
from taskkeeper.models import Task
from taskkeeper.storage.records import TaskFile, TaskRecord

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    """Protocol for task persistence."""

    def save(self, task: Task) -> None:
        """Insert or replace a task by id."""
        ...

    def find_by_id(self, task_id: str) -> Task | None:
        """Return the task, or None if absent."""
        ...

    def find_all(self) -> tuple[Task, ...]:
        """Return an immutable snapshot of every task."""
        ...

    def delete(self, task_id: str) -> bool:
        """Remove a task; return False if it was absent."""
        ...

    def update(self, task_id: str, change: Callable[[Task], Task]) -> Task:
        """Atomically replace a task with change(current); NotFoundError if absent."""
        ...


class FileTaskStore:
    """Task store keeping the whole collection in memory and in one file.

    Every mutation rewrites the full file through a temp file and an atomic
    rename, so readers of the file only ever see a complete old or new state.
    The in-memory map is swapped only after the write succeeded.

    Not safe for several processes sharing one file.
    """

    def __init__(self, path: str | Path) -> None:
        """Load the task file (a missing file is an empty collection).

        Raises:
            PersistenceCorruptionError: If the file exists but cannot be loaded
        """
        self._path = Path(path)
        self._lock = threading.Lock()
        self._tasks: Mapping[str, Task] = MappingProxyType(self._load())
        logger.info(f"[TaskStore] Loaded {len(self._tasks)} tasks from {self._path}")

    @property
    def path(self) -> Path:
        """Path of the backing file."""
        return self._path

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    # ---- reads (lock-free, snapshot reference) ----

    def find_by_id(self, task_id: str) -> Task | None:
        """Return the task with the given id, or None."""
        return self._tasks.get(task_id)

    def get(self, task_id: str) -> Task:
        """Return the task with the given id.

        Raises:
            NotFoundError: If no such task exists
        """
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def find_all(self) -> tuple[Task, ...]:
        """Return every task, in insertion order."""
        return tuple(self._tasks.values())

    # ---- writes (exclusive lock covers memory and disk) ----

    def save(self, task: Task) -> None:
        """Insert or replace a task and persist the collection.

        Raises:
            PersistenceError: If the file could not be written
        """
        with self._lock:
            tasks = dict(self._tasks)
            tasks[task.id] = task
            self._write(tasks)
            self._tasks = MappingProxyType(tasks)
        logger.debug(f"[TaskStore] Saved task {task.id} ({len(tasks)} total)")

    def update(self, task_id: str, change: Callable[[Task], Task]) -> Task:
        """Read, change and persist one task while holding the write lock.

        change() receives the current task and returns its replacement. It
        may raise to abort; returning the same object skips the write.

        Returns:
            The stored task after the change

        Raises:
            NotFoundError: If no such task exists
            PersistenceError: If the file could not be written
        """
        with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                raise NotFoundError(task_id)
            updated = change(current)
            if updated is current:
                return current
            if updated.id != task_id:
                raise ValueError(f"Task id cannot change ({task_id} -> {updated.id})")
            tasks = dict(self._tasks)
            tasks[task_id] = updated
            self._write(tasks)
            self._tasks = MappingProxyType(tasks)
        logger.debug(f"[TaskStore] Updated task {task_id}")
        return updated

    def delete(self, task_id: str) -> bool:
        """Remove a task if present and persist the collection.

        Returns:
            True if a task was removed, False if the id was unknown

        Raises:
            PersistenceError: If the file could not be written
        """
        with self._lock:
            if task_id not in self._tasks:
                return False
            tasks = dict(self._tasks)
            del tasks[task_id]
            self._write(tasks)
            self._tasks = MappingProxyType(tasks)
        logger.debug(f"[TaskStore] Deleted task {task_id} ({len(tasks)} total)")
        return True

    # ---- file I/O ----

    def _load(self) -> dict[str, Task]:
        """Read and validate the task file."""
        if not self._path.exists():
            logger.info(f"[TaskStore] No task file at {self._path}, starting empty")
            return {}

        try:
            content = self._path.read_text(encoding="utf-8")
            data = yaml.safe_load(content)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise PersistenceCorruptionError(
                f"Cannot read task file {self._path}: {e}", self._path
            ) from e

        if not isinstance(data, dict):
            raise PersistenceCorruptionError(
                f"Task file {self._path} is not a task document", self._path
            )

        try:
            document = TaskFile.model_validate(data)
            records = [record.to_task() for record in document.tasks]
        except (pydantic.ValidationError, TaskValidationError) as e:
            raise PersistenceCorruptionError(
                f"Invalid task file {self._path}: {e}", self._path
            ) from e

        tasks: dict[str, Task] = {}
        for task in records:
            if task.id in tasks:
                raise PersistenceCorruptionError(
                    f"Duplicate task id {task.id} in {self._path}", self._path
                )
            tasks[task.id] = task
        return tasks

    def _write(self, tasks: Mapping[str, Task]) -> None:
        """Atomically replace the task file with the given collection."""
        document = TaskFile(tasks=[TaskRecord.from_task(task) for task in tasks.values()])
        tmp_path: Path | None = None
        try:
            content = yaml.safe_dump(
                document.model_dump(mode="json"),
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self._path)
            tmp_path = None
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"[TaskStore] Failed to write {self._path}: {e}")
            raise PersistenceError(f"Failed to write task file {self._path}: {e}", self._path) from e
        finally:
            if tmp_path is not None:
                with suppress(OSError):
                    tmp_path.unlink()

        # The new file is already in place; a failed directory sync must not
        # be reported as a failed write.
        with suppress(OSError):
            self._fsync_directory()

    def _fsync_directory(self) -> None:
        """Flush the rename to disk (POSIX only)."""
        if os.name != "posix":
            return
        fd = os.open(self._path.parent, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
