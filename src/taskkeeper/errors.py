"""Error taxonomy for Taskkeeper."""

from pathlib import Path


class TaskkeeperError(Exception):
    """Base error for task operations."""


class ValidationError(TaskkeeperError, ValueError):
    """Raised when caller-supplied data violates a task invariant."""


class NotFoundError(TaskkeeperError, LookupError):
    """Raised when an operation references an unknown task id."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class PersistenceError(TaskkeeperError):
    """Raised when the durable write of the task file failed.

    The in-memory collection is left untouched, so the caller may retry.
    """

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class PersistenceCorruptionError(PersistenceError):
    """Raised when an existing task file cannot be loaded.

    Fatal for the store instance: a corrupt file is never treated as empty.
    """
