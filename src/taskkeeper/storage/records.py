"""On-disk record schema for the task file."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from taskkeeper.models import Priority, Status, Task, as_utc

FILE_FORMAT_VERSION = 1


class TaskRecord(BaseModel):
    """One persisted task."""

    model_config = ConfigDict(extra="forbid")

    id: str
    title: str
    description: str = ""
    priority: Priority
    status: Status
    due_date: datetime | None = None
    created_at: datetime
    completed_at: datetime | None = None

    @field_validator("due_date", "created_at", "completed_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    @classmethod
    def from_task(cls, task: Task) -> "TaskRecord":
        """Build record from domain task."""
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            due_date=task.due_date,
            created_at=task.created_at,
            completed_at=task.completed_at,
        )

    def to_task(self) -> Task:
        """Build domain task (raises ValidationError on broken invariants)."""
        return Task(
            id=self.id,
            title=self.title,
            description=self.description,
            priority=self.priority,
            status=self.status,
            due_date=self.due_date,
            created_at=self.created_at,
            completed_at=self.completed_at,
        )


class TaskFile(BaseModel):
    """Whole persisted document: format version plus every task record."""

    model_config = ConfigDict(extra="forbid")

    version: int = FILE_FORMAT_VERSION
    tasks: list[TaskRecord]

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: int) -> int:
        if value != FILE_FORMAT_VERSION:
            raise ValueError(f"unsupported task file version {value}")
        return value
