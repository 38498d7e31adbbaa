"""Domain models for Taskkeeper."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from taskkeeper.errors import ValidationError


class Priority(StrEnum):
    """Task priority, ordered by severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        """Severity rank: 0 for LOW up to 3 for URGENT."""
        return list(Priority).index(self)


class Status(StrEnum):
    """Task lifecycle status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that can no longer become overdue
CLOSED_STATUSES = frozenset({Status.COMPLETED, Status.CANCELLED})


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class Task:
    """One trackable unit of work.

    Instances are immutable; derive changed values with dataclasses.replace().
    """

    id: str
    title: str
    description: str
    priority: Priority
    status: Status
    due_date: datetime | None
    created_at: datetime
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("Task title must not be empty")
        if (self.status == Status.COMPLETED) != (self.completed_at is not None):
            raise ValidationError(
                f"Task {self.id}: completed_at must be set if and only if status is completed"
            )
        # Timestamps are always aware UTC
        for name in ("due_date", "created_at", "completed_at"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, as_utc(value))

    def is_overdue(self, now: datetime) -> bool:
        """Due date in the past and not completed or cancelled."""
        if self.due_date is None or self.status in CLOSED_STATUSES:
            return False
        return self.due_date < now

    def matches(self, keyword: str) -> bool:
        """Case-insensitive substring match against title and description."""
        haystack = f"{self.title} {self.description}".casefold()
        return keyword.casefold() in haystack


@dataclass(frozen=True)
class TaskStatistics:
    """Aggregate counts over the task collection."""

    total: int
    completed: int
    overdue: int
    completion_rate: float
