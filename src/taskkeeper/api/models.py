"""API models for Taskkeeper."""

from datetime import datetime

from pydantic import BaseModel, Field

from taskkeeper.models import Priority, Status, Task, TaskStatistics


class TaskRequest(BaseModel):
    """Request body for creating or updating a task."""

    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None


class StatusRequest(BaseModel):
    """Request body for a status transition."""

    status: Status


class TaskResponse(BaseModel):
    """API response model for tasks."""

    id: str
    title: str
    description: str
    priority: Priority
    status: Status
    due_date: datetime | None
    created_at: datetime
    completed_at: datetime | None

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
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


class StatisticsResponse(BaseModel):
    """API response model for collection statistics."""

    total: int
    completed: int
    overdue: int
    completion_rate: float
    by_status: dict[Status, int] = Field(default_factory=dict)
    by_priority: dict[Priority, int] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        stats: TaskStatistics,
        by_status: dict[Status, int],
        by_priority: dict[Priority, int],
    ) -> "StatisticsResponse":
        return cls(
            total=stats.total,
            completed=stats.completed,
            overdue=stats.overdue,
            completion_rate=stats.completion_rate,
            by_status=by_status,
            by_priority=by_priority,
        )
