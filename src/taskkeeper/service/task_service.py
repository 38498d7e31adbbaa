"""Task service: validation, state transitions and queries over a TaskStore."""

import logging
import uuid
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import UTC, date, datetime, time
from typing import Any

from taskkeeper.errors import NotFoundError, ValidationError
from taskkeeper.models import Priority, Status, Task, TaskStatistics, as_utc, utc_now
from taskkeeper.storage.task_store import TaskStore

logger = logging.getLogger(__name__)

SortKey = Callable[[Task], Any]


def _due_date_key(task: Task) -> tuple[bool, datetime]:
    # Undated tasks sort after dated ones
    if task.due_date is None:
        return (True, datetime.max.replace(tzinfo=UTC))
    return (False, task.due_date)


SORT_KEYS: dict[str, SortKey] = {
    "priority": lambda task: task.priority.rank,
    "due_date": _due_date_key,
    "created_at": lambda task: task.created_at,
    "title": lambda task: task.title.casefold(),
    "status": lambda task: list(Status).index(task.status),
}


def new_task_id() -> str:
    """Generate a fresh task id."""
    return str(uuid.uuid4())


class TaskService:
    """Business rules and derived queries for tasks.

    Every query reads a single store snapshot, so results within one call
    are consistent with each other.
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_task_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    # ---- mutations ----

    def create_task(
        self,
        title: str,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
        due_date: datetime | date | str | None = None,
    ) -> Task:
        """Create and persist a new TODO task.

        Raises:
            ValidationError: If the title is blank, or priority/due date are invalid
            PersistenceError: If the task could not be written
        """
        task = Task(
            id=self._allocate_id(),
            title=_clean_title(title),
            description=description or "",
            priority=_coerce_priority(priority),
            status=Status.TODO,
            due_date=_coerce_due_date(due_date),
            created_at=self._now(),
        )
        self._store.save(task)
        logger.info(f"[TaskService] Created task {task.id}: {task.title!r}")
        return task

    def update_task(
        self,
        task_id: str,
        title: str,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
        due_date: datetime | date | str | None = None,
    ) -> Task:
        """Replace the editable fields of a task.

        id, created_at and status (with completed_at) are left untouched.

        Raises:
            NotFoundError: If the task does not exist
            ValidationError: If the title is blank, or priority/due date are invalid
        """

        def edit(task: Task) -> Task:
            return replace(
                task,
                title=_clean_title(title),
                description=description or "",
                priority=_coerce_priority(priority),
                due_date=_coerce_due_date(due_date),
            )

        updated = self._store.update(task_id, edit)
        logger.info(f"[TaskService] Updated task {task_id}")
        return updated

    def mark_complete(self, task_id: str) -> Task:
        """Mark a task completed.

        Idempotent: completed_at keeps the time of the first completion.
        """

        def complete(task: Task) -> Task:
            if task.status == Status.COMPLETED:
                return task
            return replace(task, status=Status.COMPLETED, completed_at=self._now())

        completed = self._store.update(task_id, complete)
        logger.info(f"[TaskService] Completed task {task_id}")
        return completed

    def mark_incomplete(self, task_id: str) -> Task:
        """Move a task back to TODO and clear completed_at."""

        def reopen(task: Task) -> Task:
            if task.status == Status.TODO:
                return task
            return replace(task, status=Status.TODO, completed_at=None)

        reopened = self._store.update(task_id, reopen)
        logger.info(f"[TaskService] Reopened task {task_id}")
        return reopened

    def set_status(self, task_id: str, status: Status | str) -> Task:
        """Transition a task to any status, keeping completed_at consistent."""
        new_status = _coerce_status(status)
        if new_status == Status.COMPLETED:
            return self.mark_complete(task_id)
        if new_status == Status.TODO:
            return self.mark_incomplete(task_id)

        def transition(task: Task) -> Task:
            if task.status == new_status:
                return task
            return replace(task, status=new_status, completed_at=None)

        changed = self._store.update(task_id, transition)
        logger.info(f"[TaskService] Task {task_id} status -> {new_status}")
        return changed

    def delete_task(self, task_id: str) -> bool:
        """Delete a task. Unknown ids are a no-op returning False."""
        deleted = self._store.delete(task_id)
        if deleted:
            logger.info(f"[TaskService] Deleted task {task_id}")
        return deleted

    # ---- queries ----

    def get_task(self, task_id: str) -> Task:
        """Return a task by id.

        Raises:
            NotFoundError: If the task does not exist
        """
        return self._require(task_id)

    def list_tasks(self) -> list[Task]:
        """All tasks in store order."""
        return list(self._store.find_all())

    def get_tasks_by_status(self, status: Status | str) -> list[Task]:
        wanted = _coerce_status(status)
        return [t for t in self._store.find_all() if t.status == wanted]

    def get_tasks_by_priority(self, priority: Priority | str) -> list[Task]:
        wanted = _coerce_priority(priority)
        return [t for t in self._store.find_all() if t.priority == wanted]

    def get_overdue_tasks(self) -> list[Task]:
        """Open tasks whose due date has passed."""
        now = self._now()
        return [t for t in self._store.find_all() if t.is_overdue(now)]

    def search_tasks(self, keyword: str | None) -> list[Task]:
        """Case-insensitive search in title and description.

        The keyword is matched against title and description joined by a
        single space, so it can span the boundary only across that space
        ("milk from" matches title "Buy milk" with description "from the shop").
        A blank keyword returns every task.
        """
        tasks = self._store.find_all()
        if not keyword or not keyword.strip():
            return list(tasks)
        needle = keyword.strip()
        return [t for t in tasks if t.matches(needle)]

    def get_tasks_sorted(self, key: SortKey | str, *, reverse: bool = False) -> list[Task]:
        """Stable sort of a snapshot by a key function or a SORT_KEYS name."""
        return _sort(self._store.find_all(), key, reverse=reverse)

    def query_tasks(
        self,
        *,
        status: Status | str | None = None,
        priority: Priority | str | None = None,
        keyword: str | None = None,
        overdue: bool | None = None,
        sort: SortKey | str | None = None,
        reverse: bool = False,
    ) -> list[Task]:
        """Filter by every given predicate (all must match), then optionally sort."""
        wanted_status = _coerce_status(status) if status is not None else None
        wanted_priority = _coerce_priority(priority) if priority is not None else None
        needle = keyword.strip() if keyword else ""
        now = self._now()

        tasks = [
            t
            for t in self._store.find_all()
            if (wanted_status is None or t.status == wanted_status)
            and (wanted_priority is None or t.priority == wanted_priority)
            and (not needle or t.matches(needle))
            and (overdue is None or t.is_overdue(now) == overdue)
        ]
        if sort is None:
            return tasks
        return _sort(tasks, sort, reverse=reverse)

    def get_statistics(self) -> TaskStatistics:
        """Total, completed and overdue counts plus the completion rate."""
        tasks = self._store.find_all()
        now = self._now()
        total = len(tasks)
        completed = sum(1 for t in tasks if t.status == Status.COMPLETED)
        overdue = sum(1 for t in tasks if t.is_overdue(now))
        return TaskStatistics(
            total=total,
            completed=completed,
            overdue=overdue,
            completion_rate=completed / total if total else 0.0,
        )

    def get_task_count_by_status(self) -> dict[Status, int]:
        """Count per status, including statuses with no tasks."""
        counts = Counter(t.status for t in self._store.find_all())
        return {status: counts[status] for status in Status}

    def get_task_count_by_priority(self) -> dict[Priority, int]:
        """Count per priority, including priorities with no tasks."""
        counts = Counter(t.priority for t in self._store.find_all())
        return {priority: counts[priority] for priority in Priority}

    # ---- helpers ----

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _require(self, task_id: str) -> Task:
        task = self._store.find_by_id(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def _allocate_id(self) -> str:
        task_id = self._id_factory()
        while self._store.find_by_id(task_id) is not None:
            logger.warning(f"[TaskService] Generated id {task_id} already in use, retrying")
            task_id = self._id_factory()
        return task_id


def _sort(tasks: Iterable[Task], key: SortKey | str, *, reverse: bool) -> list[Task]:
    if isinstance(key, str):
        try:
            key = SORT_KEYS[key]
        except KeyError:
            valid = ", ".join(SORT_KEYS)
            raise ValidationError(f"Unknown sort key {key!r} (expected one of: {valid})") from None
    return sorted(tasks, key=key, reverse=reverse)


def _clean_title(title: str | None) -> str:
    if title is None or not title.strip():
        raise ValidationError("Task title must not be empty")
    return title.strip()


def _coerce_priority(value: Priority | str) -> Priority:
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in Priority)
        raise ValidationError(f"Unknown priority {value!r} (expected one of: {valid})") from None


def _coerce_status(value: Status | str) -> Status:
    if isinstance(value, Status):
        return value
    try:
        return Status(str(value).strip().lower().replace("-", "_"))
    except ValueError:
        valid = ", ".join(s.value for s in Status)
        raise ValidationError(f"Unknown status {value!r} (expected one of: {valid})") from None


def _coerce_due_date(value: datetime | date | str | None) -> datetime | None:
    """Normalize a due date to aware UTC; dates mean midnight UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            raise ValidationError(f"Invalid due date {value!r} (expected ISO-8601)") from None
    raise ValidationError(f"Invalid due date {value!r}")
