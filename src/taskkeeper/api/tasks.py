"""Task API endpoints."""

# FastAPI Depends pattern is safe in function signatures

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from taskkeeper.api.models import StatisticsResponse, StatusRequest, TaskRequest, TaskResponse
from taskkeeper.errors import NotFoundError, PersistenceError, ValidationError
from taskkeeper.factory import get_task_service
from taskkeeper.models import Priority, Status
from taskkeeper.service.task_service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter()

Service = Annotated[TaskService, Depends(get_task_service)]


def _persistence_failure(e: PersistenceError) -> HTTPException:
    logger.error(f"[API] Persistence failure: {e}")
    return HTTPException(status_code=500, detail=str(e))


@router.get("/tasks", response_model=list[TaskResponse])
def list_tasks(
    service: Service,
    status_filter: Annotated[Status | None, Query(alias="status")] = None,
    priority: Priority | None = None,
    q: str | None = None,
    overdue: bool | None = None,
    sort: str | None = None,
    reverse: bool = False,
) -> list[TaskResponse]:
    """List tasks matching every given filter.

    Args:
        status_filter: Exact status match
        priority: Exact priority match
        q: Case-insensitive keyword searched in title and description
        overdue: Only overdue (true) or only not overdue (false) tasks
        sort: Sort key name (priority, due_date, created_at, title, status)
        reverse: Sort descending

    Returns:
        List of tasks matching the filter
    """
    try:
        tasks = service.query_tasks(
            status=status_filter,
            priority=priority,
            keyword=q,
            overdue=overdue,
            sort=sort,
            reverse=reverse,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return [TaskResponse.from_task(task) for task in tasks]


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(service: Service, request: TaskRequest) -> TaskResponse:
    """Create a new task."""
    try:
        task = service.create_task(
            request.title, request.description, request.priority, request.due_date
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PersistenceError as e:
        raise _persistence_failure(e) from e
    return TaskResponse.from_task(task)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(service: Service, task_id: str) -> TaskResponse:
    """Read a single task."""
    try:
        return TaskResponse.from_task(service.get_task(task_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(service: Service, task_id: str, request: TaskRequest) -> TaskResponse:
    """Replace the editable fields of a task."""
    try:
        task = service.update_task(
            task_id, request.title, request.description, request.priority, request.due_date
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PersistenceError as e:
        raise _persistence_failure(e) from e
    return TaskResponse.from_task(task)


@router.patch("/tasks/{task_id}/status", response_model=TaskResponse)
def set_task_status(service: Service, task_id: str, request: StatusRequest) -> TaskResponse:
    """Move a task to another status."""
    try:
        task = service.set_status(task_id, request.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except PersistenceError as e:
        raise _persistence_failure(e) from e
    return TaskResponse.from_task(task)


@router.post("/tasks/{task_id}/complete", response_model=TaskResponse)
def complete_task(service: Service, task_id: str) -> TaskResponse:
    """Mark a task completed."""
    try:
        task = service.mark_complete(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except PersistenceError as e:
        raise _persistence_failure(e) from e
    return TaskResponse.from_task(task)


@router.post("/tasks/{task_id}/reopen", response_model=TaskResponse)
def reopen_task(service: Service, task_id: str) -> TaskResponse:
    """Move a task back to todo."""
    try:
        task = service.mark_incomplete(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except PersistenceError as e:
        raise _persistence_failure(e) from e
    return TaskResponse.from_task(task)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(service: Service, task_id: str) -> Response:
    """Delete a task (unknown ids are not an error)."""
    try:
        service.delete_task(task_id)
    except PersistenceError as e:
        raise _persistence_failure(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(service: Service) -> StatisticsResponse:
    """Collection statistics with per-status and per-priority counts."""
    return StatisticsResponse.build(
        service.get_statistics(),
        service.get_task_count_by_status(),
        service.get_task_count_by_priority(),
    )
