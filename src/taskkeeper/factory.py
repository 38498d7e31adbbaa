"""Dependency injection factory."""

import logging

from fastapi import FastAPI, Request

from taskkeeper.config import Config
from taskkeeper.service.task_service import TaskService
from taskkeeper.storage.task_store import FileTaskStore

logger = logging.getLogger(__name__)

# Global config instance for dependency injection
_config: Config | None = None


def get_config() -> Config:
    """Get or create Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def create_task_service(config: Config) -> TaskService:
    """Create a TaskService over the configured task file."""
    store = FileTaskStore(config.data_path)
    return TaskService(store)


def get_task_service(request: Request) -> TaskService:
    """Resolve the TaskService owned by the running app."""
    service: TaskService = request.app.state.task_service
    return service


def create_app(config: Config | None = None) -> FastAPI:
    """Create FastAPI application (composition root).

    The store and service are owned by the app instance, so several apps
    (e.g. in tests) can coexist over different files.
    """
    from taskkeeper.api.tasks import router as tasks_router

    config = config or get_config()

    app = FastAPI(
        title="Taskkeeper",
        description="Durable task store and query engine",
        version="0.1.0",
    )
    app.state.config = config
    app.state.task_service = create_task_service(config)
    logger.info(f"[Factory] Task service ready on {config.data_path}")

    app.include_router(tasks_router, prefix="/api")

    return app
