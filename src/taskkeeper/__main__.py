"""Taskkeeper main application."""

import logging
import sys

import pydantic
import uvicorn

from taskkeeper.errors import PersistenceCorruptionError
from taskkeeper.factory import create_app, get_config

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s:%(lineno)d] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def main() -> int:
    """Run the application."""
    try:
        config = get_config()
    except pydantic.ValidationError as e:
        logging.basicConfig(level=logging.ERROR, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
        logging.error(f"[Main] Invalid configuration: {e}")
        return 2

    # Configure logging
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)

    try:
        app = create_app(config)
    except PersistenceCorruptionError as e:
        logging.error(f"[Main] Refusing to start: {e}")
        return 1

    logging.info(f"[Main] Serving tasks from {config.data_path}")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
