# backend/app/tasks/celery_app.py
"""
Celery application configuration for Turfbook.

This module sets up the Celery app with Redis as the broker and backend,
configures task serialization and timezone, and installs the beat
schedule for the booking cleanup sweep.
"""

import logging
import os
from typing import Any, Type, cast

from celery import Celery, Task
from celery.signals import setup_logging

from app.core.config import settings


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Returns:
        Celery: Configured Celery application instance
    """
    # Celery reads CELERY_BROKER_URL itself and prefers it over conf, so it is used verbatim
    broker_url = os.getenv("CELERY_BROKER_URL")
    if not broker_url:
        broker_url = settings.redis_url or "redis://localhost:6379"
        # Ensure Redis URL includes database number
        if not any(broker_url.endswith(f"/{i}") for i in range(16)):
            broker_url = f"{broker_url}/0"

    result_backend = os.getenv("CELERY_RESULT_BACKEND") or broker_url

    celery_app = Celery(
        "turfbook",
        broker=broker_url,
        backend=result_backend,
    )

    celery_app.conf.update(
        {
            # Task settings
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "timezone": settings.server_timezone,
            "enable_utc": True,
            # Worker settings
            "worker_prefetch_multiplier": 1,
            "worker_max_tasks_per_child": 1000,
            # Task execution settings
            "task_soft_time_limit": 120,
            "task_time_limit": 300,
            "task_acks_late": True,
            "task_reject_on_worker_lost": True,
            # Results are not read back
            "task_ignore_result": True,
            "worker_hijack_root_logger": False,
            "worker_redirect_stdouts_level": "INFO",
            "broker_transport_options": {"visibility_timeout": 3600},
        }
    )

    # Force import of task modules so tasks are registered even if autodiscovery fails
    celery_app.conf.imports = tuple(
        set(celery_app.conf.imports or ()) | {"app.tasks.booking_tasks"}
    )

    celery_app.conf.task_routes = {
        "app.tasks.booking_tasks.*": {"queue": "payments"},
    }

    from app.tasks.beat_schedule import get_beat_schedule

    celery_app.conf.beat_schedule = get_beat_schedule(settings.environment)

    return celery_app


# Disable Celery's default logging configuration
@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Configure logging to integrate with the application's logging setup."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


# Create the Celery app instance
celery_app = create_celery_app()


class BaseTask(Task):  # type: ignore[misc]
    """Base task with failure and success logging."""

    def on_failure(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        """Log task failures."""
        logger = logging.getLogger(__name__)
        logger.error(
            f"Task {self.name}[{task_id}] failed with exception: {exc}",
            exc_info=True,
            extra={
                "task_id": task_id,
                "task_name": self.name,
                "task_args": str(args),
                "task_kwargs": str(kwargs),
            },
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_success(self, retval: Any, task_id: str, args: Any, kwargs: Any) -> None:
        """Log successful task completion."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Task {self.name}[{task_id}] completed successfully",
            extra={"task_id": task_id, "task_name": self.name},
        )
        super().on_success(retval, task_id, args, kwargs)


# Register BaseTask as default task base for the app
celery_app.Task = cast(Type[Task], BaseTask)

