# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for Turfbook.

The only periodic job is the booking cleanup sweep, which repairs
Pending bookings whose Stripe notification never arrived.
"""

from datetime import timedelta
from typing import Any

from app.core.config import settings

CLEANUP_TASK_NAME = "app.tasks.booking_tasks.cleanup_expired_bookings"


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, development, testing)

    Returns:
        Mapping of task name to Celery beat configuration dict
    """
    interval = timedelta(seconds=settings.booking_cleanup_interval_seconds)
    return {
        "cleanup-expired-bookings": {
            "task": CLEANUP_TASK_NAME,
            "schedule": interval,
            "options": {
                "queue": "payments" if environment == "production" else "celery",
                # A sweep that has not started by the next tick is redundant
                "expires": interval.total_seconds(),
            },
        },
    }
