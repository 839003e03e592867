# backend/app/tasks/__init__.py
"""
Celery tasks package for Turfbook.

This package contains the periodic booking cleanup task and the Celery
app it runs on.
"""

from app.tasks.booking_tasks import cleanup_expired_bookings
from app.tasks.celery_app import BaseTask, celery_app

__all__ = [
    "celery_app",
    "BaseTask",
    "cleanup_expired_bookings",
]

# This allows running celery with: celery -A app.tasks worker
