"""
Celery tasks for booking maintenance.

Periodically repairs abandoned Pending bookings against Stripe.
"""

import logging
from typing import Any, Callable, Dict, ParamSpec, Protocol, TypeVar, cast

from celery.result import AsyncResult
from sqlalchemy.orm import Session

from app.services.booking_cleanup_service import BookingCleanupService
from app.services.payment_gateway import StripePaymentGateway
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R", covariant=True)


class TaskWrapper(Protocol[P, R]):
    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        ...

    delay: Callable[..., AsyncResult]
    apply_async: Callable[..., AsyncResult]


def typed_task(
    *task_args: Any, **task_kwargs: Any
) -> Callable[[Callable[P, R]], TaskWrapper[P, R]]:
    """Return a typed Celery task decorator for mypy."""

    return cast(
        Callable[[Callable[P, R]], TaskWrapper[P, R]],
        celery_app.task(*task_args, **task_kwargs),
    )


@typed_task(bind=True, max_retries=0, name="app.tasks.booking_tasks.cleanup_expired_bookings")
def cleanup_expired_bookings(self: Any) -> Dict[str, Any]:
    """
    Reconcile stale Pending bookings with Stripe.

    Runs every BOOKING_CLEANUP_INTERVAL_SECONDS. A missed run is harmless;
    the next one picks up the same bookings.

    Returns:
        Dict with per-outcome counts
    """
    from app.database import SessionLocal

    db: Session = SessionLocal()
    try:
        service = BookingCleanupService(db, StripePaymentGateway())
        summary = service.sweep()
        if summary.errors:
            logger.warning(
                f"Booking cleanup could not repair {len(summary.errors)} bookings",
                extra={"booking_ids": summary.errors},
            )
        return summary.as_dict()
    finally:
        db.close()
