# backend/app/services/booking_cleanup_service.py
"""
Periodic repair of abandoned reservations.

A Pending booking whose checkout session was opened long enough ago is
compared against the gateway:

- ``open``: the session is expired at the gateway; its expiry notification
  then goes through the normal webhook path.
- ``expired``: the expiry notification was lost, so the booking is failed
  and its slot released here.
- ``complete`` and paid: the completion notification was lost, so the
  booking is marked paid here.

A failure on one booking is logged and does not stop the sweep.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BookingStatus, CheckoutSessionStatus
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .payment_gateway import PaymentGateway
from .payment_reconciliation_service import PaymentReconciliationService


@dataclass
class CleanupSummary:
    scanned: int = 0
    expired_at_gateway: int = 0
    failed: int = 0
    paid: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "expired_at_gateway": self.expired_at_gateway,
            "failed": self.failed,
            "paid": self.paid,
            "skipped": self.skipped,
            "errors": len(self.errors),
        }


class BookingCleanupService(BaseService):
    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        reconciliation_service: Optional[PaymentReconciliationService] = None,
    ):
        super().__init__(db)
        self.gateway = gateway
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.reconciliation_service = reconciliation_service or PaymentReconciliationService(
            db, gateway
        )

    @BaseService.measure_operation("cleanup_stale_bookings")
    def sweep(self, now: Optional[datetime] = None) -> CleanupSummary:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=settings.booking_cleanup_stale_minutes)
        stale = self.booking_repository.find_stale_pending(cutoff)

        summary = CleanupSummary(scanned=len(stale))
        if not stale:
            self.logger.debug("No stale pending bookings")
            return summary

        self.logger.info(f"Found {len(stale)} stale pending bookings older than {cutoff}")
        for booking in stale:
            try:
                self._repair(booking, summary)
            except Exception as e:
                self.db.rollback()
                summary.errors.append(booking.id)
                prometheus_metrics.record_cleanup_action("error")
                self.logger.error(
                    f"Failed to clean up booking {booking.id}: {str(e)}",
                    exc_info=True,
                    extra={"booking_id": booking.id},
                )

        self.logger.info(f"Booking cleanup finished: {summary.as_dict()}")
        return summary

    def _repair(self, booking: Booking, summary: CleanupSummary) -> None:
        session = self.gateway.retrieve_session(booking.stripe_session_id)

        # A retry or a notification may have moved the booking on during the gateway call
        self.db.refresh(booking)
        if not self._still_pending_on(booking, session.session_id):
            self._skip(booking, summary, "booking changed while the sweep was running")
            return

        if session.status == CheckoutSessionStatus.OPEN.value:
            self.gateway.expire_session(session.session_id)
            summary.expired_at_gateway += 1
            prometheus_metrics.record_cleanup_action("expired_at_gateway")
            self.logger.info(f"Expired open session for stale booking {booking.id}")
        elif session.status == CheckoutSessionStatus.EXPIRED.value:
            if not self.reconciliation_service.fail_booking_and_release(
                booking, session.metadata, session_id=session.session_id
            ):
                self._skip(booking, summary, "booking left its expired session before failing")
                return
            summary.failed += 1
            prometheus_metrics.record_cleanup_action("failed")
        elif session.is_paid:
            self.reconciliation_service.mark_booking_paid(session)
            summary.paid += 1
            prometheus_metrics.record_cleanup_action("paid")
        else:
            self._skip(
                booking,
                summary,
                f"session in state {session.status}/{session.payment_status}",
            )

    @staticmethod
    def _still_pending_on(booking: Booking, session_id: str) -> bool:
        return (
            booking.status == BookingStatus.PENDING.value
            and booking.stripe_session_id == session_id
        )

    def _skip(self, booking: Booking, summary: CleanupSummary, reason: str) -> None:
        summary.skipped += 1
        prometheus_metrics.record_cleanup_action("skipped")
        self.logger.warning(
            f"Leaving stale booking {booking.id} as is: {reason}",
            extra={"booking_id": booking.id, "session_id": booking.stripe_session_id},
        )
