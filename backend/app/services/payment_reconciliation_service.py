# backend/app/services/payment_reconciliation_service.py
"""
Payment reconciliation.

Turns gateway outcomes into booking state. Both the webhook consumer and
the cleanup sweep call into the same two transitions:

- ``mark_booking_paid``: Pending -> Paid, game booked, calendar link set.
- ``fail_booking_and_release``: Pending -> Failed, slot released (guarded
  by claim ownership), game reopened.

Both are idempotent, so duplicated or reordered notifications converge to
the same final state.
"""

from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import NotFoundException
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_service import booking_calendar_link
from .game_sync_service import GameSyncService
from .payment_gateway import GatewaySession, PaymentGateway
from .slot_reservation_service import SlotReservationService

SESSION_COMPLETED = "checkout.session.completed"
SESSION_EXPIRED = "checkout.session.expired"


class PaymentReconciliationService(BaseService):
    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        reservation_service: Optional[SlotReservationService] = None,
        game_sync_service: Optional[GameSyncService] = None,
    ):
        super().__init__(db)
        self.gateway = gateway
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.reservation_service = reservation_service or SlotReservationService(db)
        self.game_sync_service = game_sync_service or GameSyncService(db)

    def verify_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify the notification signature; raises WebhookSignatureException."""
        return self.gateway.verify_webhook(payload, signature)

    @BaseService.measure_operation("handle_webhook_event")
    def handle_event(self, event: Mapping[str, Any]) -> Dict[str, str]:
        """
        Dispatch a verified gateway notification.

        Returns:
            ``{"status": "success" | "ignored", "event_type": ...}``
        """
        event_type = str(event.get("type") or "")
        payload = (event.get("data") or {}).get("object") or {}
        self.logger.info(f"Processing Stripe webhook event: {event_type}")

        if event_type == SESSION_COMPLETED:
            booking = self.mark_booking_paid(GatewaySession.from_payload(payload))
            outcome = "success" if booking is not None else "ignored"
        elif event_type == SESSION_EXPIRED:
            handled = self.handle_session_expired(GatewaySession.from_payload(payload))
            outcome = "success" if handled else "ignored"
        else:
            self.logger.info(f"Unhandled webhook event type: {event_type}")
            outcome = "ignored"

        prometheus_metrics.record_webhook_event(event_type or "unknown", outcome)
        return {"status": outcome, "event_type": event_type}

    def mark_booking_paid(self, session: GatewaySession) -> Optional[Booking]:
        """Record a completed payment. No-op for unknown sessions or Paid bookings."""
        booking = self.booking_repository.get_by_session_id(session.session_id)
        if booking is None:
            self.logger.warning(
                f"No booking found for completed session {session.session_id}",
                extra={"session_id": session.session_id},
            )
            return None
        if booking.is_paid:
            self.logger.info(f"Booking {booking.id} already paid; ignoring duplicate completion")
            return booking
        if booking.status != BookingStatus.PENDING.value:
            self.logger.warning(
                f"Completed payment for booking {booking.id} in status {booking.status}",
                extra={"booking_id": booking.id, "session_id": session.session_id},
            )

        with self.transaction():
            booking.mark_paid(session.payment_intent_id)
            booking.calendar_link = booking_calendar_link(booking)
            self.game_sync_service.mark_booked(session.metadata.get("game_id") or booking.game_id)

        self.log_operation("booking_paid", booking_id=booking.id, session_id=session.session_id)
        return booking

    def handle_session_expired(self, session: GatewaySession) -> bool:
        booking = self.booking_repository.get_by_session_id(session.session_id)
        if booking is None:
            self.logger.info(
                f"No booking found for expired session {session.session_id}",
                extra={"session_id": session.session_id},
            )
            return False
        if booking.is_paid:
            self.logger.info(f"Booking {booking.id} already paid; ignoring expiry")
            return False
        return self.fail_booking_and_release(booking, session.metadata, session_id=session.session_id)

    def fail_booking_and_release(
        self,
        booking: Booking,
        metadata: Optional[Mapping[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> bool:
        """
        Fail a booking and undo its side effects in one transaction.

        Shared by the webhook consumer and the cleanup sweep. The transition
        only applies while the booking is still Pending on ``session_id``
        (default: the session the caller last saw on ``booking``). A retry
        that has opened a new session in the meantime wins, and neither the
        booking nor its slot is touched.

        Returns:
            True when the booking was failed here
        """
        metadata = metadata or {}
        expected_session_id = session_id or booking.stripe_session_id
        with self.transaction():
            failed = self.booking_repository.fail_if_current_session(
                booking.id, expected_session_id
            )
            if failed:
                self.reservation_service.release_slot_for_booking(booking, metadata)
                self.game_sync_service.reset_open(metadata.get("game_id") or booking.game_id)
        self.db.refresh(booking)

        if not failed:
            self.logger.info(
                f"Booking {booking.id} is no longer pending on session {expected_session_id}; "
                "leaving it as is",
                extra={"booking_id": booking.id, "session_id": expected_session_id},
            )
            return False
        self.log_operation("booking_failed", booking_id=booking.id)
        return True

    @BaseService.measure_operation("verify_payment")
    def verify_payment(self, user_id: str, session_id: str) -> Dict[str, Any]:
        """Synchronous success-page check; applies the same transition as the webhook."""
        booking = self.booking_repository.get_by_session_id(session_id)
        if booking is None or booking.user_id != user_id:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")

        session = self.gateway.retrieve_session(session_id)
        if session.is_paid:
            self.mark_booking_paid(session)
            return {
                "success": True,
                "message": "Payment verified successfully",
                "booking_id": booking.id,
                "status": booking.status,
            }
        message = (
            "Payment not completed" if session.payment_status == "unpaid" else "Payment status unknown"
        )
        return {
            "success": False,
            "message": message,
            "booking_id": booking.id,
            "status": booking.status,
        }
