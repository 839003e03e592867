# backend/app/services/retry_payment_service.py
"""
Retry payment for a Failed or still-Pending booking.

The booking record is reused: a new checkout session replaces
``stripe_session_id`` so the booking never gets duplicated. The slot is
re-claimed with the booking id as claim token; for a Pending booking
whose slot is still held by that same booking, the lost claim is
accepted and the existing hold carries over.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import (
    BOOKING_TYPE_DIRECT,
    BOOKING_TYPE_GAME,
    DIRECT_BOOKING_LINE_ITEM,
    GAME_BOOKING_LINE_ITEM,
)
from ..core.enums import BookingStatus
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    PaymentGatewayException,
    SlotUnavailableException,
    ValidationException,
)
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .checkout_service import CheckoutResult
from .game_sync_service import GameSyncService
from .payment_gateway import PaymentGateway
from .payment_reconciliation_service import PaymentReconciliationService
from .slot_reservation_service import SlotReservationService


class RetryPaymentService(BaseService):
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

    @BaseService.measure_operation("retry_payment")
    def retry_payment(self, user_id: str, booking_id: Optional[str]) -> CheckoutResult:
        if not booking_id:
            raise ValidationException("Booking ID is required", code="BOOKING_ID_REQUIRED")

        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        if booking.user_id != user_id:
            raise ForbiddenException("Not authorized to retry this booking")
        if booking.is_paid:
            raise ValidationException("Booking is already paid", code="BOOKING_ALREADY_PAID")
        if not booking.is_retryable:
            raise ValidationException(
                f"Cannot retry payment for a booking in status {booking.status}",
                code="INVALID_BOOKING_STATUS",
            )

        slot_day_id, slot_id = self.reservation_service.locate_booking_slot(booking)

        previous_session_id = booking.stripe_session_id
        if booking.status == BookingStatus.PENDING.value and previous_session_id:
            self._ensure_previous_session_unpaid(booking, previous_session_id)

        claimed_here = self._reclaim_slot(booking, slot_day_id, slot_id)

        metadata: Dict[str, str] = {
            "booking_type": BOOKING_TYPE_GAME if booking.game_id else BOOKING_TYPE_DIRECT,
            "user_id": booking.user_id,
            "booking_id": booking.id,
            "slot_day_id": slot_day_id,
            "slot_id": slot_id,
        }
        if booking.game_id:
            metadata["game_id"] = booking.game_id
            line_item_name = GAME_BOOKING_LINE_ITEM.format(sport=booking.sport)
        else:
            line_item_name = DIRECT_BOOKING_LINE_ITEM.format(sport=booking.sport)

        try:
            session = self.gateway.create_checkout_session(
                amount=booking.amount,
                currency=booking.currency,
                line_item_name=line_item_name,
                metadata=metadata,
                success_url=settings.checkout_success_url(),
                cancel_url=settings.checkout_cancel_url(),
            )
        except Exception:
            self.db.rollback()
            if claimed_here:
                self.reservation_service.release_slot(slot_day_id, slot_id)
            raise

        try:
            with self.transaction():
                self._ensure_slot_still_held(booking, slot_day_id, slot_id)
                booking.stripe_session_id = session.session_id
                booking.session_created_at = datetime.now(timezone.utc)
                booking.status = BookingStatus.PENDING.value
                booking.slot_day_id = slot_day_id
                booking.slot_id = slot_id
                self.game_sync_service.mark_full(booking.game_id)
        except SlotUnavailableException:
            self._expire_quietly(session.session_id, booking.id)
            raise
        except Exception:
            if claimed_here:
                self.reservation_service.release_slot(slot_day_id, slot_id)
            self._expire_quietly(session.session_id, booking.id)
            raise

        if previous_session_id:
            self._expire_quietly(previous_session_id, booking.id)

        self.log_operation(
            "payment_retried",
            booking_id=booking.id,
            session_id=session.session_id,
            previous_session_id=previous_session_id,
        )
        return CheckoutResult(
            booking_id=booking.id,
            url=session.url,
            status=BookingStatus.PENDING.value,
            session_id=session.session_id,
        )

    def _reclaim_slot(self, booking: Booking, slot_day_id: str, slot_id: str) -> bool:
        """Claim the slot again; returns True when this call made the claim."""
        if booking.status == BookingStatus.FAILED.value:
            try:
                self.reservation_service.claim_slot(slot_day_id, slot_id, booking.sport, booking.id)
            except SlotUnavailableException:
                raise SlotUnavailableException("This slot is no longer available")
            return True

        try:
            self.reservation_service.claim_slot(slot_day_id, slot_id, booking.sport, booking.id)
            return True
        except SlotUnavailableException:
            slot = self.reservation_service.get_slot(slot_day_id, slot_id)
            if slot is not None and slot.is_booked and slot.claimed_by_booking_id == booking.id:
                self.logger.info(f"Slot {slot_id} still held by booking {booking.id}; reusing hold")
                return False
            raise SlotUnavailableException("Slot is not available for retry")

    def _ensure_slot_still_held(self, booking: Booking, slot_day_id: str, slot_id: str) -> None:
        """The cleanup sweep may have failed the booking and released its slot meanwhile."""
        slot = self.reservation_service.get_slot(slot_day_id, slot_id)
        if slot is None or not slot.is_booked or slot.claimed_by_booking_id != booking.id:
            raise SlotUnavailableException("Slot is not available for retry")

    def _ensure_previous_session_unpaid(self, booking: Booking, session_id: str) -> None:
        """A Pending booking may have been paid without the notification arriving yet."""
        previous = self.gateway.retrieve_session(session_id)
        if previous.is_paid:
            PaymentReconciliationService(
                self.db,
                self.gateway,
                reservation_service=self.reservation_service,
                game_sync_service=self.game_sync_service,
            ).mark_booking_paid(previous)
            raise ValidationException("Booking is already paid", code="BOOKING_ALREADY_PAID")

    def _expire_quietly(self, session_id: str, booking_id: str) -> None:
        try:
            self.gateway.expire_session(session_id)
        except PaymentGatewayException:
            self.logger.warning(
                f"Could not expire checkout session {session_id}",
                extra={"booking_id": booking_id, "session_id": session_id},
            )
