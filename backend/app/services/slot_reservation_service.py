# backend/app/services/slot_reservation_service.py
"""
Reservation coordinator for venue slots.

All transitions into and out of ``booked`` go through this service:

- ``claim_slot`` is a single conditional UPDATE (``status = 'available'``)
  committed in its own transaction, so no row lock is ever held while the
  payment gateway is being called. Exactly one concurrent caller can win.
- ``release_slot`` is the unconditional reset used to roll back a claim
  this process just made.
- ``release_slot_for_booking`` is the reconciliation release. It only
  frees a slot still held by that booking, so a late or duplicated expiry
  notification cannot free a slot somebody else has claimed since.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import Sport
from ..core.exceptions import (
    NotFoundException,
    SlotUnavailableException,
    ValidationException,
)
from ..models.booking import Booking
from ..models.timeslot import TimeSlot, TimeSlotDay
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class SlotReservationService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.slot_repository = RepositoryFactory.create_timeslot_repository(db)

    @BaseService.measure_operation("claim_slot")
    def claim_slot(self, day_id: str, slot_id: str, sport: Any, claim_token: str) -> TimeSlot:
        """
        Claim an available slot for ``sport`` on behalf of ``claim_token``.

        Raises:
            NotFoundException: SLOT_NOT_FOUND
            ValidationException: SLOT_IN_PAST or SPORT_PRICE_UNAVAILABLE
            SlotUnavailableException: the slot was not available at write time
        """
        slot = self.slot_repository.get_slot(day_id, slot_id, fresh=True)
        if slot is None:
            prometheus_metrics.record_slot_claim("not_found")
            raise NotFoundException("Slot not found", code="SLOT_NOT_FOUND")

        if slot.start_time <= datetime.now(timezone.utc):
            prometheus_metrics.record_slot_claim("in_past")
            raise ValidationException("Cannot book a slot in the past", code="SLOT_IN_PAST")

        if slot.price_for(sport) is None:
            prometheus_metrics.record_slot_claim("unpriced")
            raise ValidationException(
                f"Price not available for {sport}",
                code="SPORT_PRICE_UNAVAILABLE",
                details={"sport": str(getattr(sport, "value", sport))},
            )

        sport_value = Sport(sport).value
        with self.transaction():
            changed = self.slot_repository.claim(day_id, slot_id, sport_value, claim_token)
            if changed != 1:
                prometheus_metrics.record_slot_claim("unavailable")
                self.logger.info(
                    "Slot claim lost",
                    extra={"slot_day_id": day_id, "slot_id": slot_id, "claim_token": claim_token},
                )
                raise SlotUnavailableException(details={"slot_id": slot_id})
            claimed = self.slot_repository.get_slot(day_id, slot_id, fresh=True)

        prometheus_metrics.record_slot_claim("claimed")
        self.logger.info(
            "Slot claimed",
            extra={"slot_day_id": day_id, "slot_id": slot_id, "claim_token": claim_token},
        )
        return claimed

    def release_slot(self, day_id: str, slot_id: str) -> bool:
        """Unconditionally return a slot to available. Commits."""
        with self.transaction():
            changed = self.slot_repository.release(day_id, slot_id)
        prometheus_metrics.record_slot_release("rollback")
        self.logger.info(
            "Slot released after rollback",
            extra={"slot_day_id": day_id, "slot_id": slot_id, "rows": changed},
        )
        return changed > 0

    def release_slot_for_booking(
        self, booking: Booking, metadata: Optional[Mapping[str, Any]] = None
    ) -> bool:
        """
        Release the slot a failed booking was holding. Does not commit.

        The slot is located from gateway metadata when it carries both ids,
        then from the booking's own slot reference, and finally by matching
        the booking's sub-venue, calendar date and exact start/end times.
        """
        metadata = metadata or {}
        day_id = metadata.get("slot_day_id") or booking.slot_day_id
        slot_id = metadata.get("slot_id") or booking.slot_id

        if day_id and slot_id:
            changed = self.slot_repository.release(day_id, slot_id, held_by=booking.id)
        else:
            located = self._match_slot_by_snapshot(booking)
            if located is None:
                self.logger.warning(
                    f"No slot found to release for booking {booking.id}",
                    extra={"booking_id": booking.id, "sub_venue_id": booking.sub_venue_id},
                )
                return False
            slot_day, slot = located
            changed = self.slot_repository.release(slot_day.id, slot.id, held_by=booking.id)

        if changed:
            prometheus_metrics.record_slot_release("reconciliation")
            self.logger.info(f"Released slot for booking {booking.id}")
        else:
            self.logger.info(
                f"Slot for booking {booking.id} is no longer held by it; nothing to release"
            )
        return changed > 0

    def get_slot(self, day_id: str, slot_id: str) -> Optional[TimeSlot]:
        return self.slot_repository.get_slot(day_id, slot_id, fresh=True)

    def locate_booking_slot(self, booking: Booking) -> Tuple[str, str]:
        """
        Resolve the (slot_day_id, slot_id) pair a booking refers to.

        Raises:
            ValidationException: the booking has neither a slot reference nor a sub-venue
            NotFoundException: no slot day or no matching slot exists
        """
        if booking.slot_day_id and booking.slot_id:
            return booking.slot_day_id, booking.slot_id
        if not booking.sub_venue_id:
            raise ValidationException("Invalid booking: missing subVenueId")

        slot_day = self.slot_repository.get_day_for(
            booking.sub_venue_id, self.booking_local_date(booking)
        )
        if slot_day is None:
            raise NotFoundException("TimeSlot not found", code="SLOT_NOT_FOUND")
        slot = self.slot_repository.find_slot_by_times(
            slot_day.id, booking.start_time, booking.end_time
        )
        if slot is None:
            raise NotFoundException("Slot not found", code="SLOT_NOT_FOUND")
        return slot_day.id, slot.id

    @staticmethod
    def booking_local_date(booking: Booking) -> Any:
        """Calendar date of the booking in the server timezone."""
        return booking.start_time.astimezone(settings.tzinfo).date()

    def _match_slot_by_snapshot(self, booking: Booking) -> Optional[Tuple[TimeSlotDay, TimeSlot]]:
        if not booking.sub_venue_id:
            return None
        slot_day = self.slot_repository.get_day_for(
            booking.sub_venue_id, self.booking_local_date(booking)
        )
        if slot_day is None:
            return None
        slot = self.slot_repository.find_slot_by_times(
            slot_day.id, booking.start_time, booking.end_time
        )
        if slot is None:
            return None
        return slot_day, slot
