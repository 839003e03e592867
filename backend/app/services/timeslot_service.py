# backend/app/services/timeslot_service.py
"""
Slot store management.

Venue staff generate one day of hourly slots per sub-venue, then price
and open individual slots. Generated slots start out blocked. Slot times
are aligned to the server timezone and stored as UTC instants.

Moving a slot into or out of ``booked`` is not possible from here; that
belongs to the reservation service.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
import re
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.config import settings
from ..core.constants import LAST_SLOT_END, SLOT_DURATION_MINUTES
from ..core.enums import SlotStatus
from ..core.exceptions import (
    ConflictException,
    NotFoundException,
    SlotTimingImmutableException,
    ValidationException,
)
from ..models.timeslot import TimeSlot, TimeSlotDay
from ..repositories.factory import RepositoryFactory
from ..schemas.timeslot import SlotUpdateRequest
from .base import BaseService

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")

EDITABLE_STATUSES = {SlotStatus.BLOCKED, SlotStatus.AVAILABLE}


def parse_slot_date(value: Optional[str]) -> date:
    if not value or not DATE_ONLY_REGEX.fullmatch(value):
        raise ValidationException("Date must be in YYYY-MM-DD format", code="INVALID_DATE")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationException("Date must be in YYYY-MM-DD format", code="INVALID_DATE")


class TimeSlotService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.slot_repository = RepositoryFactory.create_timeslot_repository(db)
        self.venue_repository = RepositoryFactory.create_venue_repository(db)

    @BaseService.measure_operation("generate_slot_day")
    def generate_day(
        self, sub_venue_id: str, date_str: str, now: Optional[datetime] = None
    ) -> TimeSlotDay:
        """
        Create the slot day for a sub-venue.

        Hourly slots, all blocked; the last one ends at 23:59:59 local time.
        For today the first slot starts at the next full hour.
        """
        day = parse_slot_date(date_str)
        local_now = (now or datetime.now(timezone.utc)).astimezone(settings.tzinfo)
        if day < local_now.date():
            raise ValidationException("Cannot generate slots for past dates", code="DATE_IN_PAST")

        sub_venue = self.venue_repository.get_sub_venue(sub_venue_id)
        if sub_venue is None:
            raise NotFoundException("SubVenue not found", code="SUB_VENUE_NOT_FOUND")
        if not sub_venue.offered_sports:
            raise ValidationException(
                "SubVenue must have at least one sport before generating slots",
                code="SUB_VENUE_WITHOUT_SPORTS",
            )

        existing = self.slot_repository.get_day_for(sub_venue_id, day)
        if existing is not None:
            raise ConflictException(
                "Slots for this date already exist",
                code="SLOT_DAY_EXISTS",
                details={"slot_day_id": existing.id},
            )

        first_hour = local_now.hour + 1 if day == local_now.date() else 0
        slots = self._build_slots(day, first_hour)

        with self.transaction():
            slot_day = self.slot_repository.create_day(sub_venue_id, day, slots)

        self.log_operation(
            "slot_day_generated", slot_day_id=slot_day.id, date=str(day), slots=len(slots)
        )
        return slot_day

    def _build_slots(self, day: date, first_hour: int) -> List[TimeSlot]:
        tz = settings.tzinfo
        step = timedelta(minutes=SLOT_DURATION_MINUTES)
        day_end = tz.localize(datetime.combine(day, time(*LAST_SLOT_END)))

        slots: List[TimeSlot] = []
        local_start = datetime.combine(day, time(0)) + timedelta(hours=first_hour)
        while local_start.date() == day:
            start = tz.localize(local_start)
            end = min(tz.localize(local_start + step), day_end)
            slots.append(
                TimeSlot(
                    start_time=start.astimezone(timezone.utc),
                    end_time=end.astimezone(timezone.utc),
                    status=SlotStatus.BLOCKED.value,
                    prices={},
                    booked_for_sport=None,
                )
            )
            local_start += step
        return slots

    def get_day(self, sub_venue_id: str, date_str: Optional[str]) -> Optional[TimeSlotDay]:
        """The slot day, or None when none was generated for that date."""
        return self.slot_repository.get_day_for(sub_venue_id, parse_slot_date(date_str))

    @BaseService.measure_operation("update_slot")
    def update_slot(self, slot_id: str, payload: SlotUpdateRequest) -> TimeSlot:
        if {"start_time", "end_time"} & payload.model_fields_set:
            raise SlotTimingImmutableException("Cannot modify startTime or endTime of slot")

        slot = self.slot_repository.get_slot_by_id(slot_id)
        if slot is None:
            raise NotFoundException("Slot not found", code="SLOT_NOT_FOUND")
        sub_venue = self.venue_repository.get_sub_venue(slot.day.sub_venue_id)
        if sub_venue is None:
            raise ValidationException("Invalid subVenue", code="SUB_VENUE_NOT_FOUND")

        prices = payload.prices
        if prices is not None:
            offered = set(sub_venue.offered_sports)
            for sport, price in prices.items():
                if sport not in offered:
                    raise ValidationException(
                        f"Invalid sport '{sport.value}' for this subVenue", code="INVALID_SPORT"
                    )
                if price is None or Decimal(price) <= 0:
                    raise ValidationException(
                        f"Price for {sport.value} must be a positive number", code="INVALID_PRICE"
                    )

        status = payload.status
        if status is not None:
            if status not in EDITABLE_STATUSES:
                raise ValidationException(
                    "Invalid status. Allowed: available, blocked", code="INVALID_SLOT_STATUS"
                )
            if slot.is_booked and status.value != slot.status:
                raise ConflictException(
                    "Cannot change the status of a booked slot", code="SLOT_BOOKED"
                )
        resulting_status = status.value if status is not None else slot.status
        effective_prices = prices if prices is not None else (slot.prices or {})
        if resulting_status == SlotStatus.AVAILABLE.value and not effective_prices:
            raise ValidationException(
                "Cannot mark slot 'available' without setting at least one price",
                code="SLOT_PRICES_REQUIRED",
            )

        with self.transaction():
            if prices is not None:
                slot.prices = dict(prices)
            if status is not None and not slot.is_booked:
                slot.status = status.value
                if status == SlotStatus.BLOCKED:
                    slot.booked_for_sport = None
                    slot.claimed_by_booking_id = None
            try:
                self.db.flush()
            except StaleDataError:
                raise ConflictException(
                    "Slot was modified concurrently; reload and try again",
                    code="SLOT_MODIFIED",
                )

        self.log_operation("slot_updated", slot_id=slot.id, status=slot.status)
        return slot

    @BaseService.measure_operation("delete_slot_day")
    def delete_day(self, sub_venue_id: str, date_str: Optional[str]) -> str:
        slot_day = self.slot_repository.get_day_for(sub_venue_id, parse_slot_date(date_str))
        if slot_day is None:
            raise NotFoundException(
                "No timeslots found for this subVenue and date", code="SLOT_DAY_NOT_FOUND"
            )
        if self.slot_repository.has_booked_slots(slot_day.id):
            raise ConflictException(
                "Cannot delete a day with booked slots", code="SLOT_DAY_HAS_BOOKINGS"
            )

        slot_day_id = slot_day.id
        with self.transaction():
            self.slot_repository.delete_day(slot_day)
        self.log_operation("slot_day_deleted", slot_day_id=slot_day_id)
        return slot_day_id
