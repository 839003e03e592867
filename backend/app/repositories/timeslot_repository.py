# backend/app/repositories/timeslot_repository.py
"""
TimeSlot Repository for the Turfbook platform.

Data access for slot days and slots. The claim/release primitives are
single conditional UPDATE statements; they are the only code path that
moves a slot into or out of ``booked``.
"""

from datetime import date, datetime
import logging
from typing import List, Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.enums import SlotStatus
from ..core.exceptions import RepositoryException
from ..models.timeslot import TimeSlot, TimeSlotDay
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TimeSlotRepository(BaseRepository[TimeSlot]):
    def __init__(self, db: Session):
        super().__init__(db, TimeSlot)

    # Day lookups

    def get_day(self, day_id: str) -> Optional[TimeSlotDay]:
        try:
            return (
                self.db.query(TimeSlotDay)
                .options(selectinload(TimeSlotDay.slots))
                .filter(TimeSlotDay.id == day_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting slot day {day_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve slot day: {str(e)}")

    def get_day_for(self, sub_venue_id: str, day: date) -> Optional[TimeSlotDay]:
        try:
            return (
                self.db.query(TimeSlotDay)
                .options(selectinload(TimeSlotDay.slots))
                .filter(TimeSlotDay.sub_venue_id == sub_venue_id, TimeSlotDay.date == day)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting slot day for {sub_venue_id} on {day}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve slot day: {str(e)}")

    def create_day(self, sub_venue_id: str, day: date, slots: List[TimeSlot]) -> TimeSlotDay:
        """Create a slot day with its slots. Does not commit."""
        try:
            slot_day = TimeSlotDay(sub_venue_id=sub_venue_id, date=day)
            slot_day.slots.extend(slots)
            self.db.add(slot_day)
            self.db.flush()
            return slot_day
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating slot day for {sub_venue_id} on {day}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to create slot day: {str(e)}")

    def delete_day(self, slot_day: TimeSlotDay) -> None:
        try:
            self.db.delete(slot_day)
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting slot day {slot_day.id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to delete slot day: {str(e)}")

    # Slot lookups

    def get_slot(self, day_id: str, slot_id: str, *, fresh: bool = False) -> Optional[TimeSlot]:
        """
        Fetch one slot of a day.

        ``fresh`` overwrites any identity-map copy with the row as stored, which
        is needed after a bulk UPDATE issued by this session or another one.
        """
        try:
            query = self.db.query(TimeSlot)
            if fresh:
                query = query.populate_existing()
            return query.filter(TimeSlot.id == slot_id, TimeSlot.day_id == day_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting slot {day_id}/{slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve slot: {str(e)}")

    def get_slot_by_id(self, slot_id: str) -> Optional[TimeSlot]:
        """Slot by id alone, re-read from the store."""
        try:
            return self.db.query(TimeSlot).populate_existing().filter(TimeSlot.id == slot_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve slot: {str(e)}")

    def find_slot_by_times(
        self, day_id: str, start_time: datetime, end_time: datetime
    ) -> Optional[TimeSlot]:
        try:
            return (
                self.db.query(TimeSlot)
                .populate_existing()
                .filter(
                    TimeSlot.day_id == day_id,
                    TimeSlot.start_time == start_time,
                    TimeSlot.end_time == end_time,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error matching slot times on day {day_id}: {str(e)}")
            raise RepositoryException(f"Failed to match slot: {str(e)}")

    def has_booked_slots(self, day_id: str) -> bool:
        return self.exists(day_id=day_id, status=SlotStatus.BOOKED.value)

    # Reservation primitives

    def claim(self, day_id: str, slot_id: str, sport: str, claim_token: str) -> int:
        """
        Atomically flip an available slot to booked.

        Returns the number of rows changed: 1 when this caller won the slot,
        0 when it was not available at the moment of the write.
        """
        try:
            result = self.db.execute(
                update(TimeSlot)
                .where(
                    and_(
                        TimeSlot.id == slot_id,
                        TimeSlot.day_id == day_id,
                        TimeSlot.status == SlotStatus.AVAILABLE.value,
                    )
                )
                .values(
                    status=SlotStatus.BOOKED.value,
                    booked_for_sport=sport,
                    claimed_by_booking_id=claim_token,
                    version=TimeSlot.version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error claiming slot {day_id}/{slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to claim slot: {str(e)}")

    def release(self, day_id: str, slot_id: str, *, held_by: Optional[str] = None) -> int:
        """
        Return a slot to available and clear its sport and claim owner.

        With ``held_by`` the release only applies while the slot is booked by
        that booking (or by no recorded owner); otherwise it is unconditional.
        """
        conditions = [TimeSlot.id == slot_id, TimeSlot.day_id == day_id]
        if held_by is not None:
            conditions.append(TimeSlot.status == SlotStatus.BOOKED.value)
            conditions.append(
                or_(
                    TimeSlot.claimed_by_booking_id == held_by,
                    TimeSlot.claimed_by_booking_id.is_(None),
                )
            )
        try:
            result = self.db.execute(
                update(TimeSlot)
                .where(and_(*conditions))
                .values(
                    status=SlotStatus.AVAILABLE.value,
                    booked_for_sport=None,
                    claimed_by_booking_id=None,
                    version=TimeSlot.version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error releasing slot {day_id}/{slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to release slot: {str(e)}")
