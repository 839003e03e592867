# backend/app/repositories/booking_repository.py
"""
Booking Repository for the Turfbook platform.

Booking ledger queries: lookups by gateway session, the payer's history
and the stale-Pending scan used by the cleanup sweep.
"""

from datetime import datetime, timezone
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_by_session_id(self, session_id: str) -> Optional[Booking]:
        try:
            return (
                self.db.query(Booking)
                .populate_existing()
                .filter(Booking.stripe_session_id == session_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking for session {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve booking: {str(e)}")

    def list_for_user(self, user_id: str) -> List[Booking]:
        """Payer's bookings, newest first, with venue names loaded."""
        try:
            return (
                self.db.query(Booking)
                .options(joinedload(Booking.venue), joinedload(Booking.sub_venue))
                .filter(Booking.user_id == user_id)
                .order_by(Booking.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    def find_stale_pending(self, opened_before: datetime, limit: int = 500) -> List[Booking]:
        """Pending bookings whose current gateway session was opened before the cutoff."""
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.status == BookingStatus.PENDING.value,
                    Booking.stripe_session_id.isnot(None),
                    Booking.session_created_at < opened_before,
                )
                .order_by(Booking.session_created_at.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error scanning stale pending bookings: {str(e)}")
            raise RepositoryException(f"Failed to scan pending bookings: {str(e)}")

    def fail_if_current_session(self, booking_id: str, session_id: Optional[str]) -> bool:
        """
        Pending -> Failed, only while the booking still carries ``session_id``.

        A retry that has since opened a new session (or a payment that has
        landed) leaves the row untouched and this returns False.
        """
        session_filter = (
            Booking.stripe_session_id.is_(None)
            if session_id is None
            else Booking.stripe_session_id == session_id
        )
        try:
            result = self.db.execute(
                update(Booking)
                .where(
                    Booking.id == booking_id,
                    Booking.status == BookingStatus.PENDING.value,
                    session_filter,
                )
                .values(status=BookingStatus.FAILED.value, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error failing booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking: {str(e)}")
