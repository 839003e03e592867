# backend/app/repositories/factory.py
"""
Repository Factory for the Turfbook platform.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .game_repository import GameRepository
    from .timeslot_repository import TimeSlotRepository
    from .venue_repository import VenueRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_timeslot_repository(db: Session) -> "TimeSlotRepository":
        """Create repository for slot days and slot reservation primitives."""
        from .timeslot_repository import TimeSlotRepository

        return TimeSlotRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking ledger operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_game_repository(db: Session) -> "GameRepository":
        from .game_repository import GameRepository

        return GameRepository(db)

    @staticmethod
    def create_venue_repository(db: Session) -> "VenueRepository":
        from .venue_repository import VenueRepository

        return VenueRepository(db)
