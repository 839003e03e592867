# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the Turfbook platform

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    slot_repository = RepositoryFactory.create_timeslot_repository(db)
    slot_day = slot_repository.get_day_for(sub_venue_id, day)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .game_repository import GameRepository
from .timeslot_repository import TimeSlotRepository
from .venue_repository import VenueRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "GameRepository",
    "RepositoryFactory",
    "TimeSlotRepository",
    "VenueRepository",
]
