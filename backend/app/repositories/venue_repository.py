# backend/app/repositories/venue_repository.py
"""Venue Repository: read access to the venue catalog."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.venue import SubVenue, Venue
from .base_repository import BaseRepository


class VenueRepository(BaseRepository[Venue]):
    def __init__(self, db: Session):
        super().__init__(db, Venue)

    def get_sub_venue(self, sub_venue_id: str) -> Optional[SubVenue]:
        """Sub-venue with its parent venue eagerly loaded."""
        try:
            return (
                self.db.query(SubVenue)
                .options(joinedload(SubVenue.venue))
                .filter(SubVenue.id == sub_venue_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting sub-venue {sub_venue_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve sub-venue: {str(e)}")
