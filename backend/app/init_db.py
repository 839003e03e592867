"""Create all tables for a fresh database (local development and SQLite deployments)."""

import logging

from app.database import Base, engine
from app.models import Booking, Game, SubVenue, TimeSlot, TimeSlotDay, Venue  # noqa: F401

logger = logging.getLogger(__name__)


def init_db() -> None:
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    init_db()
