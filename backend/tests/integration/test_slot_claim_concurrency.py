"""
Concurrent claims against a file-backed SQLite database.

Each worker uses its own connection through the production engine
builder, so the BEGIN IMMEDIATE serialization is exercised for real.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
import threading

import pytest
from sqlalchemy.orm import Session, sessionmaker

from app.core.enums import SlotStatus, Sport
from app.core.exceptions import SlotUnavailableException
from app.core.ulid_helper import generate_ulid
from app.database import Base, build_engine
from app.models.timeslot import TimeSlot, TimeSlotDay
from app.models.venue import SubVenue, Venue
from app.services.slot_reservation_service import SlotReservationService
from tests.helpers.factories import future_hour

WORKERS = 8


@pytest.fixture
def file_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'claims.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def contested_slot(file_engine):
    session = Session(bind=file_engine, expire_on_commit=False)
    try:
        venue = Venue(name="Riverside Turf")
        session.add(venue)
        session.flush()
        sub_venue = SubVenue(venue_id=venue.id, name="Pitch 1", sports=["Football"])
        session.add(sub_venue)
        session.flush()
        start = future_hour(days=1, hour=18)
        slot_day = TimeSlotDay(sub_venue_id=sub_venue.id, date=start.date())
        session.add(slot_day)
        session.flush()
        slot = TimeSlot(
            day_id=slot_day.id,
            start_time=start,
            end_time=future_hour(days=1, hour=19),
            status=SlotStatus.AVAILABLE.value,
            prices={Sport.FOOTBALL: Decimal("1500")},
        )
        session.add(slot)
        session.commit()
        return slot.day_id, slot.id
    finally:
        session.close()


def test_exactly_one_concurrent_claim_wins(file_engine, contested_slot):
    day_id, slot_id = contested_slot
    make_session = sessionmaker(bind=file_engine, expire_on_commit=False)
    barrier = threading.Barrier(WORKERS)

    def attempt(token: str) -> bool:
        session = make_session()
        try:
            barrier.wait()
            SlotReservationService(session).claim_slot(day_id, slot_id, Sport.FOOTBALL, token)
            return True
        except SlotUnavailableException:
            return False
        finally:
            session.close()

    tokens = [generate_ulid() for _ in range(WORKERS)]
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(attempt, tokens))

    assert results.count(True) == 1
    winner = tokens[results.index(True)]

    check = make_session()
    try:
        stored = check.get(TimeSlot, slot_id)
        assert stored.status == SlotStatus.BOOKED.value
        assert stored.booked_for_sport == Sport.FOOTBALL.value
        assert stored.claimed_by_booking_id == winner
    finally:
        check.close()
