# backend/tests/conftest.py
"""
Pytest configuration for the Turfbook backend.

Every test gets a fresh in-memory SQLite schema. The shared connection
(StaticPool) lets the TestClient's worker threads see the same data as
the test body; the BEGIN IMMEDIATE listeners of the real engine are not
installed here since they assume one connection per session.
"""

import os
import sys
from typing import Dict, Generator

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from app.core.config import settings

settings.is_testing = True

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies import get_db, get_payment_gateway
from app.core.ulid_helper import generate_ulid
from app.database import Base
from app.main import app
from app.models.game import Game
from app.models.timeslot import TimeSlot
from app.models.venue import SubVenue, Venue
from tests.helpers.factories import add_game, add_slot, bearer_headers
from tests.helpers.fake_gateway import FakePaymentGateway

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
)


# ============================================================================
# Database / client
# ============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def client(db: Session, gateway: FakePaymentGateway) -> Generator[TestClient, None, None]:
    """Create a test client bound to the test session and the fake gateway."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    test_client = TestClient(app)

    yield test_client

    # Cleanup
    app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# Users
# ============================================================================


@pytest.fixture
def user_id() -> str:
    return generate_ulid()


@pytest.fixture
def other_user_id() -> str:
    return generate_ulid()


@pytest.fixture
def auth_headers(user_id: str) -> Dict[str, str]:
    """Bearer headers for ``user_id``."""
    return bearer_headers(user_id)


# ============================================================================
# Catalog, slot store and games
# ============================================================================


@pytest.fixture
def venue(db: Session) -> Venue:
    venue = Venue(
        name="Greenfield Arena",
        address="12 Park Road",
        city="Bengaluru",
        longitude=77.5946,
        latitude=12.9716,
    )
    db.add(venue)
    db.commit()
    return venue


@pytest.fixture
def sub_venue(db: Session, venue: Venue) -> SubVenue:
    sub_venue = SubVenue(venue_id=venue.id, name="Court A", sports=["Cricket", "Football"])
    db.add(sub_venue)
    db.commit()
    return sub_venue


@pytest.fixture
def slot(db: Session, sub_venue: SubVenue) -> TimeSlot:
    """Available Cricket slot, 10:00-11:00 local two days ahead, priced 1000."""
    return add_slot(db, sub_venue)


@pytest.fixture
def game(db: Session, slot: TimeSlot, sub_venue: SubVenue, user_id: str) -> Game:
    """Open game hosted by ``user_id`` with enough approved players."""
    return add_game(db, slot, sub_venue, user_id)
