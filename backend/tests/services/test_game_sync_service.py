"""Tests for GameSyncService."""

import pytest

from app.core.enums import GameBookingStatus, GameStatus
from app.core.ulid_helper import generate_ulid
from app.services.game_sync_service import GameSyncService


@pytest.fixture
def game_sync_service(db):
    return GameSyncService(db)


def test_mark_full(game_sync_service, game):
    game_sync_service.mark_full(game.id)

    assert game.status == GameStatus.FULL.value
    assert game.booking_status == GameBookingStatus.NOT_BOOKED.value


def test_mark_booked(game_sync_service, game):
    game_sync_service.mark_booked(game.id)

    assert game.status == GameStatus.FULL.value
    assert game.booking_status == GameBookingStatus.BOOKED.value


def test_reset_open(db, game_sync_service, game):
    game_sync_service.mark_booked(game.id)

    game_sync_service.reset_open(game.id)

    assert game.status == GameStatus.OPEN.value
    assert game.booking_status == GameBookingStatus.NOT_BOOKED.value


@pytest.mark.parametrize("status", [GameStatus.COMPLETED, GameStatus.CANCELLED])
def test_reset_open_leaves_finished_games(db, game_sync_service, game, status):
    game.status = status.value
    db.commit()

    game_sync_service.reset_open(game.id)

    assert game.status == status.value


def test_missing_game_is_a_no_op(game_sync_service):
    assert game_sync_service.mark_booked(None) is None
    assert game_sync_service.reset_open(generate_ulid()) is None
