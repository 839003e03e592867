# backend/app/services/game_sync_service.py
"""
Keeps a hosted game's status consistent with the booking that pays for it.

Only ``status`` (Open/Full) and ``booking_status`` are touched here; the
rest of the game belongs to the games service. None of these methods
commit: they run inside the caller's transaction.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..core.enums import GameBookingStatus, GameStatus
from ..models.game import Game
from ..repositories.factory import RepositoryFactory
from .base import BaseService


class GameSyncService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.game_repository = RepositoryFactory.create_game_repository(db)

    def mark_full(self, game_id: Optional[str]) -> Optional[Game]:
        game = self._get(game_id)
        if game is None:
            return None
        game.status = GameStatus.FULL.value
        self.db.flush()
        return game

    def mark_booked(self, game_id: Optional[str]) -> Optional[Game]:
        """Payment confirmed: the game is full and its venue is booked."""
        game = self._get(game_id)
        if game is None:
            return None
        game.status = GameStatus.FULL.value
        game.booking_status = GameBookingStatus.BOOKED.value
        self.db.flush()
        self.logger.info(f"Game {game.id} marked as booked")
        return game

    def reset_open(self, game_id: Optional[str]) -> Optional[Game]:
        """Payment failed: reopen the game unless it already finished or was cancelled."""
        game = self._get(game_id)
        if game is None:
            return None
        if game.is_terminal:
            self.logger.info(f"Game {game.id} is {game.status}; leaving status unchanged")
            return game
        game.status = GameStatus.OPEN.value
        game.booking_status = GameBookingStatus.NOT_BOOKED.value
        self.db.flush()
        self.logger.info(f"Game {game.id} reset to open")
        return game

    def _get(self, game_id: Optional[str]) -> Optional[Game]:
        if not game_id:
            return None
        game = self.game_repository.get_by_id(game_id)
        if game is None:
            self.logger.warning(f"Game {game_id} referenced by a booking was not found")
        return game
