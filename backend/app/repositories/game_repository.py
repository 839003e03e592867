# backend/app/repositories/game_repository.py
"""Game Repository: reads hosted games and writes their status fields."""

from sqlalchemy.orm import Session

from ..models.game import Game
from .base_repository import BaseRepository


class GameRepository(BaseRepository[Game]):
    def __init__(self, db: Session):
        super().__init__(db, Game)
