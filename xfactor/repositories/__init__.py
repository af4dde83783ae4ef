"""
Repository layer for data access.

Usage:
    from xfactor.repositories import MatchTypePlayerRepository
    from xfactor.core.database import SessionLocal

    db = SessionLocal()
    repo = MatchTypePlayerRepository(db)
    dirty = repo.find_dirty()
    db.close()
"""

from xfactor.repositories.base import BaseRepository
from xfactor.repositories.player_repository import PlayerRepository
from xfactor.repositories.match_repository import MatchRepository, PerformanceRepository
from xfactor.repositories.match_type_player_repository import MatchTypePlayerRepository

__all__ = [
    "BaseRepository",
    "PlayerRepository",
    "MatchRepository",
    "PerformanceRepository",
    "MatchTypePlayerRepository",
]
