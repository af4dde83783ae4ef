"""
Models Module.

Usage:
    from xfactor.models import MatchTypePlayer, Performance, Freshness
"""

from xfactor.models.models import (
    Base,
    MatchFormat,
    Freshness,
    Player,
    PlayerReference,
    PlayerMatchTypePlayer,
    MatchTypePlayer,
    Match,
    Innings,
    Performance,
)

__all__ = [
    "Base",
    "MatchFormat",
    "Freshness",
    "Player",
    "PlayerReference",
    "PlayerMatchTypePlayer",
    "MatchTypePlayer",
    "Match",
    "Innings",
    "Performance",
]
