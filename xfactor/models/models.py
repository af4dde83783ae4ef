"""
Database models for the X-Factor statistics engine.

Relational history: Match -> Innings -> Performance, with Performances owned
by a MatchTypePlayer (one player reference within one format) and canonical
Player identities indexing the external references.
"""
import enum
from datetime import datetime
from sqlalchemy import (
    Column, String, Float, Integer, DateTime, Date, ForeignKey, Boolean, Enum, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base

from xfactor.core.exceptions import UnrecognizedFormatError

Base = declarative_base()


# =============================================================================
# ENUMERATIONS
# =============================================================================

class MatchFormat(enum.IntEnum):
    """Supported match types, numbered as the statistics source numbers them."""
    TEST = 1
    ODI = 2
    T20I = 3

    @property
    def display_name(self) -> str:
        return {1: "Test", 2: "ODI", 3: "T20I"}[self.value]

    @classmethod
    def from_type_number(cls, type_number) -> "MatchFormat":
        try:
            return cls(type_number)
        except ValueError:
            raise UnrecognizedFormatError(type_number) from None


class Freshness(enum.Enum):
    """
    Freshness of an aggregate relative to its Performance data.

    INDETERMINATE means the aggregate has never been computed, which is not
    the same as DIRTY (computed once, now stale).
    """
    DIRTY = "dirty"
    CLEAN = "clean"
    INDETERMINATE = "indeterminate"


# =============================================================================
# PLAYER IDENTITY
# =============================================================================

class Player(Base):
    """Canonical player identity keyed by a slug derived from a name."""
    __tablename__ = "players"

    id = Column(String(36), primary_key=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    fullname = Column(String(255), nullable=True)
    master_ref = Column(Integer, nullable=True)  # Reference whose display name created this player
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    references = relationship("PlayerReference", back_populates="player", cascade="all, delete-orphan")
    match_type_player_links = relationship(
        "PlayerMatchTypePlayer", back_populates="player", cascade="all, delete-orphan"
    )

    @property
    def player_refs(self) -> set[int]:
        """Set of external references known for this player."""
        return {ref.player_ref for ref in self.references}

    @property
    def match_type_player_ids(self) -> set[str]:
        """Set of owning aggregate record ids."""
        return {link.match_type_player_id for link in self.match_type_player_links}

    def __repr__(self):
        return f"Player(slug={self.slug!r}, name={self.name!r})"


class PlayerReference(Base):
    """One external reference id in a Player's reference set."""
    __tablename__ = "player_references"

    id = Column(String(36), primary_key=True)
    player_id = Column(String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    player_ref = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    player = relationship("Player", back_populates="references")

    __table_args__ = (
        UniqueConstraint('player_id', 'player_ref', name='uq_player_references_player_ref'),
    )


class PlayerMatchTypePlayer(Base):
    """Back-reference from a Player to an aggregate record it owns."""
    __tablename__ = "player_match_type_players"

    id = Column(String(36), primary_key=True)
    player_id = Column(String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    match_type_player_id = Column(
        String(36), ForeignKey("match_type_players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    player = relationship("Player", back_populates="match_type_player_links")

    __table_args__ = (
        UniqueConstraint('player_id', 'match_type_player_id', name='uq_player_match_type_players'),
    )


# =============================================================================
# PLAYER-FORMAT AGGREGATE
# =============================================================================

class MatchTypePlayer(Base):
    """Cumulative career record for one external player reference within one format."""
    __tablename__ = "match_type_players"

    id = Column(String(36), primary_key=True)

    # Basic
    type_number = Column(Integer, nullable=False, index=True)
    player_ref = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    fullname = Column(String(255), nullable=True)
    freshness = Column(
        Enum(Freshness, name="freshness"),
        nullable=False,
        default=Freshness.INDETERMINATE,
        index=True
    )
    player_id = Column(String(36), ForeignKey("players.id"), nullable=True, index=True)

    # Career
    matchcount = Column(Integer, nullable=True)
    firstmatch = Column(Date, nullable=True)
    lastmatch = Column(Date, nullable=True)
    xfactor = Column(Float, nullable=True)  # NULL when ineligible or never computed

    # Batting
    innings = Column(Integer, nullable=True)
    completed = Column(Integer, nullable=True)
    runs = Column(Integer, nullable=True)
    minutes = Column(Integer, nullable=True)
    balls = Column(Integer, nullable=True)
    fours = Column(Integer, nullable=True)
    sixes = Column(Integer, nullable=True)
    bat_average = Column(Float, nullable=True)
    bat_strikerate = Column(Float, nullable=True)

    # Bowling
    overs = Column(Integer, nullable=True)
    oddballs = Column(Integer, nullable=True)
    overs_string = Column(String(20), nullable=True)
    maidens = Column(Integer, nullable=True)
    runsconceded = Column(Integer, nullable=True)
    wickets = Column(Integer, nullable=True)
    economy = Column(Float, nullable=True)
    bowl_average = Column(Float, nullable=True)
    bowl_strikerate = Column(Float, nullable=True)

    # Fielding
    dismissals = Column(Integer, nullable=True)
    catches_total = Column(Integer, nullable=True)
    stumpings = Column(Integer, nullable=True)
    catches_wkt = Column(Integer, nullable=True)
    catches = Column(Integer, nullable=True)  # Not as a wicketkeeper

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    player = relationship("Player")
    # No delete cascade: performances must be removed before the aggregate
    performances = relationship("Performance", back_populates="match_type_player", passive_deletes="all")

    __table_args__ = (
        UniqueConstraint('player_ref', 'type_number', name='uq_match_type_players_ref_type'),
        Index('ix_match_type_players_type_xfactor', 'type_number', 'xfactor'),
    )

    @property
    def match_format(self) -> MatchFormat:
        return MatchFormat.from_type_number(self.type_number)

    def __repr__(self):
        return (f"MatchTypePlayer(player_ref={self.player_ref}, "
                f"type_number={self.type_number}, name={self.name!r})")


# =============================================================================
# MATCH HISTORY
# =============================================================================

class Match(Base):
    """One external match. Catalogued by an external process."""
    __tablename__ = "matches"

    id = Column(String(36), primary_key=True)
    match_ref = Column(String(50), unique=True, nullable=False, index=True)
    date_start = Column(Date, nullable=True)
    date_end = Column(Date, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    innings = relationship("Innings", back_populates="match", cascade="all, delete-orphan")

    def __repr__(self):
        return f"Match(match_ref={self.match_ref!r}, date_start={self.date_start})"


class Innings(Base):
    """One innings within a Match."""
    __tablename__ = "innings"

    id = Column(String(36), primary_key=True)
    match_id = Column(String(36), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    inning_number = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    match = relationship("Match", back_populates="innings")
    performances = relationship("Performance", back_populates="innings")

    __table_args__ = (
        UniqueConstraint('match_id', 'inning_number', name='uq_innings_match_inning'),
    )


class Performance(Base):
    """One player's record within one Innings."""
    __tablename__ = "performances"

    id = Column(String(36), primary_key=True)
    innings_id = Column(String(36), ForeignKey("innings.id", ondelete="CASCADE"), nullable=False, index=True)
    match_type_player_id = Column(
        String(36), ForeignKey("match_type_players.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Batting (runs is NULL when the player did not bat)
    runs = Column(Integer, nullable=True)
    minutes = Column(Integer, nullable=True)
    balls = Column(Integer, nullable=True)
    fours = Column(Integer, nullable=True)
    sixes = Column(Integer, nullable=True)
    howout = Column(String(100), nullable=True)
    notout = Column(Boolean, nullable=True)

    # Bowling (overs is NULL when the player did not bowl)
    overs = Column(Integer, nullable=True)
    oddballs = Column(Integer, nullable=True)
    maidens = Column(Integer, nullable=True)
    runsconceded = Column(Integer, nullable=True)
    wickets = Column(Integer, nullable=True)

    # Fielding
    dismissals = Column(Integer, nullable=True)
    catches_total = Column(Integer, nullable=True)
    stumpings = Column(Integer, nullable=True)
    catches_wkt = Column(Integer, nullable=True)
    catches = Column(Integer, nullable=True)

    # Snapshot rates written by the statistics fold
    average = Column(Float, nullable=True)
    strikerate = Column(Float, nullable=True)
    cum_strikerate = Column(Float, nullable=True)
    cum_economy = Column(Float, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    innings = relationship("Innings", back_populates="performances")
    match_type_player = relationship("MatchTypePlayer", back_populates="performances")

    __table_args__ = (
        UniqueConstraint('innings_id', 'match_type_player_id', name='uq_performances_innings_mtp'),
    )
