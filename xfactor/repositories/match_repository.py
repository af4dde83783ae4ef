"""
Match Repository for the Match -> Innings -> Performance history.

Matches are catalogued by an external process and are only looked up here.
Innings and Performances are created on demand with find-or-create.
"""
from typing import Optional, List, Tuple

from xfactor.models import Match, Innings, Performance, MatchTypePlayer
from xfactor.repositories.base import BaseRepository


class MatchRepository(BaseRepository[Match]):
    """Repository for matches and their innings."""

    def __init__(self, db):
        super().__init__(Match, db)
        self._innings = BaseRepository(Innings, db)

    def find_by_ref(self, match_ref: str) -> Optional[Match]:
        """Find a match by its external reference."""
        return self.where_first(Match.match_ref == str(match_ref))

    def find_or_create_innings(self, match: Match, inning_number: int) -> Tuple[Innings, bool]:
        """Resolve an innings by (match, innings number)."""
        return self._innings.find_or_create(match_id=match.id, inning_number=inning_number)


class PerformanceRepository(BaseRepository[Performance]):
    """Repository for per-innings performances."""

    def __init__(self, db):
        super().__init__(Performance, db)

    def find_or_create_for(
        self,
        innings: Innings,
        match_type_player: MatchTypePlayer
    ) -> Tuple[Performance, bool]:
        """Resolve a performance by (innings, aggregate)."""
        return self.find_or_create(
            innings_id=innings.id,
            match_type_player_id=match_type_player.id
        )

    def find_for_aggregate(self, match_type_player_id: str) -> List[Performance]:
        """
        All performances owned by an aggregate, oldest first.

        Ordering only matters for the per-performance snapshot rates; the
        cumulative totals do not depend on it.
        """
        return (
            self.db.query(Performance)
            .join(Innings, Performance.innings_id == Innings.id)
            .join(Match, Innings.match_id == Match.id)
            .filter(Performance.match_type_player_id == match_type_player_id)
            .order_by(Match.date_start, Match.match_ref, Innings.inning_number)
            .all()
        )

    def count_for_aggregate(self, match_type_player_id: str) -> int:
        """Number of performances owned by an aggregate."""
        return self.count(Performance.match_type_player_id == match_type_player_id)
