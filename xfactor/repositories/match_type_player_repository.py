"""
MatchTypePlayer Repository for player-format aggregates.

Provides the freshness scopes (dirty / clean / indeterminate), the ranking
query and the restricted delete: an aggregate that still owns performances
cannot be deleted.
"""
from typing import Optional, List

from xfactor.core.exceptions import AggregateHasPerformancesError
from xfactor.models import MatchTypePlayer, Freshness, PlayerMatchTypePlayer
from xfactor.repositories.base import BaseRepository
from xfactor.repositories.match_repository import PerformanceRepository


class MatchTypePlayerRepository(BaseRepository[MatchTypePlayer]):
    """Repository for player-format aggregates."""

    def __init__(self, db):
        super().__init__(MatchTypePlayer, db)

    # ========================================================================
    # Lookups
    # ========================================================================

    def find_by_ref_and_type(self, player_ref: int, type_number: int) -> Optional[MatchTypePlayer]:
        """Find the aggregate for one (reference, format) pair."""
        return self.where_first(
            MatchTypePlayer.player_ref == player_ref,
            MatchTypePlayer.type_number == type_number
        )

    def find_or_create_for(self, player_ref: int, type_number: int, **defaults):
        """Resolve the aggregate for one (reference, format) pair."""
        return self.find_or_create(
            defaults=defaults or None,
            player_ref=player_ref,
            type_number=type_number
        )

    def find_by_player_ref(self, player_ref: int) -> List[MatchTypePlayer]:
        """All aggregates for one external reference, any format or freshness."""
        return (
            self.query()
            .filter(MatchTypePlayer.player_ref == player_ref)
            .order_by(MatchTypePlayer.type_number)
            .all()
        )

    # ========================================================================
    # Freshness scopes
    # ========================================================================

    def find_dirty(self) -> List[MatchTypePlayer]:
        return self.where(MatchTypePlayer.freshness == Freshness.DIRTY)

    def find_clean(self) -> List[MatchTypePlayer]:
        return self.where(MatchTypePlayer.freshness == Freshness.CLEAN)

    def find_indeterminate(self) -> List[MatchTypePlayer]:
        return self.where(MatchTypePlayer.freshness == Freshness.INDETERMINATE)

    def find_ranked(self, type_number: int, limit: Optional[int] = None) -> List[MatchTypePlayer]:
        """Aggregates with a score for one format, highest score first."""
        query = (
            self.query()
            .filter(
                MatchTypePlayer.type_number == type_number,
                MatchTypePlayer.xfactor.isnot(None)
            )
            .order_by(MatchTypePlayer.xfactor.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    # ========================================================================
    # Mutations
    # ========================================================================

    def delete_restricted(self, match_type_player: MatchTypePlayer) -> None:
        """
        Delete an aggregate that owns no performances.

        Raises:
            AggregateHasPerformancesError: if any performance still references it
        """
        remaining = PerformanceRepository(self.db).count_for_aggregate(match_type_player.id)
        if remaining:
            raise AggregateHasPerformancesError(match_type_player.id, remaining)

        self.db.query(PlayerMatchTypePlayer).filter(
            PlayerMatchTypePlayer.match_type_player_id == match_type_player.id
        ).delete(synchronize_session=False)
        self.db.delete(match_type_player)
        self.db.flush()
