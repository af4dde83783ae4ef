"""
Player Repository for canonical identity data access.

Reference sets are modelled as link rows with unique constraints, so
add-to-set is an idempotent find-or-create and concurrent merges commute.

Usage:
    repo = PlayerRepository(db)
    player, created = repo.find_or_create_by_slug("sachin-tendulkar")
    repo.add_reference(player, 35320)
"""
from typing import Optional, Set

from xfactor.models import Player, PlayerReference, PlayerMatchTypePlayer
from xfactor.repositories.base import BaseRepository


class PlayerRepository(BaseRepository[Player]):
    """Repository for canonical Player identities."""

    def __init__(self, db):
        super().__init__(Player, db)
        self._references = BaseRepository(PlayerReference, db)
        self._links = BaseRepository(PlayerMatchTypePlayer, db)

    def find_by_slug(self, slug: str) -> Optional[Player]:
        """Find a player by slug."""
        return self.where_first(Player.slug == slug)

    def find_or_create_by_slug(self, slug: str):
        """Find or create a player by slug. Returns (player, was_created)."""
        return self.find_or_create(slug=slug)

    def find_by_reference(self, player_ref: int) -> list[Player]:
        """All players whose reference set contains player_ref."""
        return (
            self.db.query(Player)
            .join(PlayerReference, PlayerReference.player_id == Player.id)
            .filter(PlayerReference.player_ref == player_ref)
            .all()
        )

    # ========================================================================
    # Set-union updates
    # ========================================================================

    def add_reference(self, player: Player, player_ref: int) -> bool:
        """Add an external reference to the player's set. Returns True if new."""
        created = self._references.add_to_set(player_id=player.id, player_ref=player_ref)
        if created:
            self.db.expire(player, ["references"])
        return created

    def add_match_type_player(self, player: Player, match_type_player_id: str) -> bool:
        """Add an aggregate back-reference to the player's set. Returns True if new."""
        created = self._links.add_to_set(
            player_id=player.id,
            match_type_player_id=match_type_player_id
        )
        if created:
            self.db.expire(player, ["match_type_player_links"])
        return created

    def get_references(self, player: Player) -> Set[int]:
        """Reference set read straight from the link table."""
        rows = self.db.query(PlayerReference.player_ref).filter(
            PlayerReference.player_id == player.id
        ).all()
        return {row[0] for row in rows}

    def get_match_type_player_ids(self, player: Player) -> Set[str]:
        """Back-reference set read straight from the link table."""
        rows = self.db.query(PlayerMatchTypePlayer.match_type_player_id).filter(
            PlayerMatchTypePlayer.player_id == player.id
        ).all()
        return {row[0] for row in rows}
