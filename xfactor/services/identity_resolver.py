"""
Player Identity Resolution Service.

Merges the external references of a player-format aggregate into canonical
Player records keyed by slug:

- Display name ("SR Tendulkar"): primary Player, attached to the aggregate
- Full name ("Sachin Ramesh Tendulkar"): owning Player
- Each full-name token ("sachin", "ramesh", "tendulkar"): coarse index
  Players that collect references but no aggregate back-references

Every update is a set union, so resolving the same aggregate twice, or two
aggregates in either order, ends with the same reference sets.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from xfactor.models import MatchTypePlayer, Player
from xfactor.repositories import PlayerRepository
from xfactor.services.source_document import (
    SourceDocument,
    SourceDocumentProvider,
    extract_display_name,
    find_full_name,
)
from xfactor.utils.slug import slugify, name_tokens

logger = logging.getLogger(__name__)


@dataclass
class IdentityResult:
    """Players touched by one resolution pass."""
    primary: Optional[Player] = None
    owners: List[Player] = field(default_factory=list)
    tokens: List[Player] = field(default_factory=list)
    document: Optional[SourceDocument] = None

    @property
    def slugs(self) -> List[str]:
        return [p.slug for p in [self.primary, *self.owners, *self.tokens] if p is not None]


class IdentityResolver:
    """Resolves a player-format aggregate to canonical Player identities."""

    def __init__(self, db: Session, provider: Optional[SourceDocumentProvider] = None):
        self.db = db
        self.provider = provider
        self.players = PlayerRepository(db)

    def resolve(
        self,
        match_type_player: MatchTypePlayer,
        document: Optional[SourceDocument] = None
    ) -> IdentityResult:
        """
        Ensure Player records exist for the aggregate's names and link them.

        Missing names are filled from the document first (fetched from the
        provider only when a name is blank). A name that still cannot be
        determined is skipped and picked up on the next pass.

        Args:
            match_type_player: The aggregate to resolve
            document: Already fetched source document, if any

        Returns:
            IdentityResult with the players touched
        """
        mtp = match_type_player
        document = self._complete_names(mtp, document)
        result = IdentityResult(document=document)

        # Scorecard name (primary document)
        if mtp.name and slugify(mtp.name):
            player = self._merge(slugify(mtp.name), mtp, owner=True)
            player.master_ref = mtp.player_ref
            player.name = mtp.name
            if mtp.fullname:
                player.fullname = mtp.fullname
            self.players.touch(player)
            mtp.player = player
            result.primary = player
        else:
            logger.debug(f"No display name yet for player_ref {mtp.player_ref}")

        if not mtp.fullname:
            logger.debug(f"No full name yet for player_ref {mtp.player_ref}")
            return result

        # Full name
        slug = slugify(mtp.fullname)
        if slug:
            result.owners.append(self._merge(slug, mtp, owner=True))

        # Name parts
        for token in name_tokens(mtp.fullname):
            subslug = slugify(token)
            if subslug:
                result.tokens.append(self._merge(subslug, mtp, owner=False))

        return result

    def _merge(self, slug: str, mtp: MatchTypePlayer, owner: bool) -> Player:
        player, created = self.players.find_or_create_by_slug(slug)
        if created:
            logger.debug(f"Created player {slug}")
        self.players.add_reference(player, mtp.player_ref)
        if owner:
            self.players.add_match_type_player(player, mtp.id)
        return player

    def _complete_names(
        self,
        mtp: MatchTypePlayer,
        document: Optional[SourceDocument]
    ) -> Optional[SourceDocument]:
        if mtp.name and mtp.fullname:
            return document

        if document is None:
            document = self._fetch(mtp)

        if not mtp.name:
            mtp.name = extract_display_name(document)

        if not mtp.fullname:
            mtp.fullname = find_full_name(document)

        return document

    def _fetch(self, mtp: MatchTypePlayer) -> Optional[SourceDocument]:
        if self.provider is None:
            return None
        return self.provider.fetch(mtp.player_ref, mtp.type_number)
