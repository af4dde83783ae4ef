"""
Match Ingestion Service.

Writes parsed fielding rows into the Match -> Innings -> Performance history
of one player-format aggregate:

1. Resolves every referenced Match up front; a reference missing from the
   catalog is a DataIntegrityFault and nothing is written
2. Records the debut and most recent match dates on the aggregate, also
   for rows skipped as "did not field"
3. Finds or creates the Innings and the Performance for each match row
4. Overwrites the Performance's fielding counts (re-ingestion is an upsert)
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from xfactor.core.exceptions import DataIntegrityFault
from xfactor.models import Match, MatchTypePlayer
from xfactor.repositories import MatchRepository, PerformanceRepository
from xfactor.services.row_parser import MatchRow, ParsedRow, SkipRow, SummaryRow

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Counts from one ingestion pass."""
    summary_rows: int = 0
    match_rows: int = 0
    skipped_rows: int = 0
    performances_created: int = 0
    performances_updated: int = 0
    lastmatch: Optional[date] = None

    @property
    def total_rows(self) -> int:
        return self.summary_rows + self.match_rows + self.skipped_rows

    @property
    def has_match_data(self) -> bool:
        return self.match_rows > 0


class MatchIngestor:
    """Upserts fielding performances for one aggregate."""

    def __init__(self, db: Session):
        self.db = db
        self.matches = MatchRepository(db)
        self.performances = PerformanceRepository(db)

    def _resolve_matches(self, rows: List[ParsedRow], player_ref) -> Dict[str, Match]:
        resolved: Dict[str, Match] = {}
        for row in rows:
            match_ref = getattr(row, "match_ref", None)
            if match_ref is None or match_ref in resolved:
                continue
            match = self.matches.find_by_ref(match_ref)
            if match is None:
                raise DataIntegrityFault(match_ref, player_ref)
            resolved[match_ref] = match
        return resolved

    def _track_dates(self, mtp: MatchTypePlayer, match: Match, result: IngestResult) -> None:
        # Is this the player's debut match?
        if mtp.firstmatch is None:
            mtp.firstmatch = match.date_start

        if match.date_end is not None and (
            result.lastmatch is None or match.date_end > result.lastmatch
        ):
            result.lastmatch = match.date_end

    def ingest(self, match_type_player: MatchTypePlayer, rows: Iterable[ParsedRow]) -> IngestResult:
        """
        Ingest parsed rows for an aggregate.

        An empty row list is a valid outcome: the source has no data for
        this reference.

        Raises:
            DataIntegrityFault: a row references a match not in the catalog
        """
        mtp = match_type_player
        rows = list(rows)
        matches = self._resolve_matches(rows, mtp.player_ref)
        result = IngestResult()

        for row in rows:
            if isinstance(row, SummaryRow):
                result.summary_rows += 1
                mtp.matchcount = row.match_count

            elif isinstance(row, MatchRow):
                result.match_rows += 1
                match = matches[row.match_ref]
                self._track_dates(mtp, match, result)

                innings, _ = self.matches.find_or_create_innings(match, row.inning_number)
                performance, created = self.performances.find_or_create_for(innings, mtp)

                fielding = row.fielding
                performance.dismissals = fielding.dismissals
                performance.catches_total = fielding.catches_total
                performance.stumpings = fielding.stumpings
                performance.catches_wkt = fielding.catches_wkt
                performance.catches = fielding.catches
                self.performances.touch(performance)

                if created:
                    result.performances_created += 1
                else:
                    result.performances_updated += 1

            elif isinstance(row, SkipRow):
                result.skipped_rows += 1
                # The player was in the side even if the team did not field
                if row.match_ref is not None:
                    self._track_dates(mtp, matches[row.match_ref], result)

        if result.lastmatch is not None:
            mtp.lastmatch = result.lastmatch

        self.db.flush()

        logger.info(
            f"Ingested {result.match_rows} match rows for player_ref {mtp.player_ref} "
            f"({result.performances_created} new, {result.performances_updated} updated, "
            f"{result.skipped_rows} skipped)"
        )
        return result
