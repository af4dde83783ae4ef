"""
Dirty Scheduler for batch recomputation of player-format aggregates.

This is the main entry point of the engine. All recomputation should go
through it:

- update_statistics(): one aggregate, ingest → aggregate → score
- update_dirty_players(): every aggregate flagged dirty
- update(player_ref): every aggregate of one reference, whatever its flag
- mark_dirty(): flag aggregates stale when new data arrives

Each aggregate is committed on its own. A DataIntegrityFault rolls back
that aggregate only (it stays dirty) and the batch moves on.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from xfactor.core.exceptions import DataIntegrityFault, UnrecognizedFormatError
from xfactor.core.logging import clear_run_id, set_run_id
from xfactor.models import Freshness, MatchFormat, MatchTypePlayer
from xfactor.repositories import MatchTypePlayerRepository
from xfactor.services.identity_resolver import IdentityResolver
from xfactor.services.match_ingestor import IngestResult, MatchIngestor
from xfactor.services.row_parser import RowParser
from xfactor.services.score_engine import ScoreEngine, ScoreResult
from xfactor.services.source_document import SourceDocumentProvider
from xfactor.services.statistics_aggregator import AggregationResult, StatisticsAggregator

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one aggregate's recomputation."""
    player_ref: int
    type_number: int
    ingest: Optional[IngestResult] = None
    aggregation: Optional[AggregationResult] = None
    score: Optional[ScoreResult] = None

    @property
    def no_data(self) -> bool:
        return self.aggregation is None or self.aggregation.no_data


def _format_name(type_number: int) -> str:
    try:
        return MatchFormat.from_type_number(type_number).display_name
    except UnrecognizedFormatError:
        return str(type_number)


class DirtyScheduler:
    """Drives ingestion and recomputation of player-format aggregates."""

    def __init__(
        self,
        db: Session,
        provider: Optional[SourceDocumentProvider] = None,
        row_parser: Optional[RowParser] = None
    ):
        """
        Initialize the scheduler.

        Args:
            db: SQLAlchemy database session
            provider: Source of fielding-innings documents; required unless
                every call passes do_fielding=False
            row_parser: Parser for document rows (default fielding schema)
        """
        self.db = db
        self.provider = provider
        self.row_parser = row_parser or RowParser()
        self.aggregates = MatchTypePlayerRepository(db)
        self.identity_resolver = IdentityResolver(db, provider)
        self.ingestor = MatchIngestor(db)
        self.aggregator = StatisticsAggregator(db)
        self.score_engine = ScoreEngine()

    # ========================================================================
    # Single aggregate
    # ========================================================================

    def update_statistics(
        self,
        match_type_player: MatchTypePlayer,
        do_fielding: bool = True
    ) -> PipelineResult:
        """
        Recompute one aggregate end to end. Does not commit.

        Args:
            match_type_player: The aggregate to recompute
            do_fielding: Fetch and ingest fielding data first. When False,
                only identity is refreshed and stored performances re-folded.

        Returns:
            PipelineResult; no_data is True if the aggregate was removed

        Raises:
            DataIntegrityFault: a fielding row references an unknown match
        """
        mtp = match_type_player
        result = PipelineResult(player_ref=mtp.player_ref, type_number=mtp.type_number)
        logger.info(f"Updating statistics for {mtp.name or mtp.player_ref} ({_format_name(mtp.type_number)})")

        if do_fielding:
            if self.provider is None:
                raise RuntimeError("A SourceDocumentProvider is required to ingest fielding data")

            document = self.provider.fetch(mtp.player_ref, mtp.type_number)

            # If the player's basic details are incomplete then we can take
            # this opportunity to update them
            self.identity_resolver.resolve(mtp, document)
            rows = self.row_parser.parse_rows(document)
            result.ingest = self.ingestor.ingest(mtp, rows)
        else:
            self.identity_resolver.resolve(mtp)

        result.aggregation = self.aggregator.aggregate(mtp.id)
        if result.aggregation.no_data:
            return result

        result.score = self.score_engine.update(mtp)

        mtp.freshness = Freshness.CLEAN
        self.aggregates.touch(mtp)
        self.db.flush()
        return result

    # ========================================================================
    # Batches
    # ========================================================================

    def _run(self, aggregate_ids: List[str], do_fielding: bool, label: str) -> Dict:
        token = set_run_id(str(uuid.uuid4()))
        logger.info(f"Found {len(aggregate_ids)} {label} aggregates")
        summary = {
            "processed": 0,
            "updated": 0,
            "removed": 0,
            "failed": 0,
            "errors": []
        }

        try:
            for aggregate_id in aggregate_ids:
                mtp = self.aggregates.find_by_id(aggregate_id)
                if mtp is None:
                    continue

                summary["processed"] += 1
                try:
                    result = self.update_statistics(mtp, do_fielding=do_fielding)
                    self.db.commit()
                except DataIntegrityFault as e:
                    self.db.rollback()
                    summary["failed"] += 1
                    summary["errors"].append(f"{e.player_ref}: {e}")
                    logger.error(f"Aborted player_ref {e.player_ref}: {e}")
                    continue

                if result.no_data:
                    summary["removed"] += 1
                else:
                    summary["updated"] += 1

            logger.info(
                f"Batch complete: {summary['updated']} updated, "
                f"{summary['removed']} removed, {summary['failed']} failed"
            )
            return summary
        finally:
            clear_run_id(token)

    def update_dirty_players(self, do_fielding: bool = True) -> Dict:
        """
        Recompile aggregate stats for players with new performance information.

        Returns:
            Summary dict: processed, updated, removed, failed, errors
        """
        aggregate_ids = [mtp.id for mtp in self.aggregates.find_dirty()]
        return self._run(aggregate_ids, do_fielding, "dirty")

    def update(self, player_ref: int, do_fielding: bool = True) -> Dict:
        """Force recomputation of every aggregate for one external reference."""
        aggregate_ids = [mtp.id for mtp in self.aggregates.find_by_player_ref(player_ref)]
        return self._run(aggregate_ids, do_fielding, f"player_ref {player_ref}")

    # ========================================================================
    # Freshness and ranking
    # ========================================================================

    def mark_dirty(self, player_ref: int, type_number: Optional[int] = None) -> int:
        """
        Flag aggregates stale because new data is available.

        With a type_number, the aggregate for that format is created if it
        does not exist yet. Does not commit.

        Returns:
            Number of aggregates flagged
        """
        if type_number is not None:
            mtp, created = self.aggregates.find_or_create_for(
                player_ref, type_number, freshness=Freshness.DIRTY
            )
            if created:
                logger.info(f"Registered player_ref {player_ref} ({_format_name(type_number)})")
            aggregates = [mtp]
        else:
            aggregates = self.aggregates.find_by_player_ref(player_ref)

        for mtp in aggregates:
            mtp.freshness = Freshness.DIRTY
            self.aggregates.touch(mtp)

        self.db.flush()
        return len(aggregates)

    def ranking(self, type_number: int, limit: Optional[int] = None) -> List[MatchTypePlayer]:
        """Scored aggregates for one format, highest X-factor first."""
        return self.aggregates.find_ranked(type_number, limit=limit)
