"""
Career Statistics Aggregation Service.

Folds every Performance owned by a player-format aggregate into cumulative
batting, bowling and fielding totals and the rates derived from them.

Key rules:
- Batting is folded only when runs is present (NULL means did not bat)
- Bowling is folded only when overs is present; overs and odd balls are
  converted to a ball count, summed, and re-derived from the total
- Fielding is folded only when dismissals is numeric ("TDNF" rows are left out)
- Every rate uses guarded division; a zero denominator leaves the rate unset
- An aggregate with no performances is deleted and reported as "no data"

Data Flow:
    Performance rows → normalize_performance → CareerFold → MatchTypePlayer
"""
import logging
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from xfactor.models import MatchTypePlayer, Performance
from xfactor.repositories import MatchTypePlayerRepository, PerformanceRepository
from xfactor.utils.overs import from_balls, overs_as_float, to_balls, to_overs_string

logger = logging.getLogger(__name__)

# Dismissal descriptions that leave an innings incomplete
NOT_OUT_PHRASES = frozenset({"not out", "retired hurt", "absent hurt"})


def is_number(value: Any) -> bool:
    return isinstance(value, numbers.Number) and not isinstance(value, bool)


def is_not_out(howout: Optional[str]) -> bool:
    """True when the dismissal description means the batter was not out."""
    if not howout:
        return False
    return howout.strip().lower() in NOT_OUT_PHRASES


def _count(value: Any) -> int:
    return value if is_number(value) else 0


@dataclass
class NormalizationResult:
    """Outcome of the normalize step for one Performance."""
    corrections: Dict[str, Tuple[Any, Any]] = field(default_factory=dict)

    @property
    def corrected(self) -> bool:
        return bool(self.corrections)


def normalize_performance(performance: Performance) -> NormalizationResult:
    """
    Repair malformed batting counts in place.

    Non-numeric runs or sixes (e.g. a stray "-" from the source) become 0.
    Also derives the not-out flag from the dismissal description.

    Returns:
        NormalizationResult listing each corrected field as (old, new)
    """
    result = NormalizationResult()
    if performance.runs is None:
        return result

    for name in ("runs", "sixes"):
        value = getattr(performance, name)
        if not is_number(value):
            setattr(performance, name, 0)
            result.corrections[name] = (value, 0)

    performance.notout = is_not_out(performance.howout)
    return result


@dataclass
class CumulativeStats:
    """Cumulative career statistics for one player-format aggregate."""
    # Batting
    innings: int = 0
    completed: int = 0
    runs: int = 0
    minutes: int = 0
    balls: int = 0
    fours: int = 0
    sixes: int = 0
    bat_average: Optional[float] = None
    bat_strikerate: Optional[float] = None

    # Bowling
    balls_delivered: int = 0
    overs: int = 0
    oddballs: int = 0
    overs_string: str = ""
    maidens: int = 0
    runsconceded: int = 0
    wickets: int = 0
    bowl_average: Optional[float] = None
    bowl_strikerate: Optional[float] = None
    economy: Optional[float] = None

    # Fielding
    dismissals: int = 0
    catches_total: int = 0
    stumpings: int = 0
    catches_wkt: int = 0
    catches: int = 0


class CareerFold:
    """
    Running fold over Performances.

    add() accumulates one Performance and returns the snapshot rates for it;
    finish() derives the career rates from the totals, so the result does
    not depend on the order Performances were added in.
    """

    def __init__(self):
        self.stats = CumulativeStats()
        self._bowled = False

    def add(self, pf: Performance) -> Dict[str, float]:
        stats = self.stats
        snapshot: Dict[str, float] = {}

        # Batting
        if pf.runs is not None:
            stats.innings += 1
            if not is_not_out(pf.howout):
                stats.completed += 1
            stats.runs += _count(pf.runs)
            stats.minutes += _count(pf.minutes)
            stats.balls += _count(pf.balls)
            stats.fours += _count(pf.fours)
            stats.sixes += _count(pf.sixes)

            if stats.completed > 0:
                snapshot["average"] = stats.runs / stats.completed
            if stats.balls > 0:
                snapshot["cum_strikerate"] = 100 * stats.runs / stats.balls

        # Bowling
        if pf.overs is not None:
            self._bowled = True
            innings_balls = to_balls(_count(pf.overs), _count(pf.oddballs))
            innings_wickets = _count(pf.wickets)

            stats.balls_delivered += innings_balls
            stats.maidens += _count(pf.maidens)
            stats.runsconceded += _count(pf.runsconceded)
            stats.wickets += innings_wickets

            if innings_wickets > 0:
                snapshot["strikerate"] = innings_balls / innings_wickets
            if stats.wickets > 0:
                snapshot["average"] = stats.runsconceded / stats.wickets
                snapshot["cum_strikerate"] = stats.balls_delivered / stats.wickets
            if stats.balls_delivered > 0:
                snapshot["cum_economy"] = stats.runsconceded / overs_as_float(stats.balls_delivered)

        # Fielding (dismissals can be 'TDNF' if the player did not take the field)
        if is_number(pf.dismissals):
            stats.dismissals += pf.dismissals
            stats.catches_total += _count(pf.catches_total)
            stats.stumpings += _count(pf.stumpings)
            stats.catches_wkt += _count(pf.catches_wkt)
            stats.catches += _count(pf.catches)

        return snapshot

    def finish(self) -> CumulativeStats:
        stats = self.stats

        if stats.completed > 0:
            stats.bat_average = stats.runs / stats.completed
        if stats.balls > 0:
            stats.bat_strikerate = 100 * stats.runs / stats.balls

        # Rationalise overs and odd balls from the ball count
        stats.overs, stats.oddballs = from_balls(stats.balls_delivered)
        if self._bowled:
            stats.overs_string = to_overs_string(stats.balls_delivered)

        if stats.wickets > 0:
            stats.bowl_average = stats.runsconceded / stats.wickets
            stats.bowl_strikerate = stats.balls_delivered / stats.wickets
        if stats.balls_delivered > 0:
            stats.economy = stats.runsconceded / overs_as_float(stats.balls_delivered)

        return stats


def fold_performances(performances: Iterable[Performance]) -> CumulativeStats:
    """Cumulative statistics for a collection of Performances (no writes)."""
    fold = CareerFold()
    for pf in performances:
        fold.add(pf)
    return fold.finish()


def apply_stats(match_type_player: MatchTypePlayer, stats: CumulativeStats) -> None:
    """
    Copy cumulative statistics onto the aggregate.

    Rates that could not be computed (zero denominator) keep their stored
    value.
    """
    mtp = match_type_player

    # Overall batting
    mtp.innings = stats.innings
    mtp.completed = stats.completed
    mtp.runs = stats.runs
    mtp.minutes = stats.minutes
    mtp.balls = stats.balls
    mtp.fours = stats.fours
    mtp.sixes = stats.sixes
    if stats.bat_average is not None:
        mtp.bat_average = stats.bat_average
    if stats.bat_strikerate is not None:
        mtp.bat_strikerate = stats.bat_strikerate

    # Overall bowling
    mtp.overs = stats.overs
    mtp.oddballs = stats.oddballs
    mtp.overs_string = stats.overs_string
    mtp.maidens = stats.maidens
    mtp.runsconceded = stats.runsconceded
    mtp.wickets = stats.wickets
    if stats.bowl_average is not None:
        mtp.bowl_average = stats.bowl_average
    if stats.bowl_strikerate is not None:
        mtp.bowl_strikerate = stats.bowl_strikerate
    if stats.economy is not None:
        mtp.economy = stats.economy

    # Overall fielding
    mtp.dismissals = stats.dismissals
    mtp.catches_total = stats.catches_total
    mtp.stumpings = stats.stumpings
    mtp.catches_wkt = stats.catches_wkt
    mtp.catches = stats.catches


@dataclass
class AggregationResult:
    """Outcome of aggregating one player-format aggregate."""
    stats: Optional[CumulativeStats] = None
    performance_count: int = 0
    corrections: int = 0

    @property
    def no_data(self) -> bool:
        return self.stats is None


class StatisticsAggregator:
    """Recomputes cumulative statistics from stored Performances."""

    def __init__(self, db: Session):
        self.db = db
        self.aggregates = MatchTypePlayerRepository(db)
        self.performances = PerformanceRepository(db)

    def aggregate(self, match_type_player_id: str) -> AggregationResult:
        """
        Fold all Performances of one aggregate and store the result on it.

        Args:
            match_type_player_id: ID of the MatchTypePlayer

        Returns:
            AggregationResult; no_data is True when the aggregate had no
            performances and has been deleted
        """
        mtp = self.aggregates.find_by_id(match_type_player_id)
        if mtp is None:
            logger.warning(f"MatchTypePlayer {match_type_player_id} not found")
            return AggregationResult()

        performances = self.performances.find_for_aggregate(mtp.id)

        # A player may have no performances, in which case we don't need them
        if not performances:
            logger.info(f"No performances for {mtp.name or mtp.player_ref}, removing aggregate")
            self.aggregates.delete_restricted(mtp)
            return AggregationResult()

        fold = CareerFold()
        corrections = 0
        for pf in performances:
            normalized = normalize_performance(pf)
            if normalized.corrected:
                corrections += 1
                logger.warning(
                    f"Corrected performance {pf.id}: "
                    + ", ".join(f"{k} {old!r} -> {new!r}" for k, (old, new) in normalized.corrections.items())
                )

            for name, value in fold.add(pf).items():
                setattr(pf, name, value)
            self.performances.touch(pf)

        stats = fold.finish()
        apply_stats(mtp, stats)
        self.aggregates.touch(mtp)
        self.db.flush()

        logger.debug(
            f"Aggregated {len(performances)} performances for {mtp.name or mtp.player_ref}: "
            f"{stats.runs} runs, {stats.wickets} wickets, {stats.catches_total} catches"
        )
        return AggregationResult(
            stats=stats,
            performance_count=len(performances),
            corrections=corrections
        )
