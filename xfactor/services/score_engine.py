"""
X-Factor Score Engine.

Computes the composite ranking score of a player-format aggregate from its
already-aggregated statistics. Scoring is pure; apply() writes the outcome.

Eligibility (all must hold):
- Test: runs >= 500, batting average >= 30, wickets >= 50,
  bowling average <= 35, last match in or after 1945
- ODI: runs >= 500, batting average >= 20, wickets >= 50
- T20I: runs >= 150, batting average >= 10, wickets >= 15

Formulas:
- Test: 5 + batting average - bowling average + catches per match
- ODI / T20I: batting strike rate - economy * 100 / 6
  + balls faced per completed innings - bowling strike rate
  + catches per match

Per-match and per-innings ratios are taken on whole counts (floor division).
"""
import enum
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from xfactor.core.exceptions import UnrecognizedFormatError
from xfactor.models import MatchFormat, MatchTypePlayer

logger = logging.getLogger(__name__)


class ScoreOutcome(enum.Enum):
    SCORED = "scored"
    INELIGIBLE = "ineligible"
    UNKNOWN_FORMAT = "unknown_format"


@dataclass(frozen=True)
class ScoreResult:
    outcome: ScoreOutcome
    value: Optional[float] = None
    reason: str = ""

    @property
    def is_scored(self) -> bool:
        return self.outcome is ScoreOutcome.SCORED


@dataclass(frozen=True)
class EligibilityRule:
    min_runs: int
    min_bat_average: float
    min_wickets: int
    max_bowl_average: Optional[float] = None
    min_last_match: Optional[date] = None


ELIGIBILITY_RULES = {
    MatchFormat.TEST: EligibilityRule(
        min_runs=500,
        min_bat_average=30,
        min_wickets=50,
        max_bowl_average=35,
        min_last_match=date(1945, 1, 1),
    ),
    MatchFormat.ODI: EligibilityRule(min_runs=500, min_bat_average=20, min_wickets=50),
    MatchFormat.T20I: EligibilityRule(min_runs=150, min_bat_average=10, min_wickets=15),
}


def _ineligible(reason: str) -> ScoreResult:
    return ScoreResult(ScoreOutcome.INELIGIBLE, reason=reason)


def check_eligibility(mtp: MatchTypePlayer, rule: EligibilityRule) -> Optional[str]:
    """Reason the aggregate fails the rule, or None if it qualifies."""
    if (mtp.runs or 0) < rule.min_runs:
        return f"runs {mtp.runs} < {rule.min_runs}"
    if mtp.bat_average < rule.min_bat_average:
        return f"batting average {mtp.bat_average:.2f} < {rule.min_bat_average}"
    if (mtp.wickets or 0) < rule.min_wickets:
        return f"wickets {mtp.wickets} < {rule.min_wickets}"
    if rule.max_bowl_average is not None and mtp.bowl_average > rule.max_bowl_average:
        return f"bowling average {mtp.bowl_average:.2f} > {rule.max_bowl_average}"
    if rule.min_last_match is not None and (
        mtp.lastmatch is None or mtp.lastmatch < rule.min_last_match
    ):
        return f"last match {mtp.lastmatch} before {rule.min_last_match.year}"
    if not mtp.matchcount:
        return "no matches counted"
    return None


def long_form_xfactor(mtp: MatchTypePlayer) -> float:
    return 5 + mtp.bat_average - mtp.bowl_average + (mtp.catches or 0) // mtp.matchcount


def limited_overs_xfactor(mtp: MatchTypePlayer) -> float:
    return (
        # Compare batting strike rate with economy
        (mtp.bat_strikerate or 0) - (mtp.economy or 0) * 100 / 6
        # Compare balls faced per innings with bowling strike rate
        + (mtp.balls or 0) // mtp.completed - (mtp.bowl_strikerate or 0)
        # Add catches per match
        + (mtp.catches or 0) // mtp.matchcount
    )


# ODI and T20I share one formula; only the thresholds differ
FORMULAS = {
    MatchFormat.TEST: long_form_xfactor,
    MatchFormat.ODI: limited_overs_xfactor,
    MatchFormat.T20I: limited_overs_xfactor,
}


def apply_score(match_type_player: MatchTypePlayer, result: ScoreResult) -> None:
    """Write a score outcome onto the aggregate."""
    if result.outcome is ScoreOutcome.SCORED:
        match_type_player.xfactor = result.value
    elif result.outcome is ScoreOutcome.INELIGIBLE:
        match_type_player.xfactor = None


class ScoreEngine:
    """Eligibility-gated X-factor for player-format aggregates."""

    def score(self, match_type_player: MatchTypePlayer) -> ScoreResult:
        """
        Score an aggregate from its stored statistics.

        Returns:
            ScoreResult: SCORED with a value, INELIGIBLE (score must be
            cleared) or UNKNOWN_FORMAT (score must be left alone)
        """
        mtp = match_type_player

        if mtp.matchcount is None or mtp.bat_average is None or mtp.bowl_average is None:
            return _ineligible("no average")

        try:
            match_format = MatchFormat.from_type_number(mtp.type_number)
        except UnrecognizedFormatError as e:
            logger.error(str(e))
            return ScoreResult(ScoreOutcome.UNKNOWN_FORMAT, reason=str(e))

        reason = check_eligibility(mtp, ELIGIBILITY_RULES[match_format])
        if reason is None and match_format is not MatchFormat.TEST and not mtp.completed:
            reason = "no completed innings"
        if reason is not None:
            return _ineligible(reason)

        return ScoreResult(ScoreOutcome.SCORED, value=float(FORMULAS[match_format](mtp)))

    def apply(self, match_type_player: MatchTypePlayer, result: ScoreResult) -> None:
        apply_score(match_type_player, result)

    def update(self, match_type_player: MatchTypePlayer) -> ScoreResult:
        """Score and write in one step."""
        result = self.score(match_type_player)
        self.apply(match_type_player, result)
        logger.debug(
            f"X-factor for {match_type_player.name or match_type_player.player_ref}: "
            f"{result.value if result.is_scored else result.reason}"
        )
        return result
