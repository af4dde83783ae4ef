"""Tests for ScoreEngine.

Test Strategy:
1. Test eligibility thresholds per format, at the boundary
2. Test the long-form and limited-overs formulas
3. Test that an ineligible aggregate clears its score and an unknown
   format leaves it alone
"""
from datetime import date

import pytest

from xfactor.models import MatchFormat, MatchTypePlayer
from xfactor.services.score_engine import (
    ELIGIBILITY_RULES,
    ScoreEngine,
    ScoreOutcome,
    check_eligibility,
)


def _all_rounder(type_number=1, **overrides):
    fields = dict(
        player_ref=35320,
        type_number=type_number,
        matchcount=10,
        runs=500,
        completed=20,
        balls=1000,
        bat_average=40.0,
        bat_strikerate=50.0,
        wickets=50,
        bowl_average=30.0,
        bowl_strikerate=60.0,
        economy=3.0,
        catches=25,
        lastmatch=date(2000, 1, 1),
    )
    fields.update(overrides)
    return MatchTypePlayer(**fields)


@pytest.fixture
def engine():
    return ScoreEngine()


class TestEligibility:
    """Tests for per-format eligibility thresholds."""

    def test_test_thresholds_at_boundary(self):
        """Should accept an aggregate sitting exactly on every Test threshold."""
        mtp = _all_rounder(runs=500, bat_average=30.0, wickets=50, bowl_average=35.0)

        assert check_eligibility(mtp, ELIGIBILITY_RULES[MatchFormat.TEST]) is None

    @pytest.mark.parametrize("overrides", [
        {"runs": 499},
        {"bat_average": 29.99},
        {"wickets": 49},
        {"bowl_average": 35.01},
        {"lastmatch": date(1939, 3, 14)},
        {"lastmatch": None},
        {"matchcount": 0},
    ])
    def test_test_thresholds_fail(self, overrides):
        """Should reject an aggregate missing any one Test threshold."""
        mtp = _all_rounder(**overrides)

        assert check_eligibility(mtp, ELIGIBILITY_RULES[MatchFormat.TEST]) is not None

    def test_limited_overs_ignore_bowling_average_and_era(self):
        """Should not apply the bowling-average cap or era cutoff to ODIs."""
        mtp = _all_rounder(2, bat_average=20.0, bowl_average=55.0, lastmatch=date(1975, 6, 7))

        assert check_eligibility(mtp, ELIGIBILITY_RULES[MatchFormat.ODI]) is None

    def test_t20i_thresholds(self):
        """Should use the lower T20I thresholds."""
        rule = ELIGIBILITY_RULES[MatchFormat.T20I]

        assert check_eligibility(_all_rounder(3, runs=150, bat_average=10.0, wickets=15), rule) is None
        assert check_eligibility(_all_rounder(3, runs=149, bat_average=10.0, wickets=15), rule) is not None
        assert check_eligibility(_all_rounder(3, runs=150, bat_average=10.0, wickets=14), rule) is not None


class TestScore:
    """Tests for ScoreEngine.score() and update()."""

    def test_long_form_formula(self, engine):
        """Should add batting edge over bowling average and catches per match."""
        result = engine.score(_all_rounder(catches=25, matchcount=10))

        assert result.outcome is ScoreOutcome.SCORED
        # 5 + 40 - 30 + 25 // 10
        assert result.value == pytest.approx(17.0)

    def test_limited_overs_formula(self, engine):
        """Should combine strike rates, economy, balls per innings and catches."""
        mtp = _all_rounder(
            2, bat_strikerate=80.0, economy=4.5, balls=3000, completed=100,
            bowl_strikerate=36.0, catches=50, matchcount=100,
        )

        result = engine.score(mtp)

        # 80 - 4.5 * 100 / 6 + 3000 // 100 - 36 + 50 // 100
        assert result.value == pytest.approx(-1.0)

    def test_t20i_shares_limited_overs_formula(self, engine):
        """Should score T20Is with the same formula as ODIs."""
        overrides = dict(bat_strikerate=120.0, economy=7.5, balls=600, completed=40,
                         bowl_strikerate=18.0, catches=30, matchcount=60)

        odi = engine.score(_all_rounder(2, **overrides))
        t20i = engine.score(_all_rounder(3, **overrides))

        assert odi.value == t20i.value

    def test_limited_overs_without_completed_innings(self, engine):
        """Should be ineligible rather than divide by zero."""
        result = engine.score(_all_rounder(2, completed=0))

        assert result.outcome is ScoreOutcome.INELIGIBLE

    def test_ineligible_clears_stored_score(self, engine):
        """Should unset (not zero) the score of an ineligible aggregate."""
        mtp = _all_rounder(runs=499, xfactor=12.5)

        result = engine.update(mtp)

        assert result.outcome is ScoreOutcome.INELIGIBLE
        assert mtp.xfactor is None

    @pytest.mark.parametrize("missing", ["bat_average", "bowl_average", "matchcount"])
    def test_no_average_is_ineligible(self, engine, missing):
        """Should clear the score when an average or match count is absent."""
        mtp = _all_rounder(xfactor=12.5, **{missing: None})

        result = engine.update(mtp)

        assert result.outcome is ScoreOutcome.INELIGIBLE
        assert result.reason == "no average"
        assert mtp.xfactor is None

    def test_unknown_format_leaves_score(self, engine):
        """Should leave the stored score untouched for an unrecognized format."""
        mtp = _all_rounder(type_number=9, xfactor=12.5)

        result = engine.update(mtp)

        assert result.outcome is ScoreOutcome.UNKNOWN_FORMAT
        assert mtp.xfactor == 12.5

    def test_update_writes_score(self, engine):
        """Should store the computed score on the aggregate."""
        mtp = _all_rounder()

        engine.update(mtp)

        assert mtp.xfactor == pytest.approx(17.0)
