"""Tests for the repository layer.

Test Strategy:
1. Test find-or-create is idempotent and recovers from a lost insert race
2. Test player reference sets behave as sets
3. Test performances come back in match order
4. Test aggregates that own performances cannot be deleted
"""
from datetime import date

import pytest
from sqlalchemy.orm import Session

from conftest import create_aggregate, create_match, create_performance

from xfactor.core.exceptions import AggregateHasPerformancesError
from xfactor.models import Freshness, MatchTypePlayer, Player, PlayerMatchTypePlayer
from xfactor.repositories import (
    MatchRepository,
    MatchTypePlayerRepository,
    PerformanceRepository,
    PlayerRepository,
)


class TestFindOrCreate:
    """Tests for BaseRepository.find_or_create()."""

    def test_second_call_finds_existing(self, db_session: Session):
        """Should create once and then return the same record."""
        repo = PlayerRepository(db_session)

        first, created = repo.find_or_create_by_slug("tendulkar")
        second, created_again = repo.find_or_create_by_slug("tendulkar")

        assert created is True
        assert created_again is False
        assert first.id == second.id
        assert db_session.query(Player).count() == 1

    def test_defaults_only_used_on_create(self, db_session: Session):
        """Should apply defaults to new records but not existing ones."""
        repo = MatchTypePlayerRepository(db_session)

        mtp, _ = repo.find_or_create_for(35320, 1, freshness=Freshness.DIRTY)
        mtp.freshness = Freshness.CLEAN
        again, created = repo.find_or_create_for(35320, 1, freshness=Freshness.DIRTY)

        assert created is False
        assert again.freshness is Freshness.CLEAN

    def test_lost_race_returns_existing(self, db_session: Session, monkeypatch):
        """Should fall back to the existing record when the insert collides."""
        repo = PlayerRepository(db_session)
        existing, _ = repo.find_or_create_by_slug("tendulkar")
        db_session.flush()

        real_lookup = repo.filter_by_first
        calls = []

        def stale_lookup(**kwargs):
            # The first lookup misses, as if another writer had not yet committed
            calls.append(kwargs)
            return None if len(calls) == 1 else real_lookup(**kwargs)

        monkeypatch.setattr(repo, "filter_by_first", stale_lookup)

        player, created = repo.find_or_create_by_slug("tendulkar")

        assert created is False
        assert player.id == existing.id
        assert len(calls) == 2
        assert db_session.query(Player).count() == 1


class TestPlayerRepository:
    """Tests for reference-set updates."""

    def test_reference_sets_are_sets(self, db_session: Session):
        """Should ignore repeated additions."""
        repo = PlayerRepository(db_session)
        player, _ = repo.find_or_create_by_slug("flower")

        assert repo.add_reference(player, 1001) is True
        assert repo.add_reference(player, 1001) is False
        assert repo.add_reference(player, 1002) is True

        assert repo.get_references(player) == {1001, 1002}
        assert player.player_refs == {1001, 1002}

    def test_find_by_reference(self, db_session: Session):
        """Should find every player indexing a reference."""
        repo = PlayerRepository(db_session)
        for slug in ("a-flower", "andrew-flower", "flower"):
            player, _ = repo.find_or_create_by_slug(slug)
            repo.add_reference(player, 1001)
        other, _ = repo.find_or_create_by_slug("gw-flower")
        repo.add_reference(other, 1002)

        found = {p.slug for p in repo.find_by_reference(1001)}

        assert found == {"a-flower", "andrew-flower", "flower"}

    def test_find_by_slug(self, db_session: Session):
        repo = PlayerRepository(db_session)
        created, _ = repo.find_or_create_by_slug("sr-tendulkar")

        assert repo.find_by_slug("sr-tendulkar") is created
        assert repo.find_by_slug("r-dravid") is None


class TestPerformanceRepository:
    """Tests for performance lookups."""

    def test_performances_in_match_order(self, db_session: Session):
        """Should order by match start date, then innings number."""
        mtp = create_aggregate(db_session)
        later = create_match(db_session, "64012", date(1992, 1, 2))
        earlier = create_match(db_session, "63963", date(1989, 11, 15))
        create_performance(db_session, mtp, later, inning_number=1, runs=3)
        create_performance(db_session, mtp, earlier, inning_number=3, runs=2)
        create_performance(db_session, mtp, earlier, inning_number=1, runs=1)

        performances = PerformanceRepository(db_session).find_for_aggregate(mtp.id)

        assert [p.runs for p in performances] == [1, 2, 3]

    def test_innings_find_or_create(self, db_session: Session):
        """Should reuse an innings for the same match and number."""
        match = create_match(db_session, "63963", date(1989, 11, 15))
        repo = MatchRepository(db_session)

        first, created = repo.find_or_create_innings(match, 2)
        second, created_again = repo.find_or_create_innings(match, 2)

        assert (created, created_again) == (True, False)
        assert first.id == second.id


class TestMatchTypePlayerRepository:
    """Tests for freshness scopes and the restricted delete."""

    def test_freshness_scopes(self, db_session: Session):
        """Should partition aggregates by freshness."""
        create_aggregate(db_session, 1, 1, freshness=Freshness.DIRTY)
        create_aggregate(db_session, 2, 1, freshness=Freshness.CLEAN)
        create_aggregate(db_session, 3, 1)
        repo = MatchTypePlayerRepository(db_session)

        assert [m.player_ref for m in repo.find_dirty()] == [1]
        assert [m.player_ref for m in repo.find_clean()] == [2]
        assert [m.player_ref for m in repo.find_indeterminate()] == [3]

    def test_delete_restricted_with_performances(self, db_session: Session):
        """Should refuse to delete an aggregate that owns performances."""
        mtp = create_aggregate(db_session)
        match = create_match(db_session, "63963", date(1989, 11, 15))
        create_performance(db_session, mtp, match)

        with pytest.raises(AggregateHasPerformancesError) as exc_info:
            MatchTypePlayerRepository(db_session).delete_restricted(mtp)

        assert exc_info.value.performance_count == 1
        assert db_session.get(MatchTypePlayer, mtp.id) is not None

    def test_delete_restricted_removes_back_references(self, db_session: Session):
        """Should delete an empty aggregate and the links pointing at it."""
        mtp = create_aggregate(db_session)
        players = PlayerRepository(db_session)
        player, _ = players.find_or_create_by_slug("sr-tendulkar")
        players.add_match_type_player(player, mtp.id)
        mtp_id = mtp.id

        MatchTypePlayerRepository(db_session).delete_restricted(mtp)

        assert db_session.get(MatchTypePlayer, mtp_id) is None
        assert db_session.query(PlayerMatchTypePlayer).count() == 0
        assert players.get_match_type_player_ids(player) == set()
