"""Shared pytest fixtures for xfactor tests."""
import sys
import uuid
from datetime import date
from pathlib import Path
from typing import Dict, Generator, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    from xfactor.core.database import enable_sqlite_savepoints
    from xfactor.models import Base

    engine = enable_sqlite_savepoints(create_engine("sqlite:///:memory:"))
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


# =============================================================================
# RECORD FACTORIES
# =============================================================================

def create_match(db: Session, match_ref: str, date_start: date, date_end: Optional[date] = None):
    """Add a catalogued match."""
    from xfactor.models import Match

    match = Match(
        id=str(uuid.uuid4()),
        match_ref=match_ref,
        date_start=date_start,
        date_end=date_end or date_start,
    )
    db.add(match)
    db.flush()
    return match


def create_aggregate(db: Session, player_ref: int = 35320, type_number: int = 1, **fields):
    """Add a player-format aggregate."""
    from xfactor.models import MatchTypePlayer

    mtp = MatchTypePlayer(
        id=str(uuid.uuid4()),
        player_ref=player_ref,
        type_number=type_number,
        **fields
    )
    db.add(mtp)
    db.flush()
    return mtp


def create_performance(db: Session, mtp, match, inning_number: int = 1, **fields):
    """Add a performance for an aggregate in one innings of a match."""
    from xfactor.models import Innings, Performance

    innings = db.query(Innings).filter_by(match_id=match.id, inning_number=inning_number).first()
    if innings is None:
        innings = Innings(id=str(uuid.uuid4()), match_id=match.id, inning_number=inning_number)
        db.add(innings)
        db.flush()

    performance = Performance(
        id=str(uuid.uuid4()),
        innings_id=innings.id,
        match_type_player_id=mtp.id,
        **fields
    )
    db.add(performance)
    db.flush()
    return performance


# =============================================================================
# SOURCE DOCUMENTS
# =============================================================================

def fielding_row(
    match_ref: Optional[str],
    dismissals: str = "1",
    catches_total: str = "1",
    stumpings: str = "0",
    catches_wkt: str = "0",
    catches: str = "1",
    inning_number: str = "2",
) -> str:
    """One per-match data row of a fielding-innings page."""
    link = (
        f'<a href="/ci/engine/match/{match_ref}.html">Test # {match_ref}</a>'
        if match_ref else ""
    )
    return (
        '<tr class="data1">'
        f"<td>{dismissals}</td><td>{catches_total}</td><td>{stumpings}</td>"
        f"<td>{catches_wkt}</td><td>{catches}</td><td>{inning_number}</td>"
        '<td></td><td>v Pakistan</td><td>Karachi</td><td>15 Nov 1989</td>'
        f"<td>{link}</td>"
        "</tr>"
    )


def summary_row(matches: str = "200") -> str:
    """The aggregate row at the foot of a fielding-innings page."""
    return (
        '<tr class="data1">'
        f"<td>115</td><td>115</td><td>{matches}</td><td>0</td><td>115</td>"
        "<td></td><td></td><td></td><td></td><td></td><td></td>"
        "</tr>"
    )


def fielding_page(
    rows: List[str],
    name: Optional[str] = "SR Tendulkar",
    fullname: Optional[str] = "Sachin Ramesh Tendulkar",
) -> str:
    """A fielding-innings page with header, script block and data rows."""
    header = f'<h1 class="SubnavSitesection">Statsguru /\nPlayers /\n{name}</h1>' if name else ""
    script = (
        f'<script>var omniPageName = "cricinfo:cricketer:{fullname}";</script>'
        if fullname else "<script>var s = 1;</script>"
    )
    return (
        f"<html><head>{script}</head><body>{header}"
        f"<table>{''.join(rows)}</table></body></html>"
    )


class FakeProvider:
    """SourceDocumentProvider serving canned pages keyed by (player_ref, type_number)."""

    def __init__(self, pages: Optional[Dict[Tuple[int, int], str]] = None):
        self.pages = pages or {}
        self.calls: List[Tuple[int, int]] = []

    def fetch(self, player_ref: int, type_number: int):
        from xfactor.services.source_document import SourceDocument

        self.calls.append((player_ref, type_number))
        return SourceDocument.from_html(self.pages.get((player_ref, type_number), ""))


@pytest.fixture
def sample_matches(db_session: Session):
    """Three catalogued Test matches, oldest first."""
    return [
        create_match(db_session, "63963", date(1989, 11, 15), date(1989, 11, 20)),
        create_match(db_session, "63978", date(1990, 8, 9), date(1990, 8, 14)),
        create_match(db_session, "64012", date(1992, 1, 2), date(1992, 1, 6)),
    ]
