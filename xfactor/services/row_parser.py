"""
Row parser for fielding-innings data rows.

Turns one scraped table row into a typed record, validated once at the
boundary:

- SummaryRow: the aggregate row at the foot of the table (no match link);
  only its match count is used
- MatchRow: a per-match row with its match reference, innings number and
  fielding counts
- SkipRow: rows that produce no performance, e.g. "TDNF" (team did not
  field) in the dismissals column
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from bs4 import Tag

from xfactor.services.source_document import SourceDocument

logger = logging.getLogger(__name__)

MATCH_HREF_PREFIX = "/ci/engine/match/"

_LEADING_INT = re.compile(r"\s*(\d+)")


@dataclass(frozen=True)
class ColumnSchema:
    """Fixed column positions of the fielding-innings table."""
    dismissals: int = 0
    catches_total: int = 1
    stumpings: int = 2
    catches_wkt: int = 3
    catches: int = 4
    inning_number: int = 5
    match_link: int = 10
    # The summary row reports the match count under the stumpings column
    match_count: int = 2


FIELDING_SCHEMA = ColumnSchema()


@dataclass(frozen=True)
class FieldingCounts:
    dismissals: int
    catches_total: Optional[int]
    stumpings: Optional[int]
    catches_wkt: Optional[int]
    catches: Optional[int]


@dataclass(frozen=True)
class SummaryRow:
    match_count: int


@dataclass(frozen=True)
class MatchRow:
    match_ref: str
    inning_number: int
    fielding: FieldingCounts


@dataclass(frozen=True)
class SkipRow:
    reason: str
    match_ref: Optional[str] = None


ParsedRow = Union[SummaryRow, MatchRow, SkipRow]

Cell = Union[Tag, str]


def cell_text(cell: Optional[Cell]) -> str:
    if cell is None:
        return ""
    if isinstance(cell, str):
        return cell.strip()
    return cell.get_text(" ", strip=True)


def parse_count(text: str) -> Optional[int]:
    """Leading integer of a cell, or None for placeholders like 'TDNF' or '-'."""
    match = _LEADING_INT.match(text or "")
    return int(match.group(1)) if match else None


def match_ref_from_href(href: str) -> Optional[str]:
    """'/ci/engine/match/63963.html' -> '63963'."""
    if not href or not href.startswith(MATCH_HREF_PREFIX):
        return None
    ref = href[len(MATCH_HREF_PREFIX):].split(".")[0]
    return ref or None


class RowParser:
    """Classifies and types fielding-innings rows."""

    def __init__(self, schema: ColumnSchema = FIELDING_SCHEMA):
        self.schema = schema

    def _cell(self, cells: Sequence[Cell], index: int) -> Optional[Cell]:
        return cells[index] if index < len(cells) else None

    def _match_href(self, cells: Sequence[Cell]) -> Optional[str]:
        link_cell = self._cell(cells, self.schema.match_link)
        if not isinstance(link_cell, Tag):
            return None

        anchor = link_cell.find(
            "a",
            href=lambda h: bool(h) and h.startswith(MATCH_HREF_PREFIX)
        )
        if anchor is None:
            return None
        return anchor.get("href")

    def _count(self, cells: Sequence[Cell], index: int) -> Optional[int]:
        return parse_count(cell_text(self._cell(cells, index)))

    def parse(self, cells: Sequence[Cell]) -> ParsedRow:
        """Parse one row of cells."""
        # A player may have no performances in this category
        if len(cells) <= 1:
            return SkipRow("empty")

        href = self._match_href(cells)
        if href is None:
            match_count = self._count(cells, self.schema.match_count)
            if match_count is None:
                return SkipRow("malformed summary")
            return SummaryRow(match_count)

        match_ref = match_ref_from_href(href)
        if match_ref is None:
            return SkipRow("malformed match link")

        dismissals = self._count(cells, self.schema.dismissals)
        if dismissals is None:
            return SkipRow("did not field", match_ref)

        inning_number = self._count(cells, self.schema.inning_number)
        if inning_number is None:
            return SkipRow("malformed innings number", match_ref)

        return MatchRow(
            match_ref=match_ref,
            inning_number=inning_number,
            fielding=FieldingCounts(
                dismissals=dismissals,
                catches_total=self._count(cells, self.schema.catches_total),
                stumpings=self._count(cells, self.schema.stumpings),
                catches_wkt=self._count(cells, self.schema.catches_wkt),
                catches=self._count(cells, self.schema.catches),
            ),
        )

    def parse_rows(self, document: SourceDocument) -> List[ParsedRow]:
        """Parse every data row of a document."""
        rows = [self.parse(cells) for cells in document.data_rows()]
        skipped = sum(1 for row in rows if isinstance(row, SkipRow))
        if skipped:
            logger.debug(f"Skipped {skipped} of {len(rows)} rows")
        return rows
