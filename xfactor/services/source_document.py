"""
Source document access.

Fetching pages is the job of an external SourceDocumentProvider; this module
defines its interface and wraps the parsed HTML so the rest of the engine
only sees header nodes, data rows and script blocks.
"""
import re
from typing import List, Optional, Protocol

from bs4 import BeautifulSoup, Tag

# Literal prefix of the page-name script block that carries the full name,
# e.g. var omniPageName = "cricinfo:cricketer:Sachin Ramesh Tendulkar";
FULL_NAME_PATTERN = re.compile(r'var omniPageName.+:(.+)";', re.IGNORECASE)

# Only the start of each script block is searched
FULL_NAME_SCAN_LENGTH = 100


class SourceDocument:
    """A parsed statistics page."""

    def __init__(self, soup: BeautifulSoup):
        self.soup = soup

    @classmethod
    def from_html(cls, html: str) -> "SourceDocument":
        return cls(BeautifulSoup(html or "", "html.parser"))

    def header_nodes(self) -> List[Tag]:
        """Page headers that carry the player's display name."""
        return self.soup.find_all("h1", class_="SubnavSitesection")

    def data_rows(self) -> List[List[Tag]]:
        """Cells of every data row, in page order."""
        return [
            tr.find_all("td", recursive=False)
            for tr in self.soup.find_all("tr", class_="data1")
        ]

    def script_blocks(self) -> List[str]:
        """Text of every script block."""
        return [str(script.string or "") for script in self.soup.find_all("script")]


class SourceDocumentProvider(Protocol):
    """Fetches the fielding-innings page for one player reference and format."""

    def fetch(self, player_ref: int, type_number: int) -> SourceDocument:
        ...


def extract_display_name(document: Optional[SourceDocument]) -> Optional[str]:
    """
    Display name from the page header.

    The header reads like "Statsguru /\\nPlayers /\\nSR Tendulkar"; the name is
    the third "/"-newline separated segment.
    """
    if document is None:
        return None

    nodes = document.header_nodes()
    if not nodes:
        return None

    parts = nodes[0].get_text().split("/\n")
    if len(parts) < 3:
        return None

    return parts[2].strip() or None


def extract_full_name(script_text: str) -> Optional[str]:
    """Full name captured from one script block, or None."""
    if not script_text:
        return None

    match = FULL_NAME_PATTERN.search(script_text[:FULL_NAME_SCAN_LENGTH])
    if match is None:
        return None

    return match.group(1).strip() or None


def find_full_name(document: Optional[SourceDocument]) -> Optional[str]:
    """Full name from the first script block that carries one."""
    if document is None:
        return None

    for script_text in document.script_blocks():
        fullname = extract_full_name(script_text)
        if fullname:
            return fullname
    return None
