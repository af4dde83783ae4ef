"""Slug normalization for player identity keys.

Handles common variations across scraped names:
- Accents: "Chloé Tryon" → "chloe-tryon"
- Punctuation: "O'Brien" → "o-brien"
- Case: "SACHIN TENDULKAR" → "sachin-tendulkar"
- Extra spaces: "Kevin  Pietersen" → "kevin-pietersen"
"""
import re
import unicodedata


def _normalize_unicode(name: str) -> str:
    """
    Remove accents and diacritics from unicode characters.

    Converts 'é' → 'e', 'ñ' → 'n', etc.; characters with no ASCII base are dropped.
    """
    normalized = unicodedata.normalize('NFKD', name)
    return normalized.encode('ascii', 'ignore').decode('ascii')


def slugify(name: str) -> str:
    """
    Derive a URL-safe slug from a name.

    Steps:
    1. Normalize unicode (remove accents)
    2. Convert to lowercase
    3. Replace every run of characters other than letters, digits, '-' and
       '_' with a single '-'
    4. Collapse repeated separators and strip them from the ends

    Args:
        name: The name to convert

    Returns:
        Slug string ("" for None or blank input)

    Examples:
        >>> slugify("Sachin Ramesh Tendulkar")
        'sachin-ramesh-tendulkar'
        >>> slugify("Kevin O'Brien")
        'kevin-o-brien'
        >>> slugify("  Shakib Al Hasan ")
        'shakib-al-hasan'
    """
    if not name:
        return ""

    slug = _normalize_unicode(name).lower()
    slug = re.sub(r'[^a-z0-9\-_]+', '-', slug)
    slug = re.sub(r'-{2,}', '-', slug)
    return slug.strip('-')


def name_tokens(name: str) -> list[str]:
    """Whitespace-delimited tokens of a name."""
    if not name:
        return []
    return name.split()
