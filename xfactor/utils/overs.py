"""Overs arithmetic.

Bowling is recorded as whole six-ball overs plus 0-5 odd balls. Totals are
always re-derived from a ball count so overs and odd balls never drift.
"""
from typing import Tuple

BALLS_PER_OVER = 6


def to_balls(overs: int, oddballs: int = 0) -> int:
    """Convert (whole overs, odd balls) to a total-balls count."""
    return BALLS_PER_OVER * (overs or 0) + (oddballs or 0)


def from_balls(balls: int) -> Tuple[int, int]:
    """Split a total-balls count into (whole overs, odd balls)."""
    return divmod(balls, BALLS_PER_OVER)


def to_overs_string(balls: int) -> str:
    """
    Render a ball count in overs notation.

    >>> to_overs_string(23)
    '3.5'
    >>> to_overs_string(18)
    '3'
    """
    overs, remainder = from_balls(balls)
    if remainder:
        return f"{overs}.{remainder}"
    return str(overs)


def from_overs_string(text: str) -> int:
    """
    Parse overs notation back to a ball count.

    >>> from_overs_string("3.5")
    23

    Raises:
        ValueError: if the odd-balls part is not 0-5
    """
    whole, _, odd = str(text).strip().partition(".")
    oddballs = int(odd) if odd else 0
    if not 0 <= oddballs < BALLS_PER_OVER:
        raise ValueError(f"Invalid overs notation: {text!r}")
    return to_balls(int(whole), oddballs)


def overs_as_float(balls: int) -> float:
    """Overs as a decimal number of six-ball overs (for economy rates)."""
    return balls / BALLS_PER_OVER
