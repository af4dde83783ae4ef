"""
Exception taxonomy for the statistics engine.

Only faults that must stop processing are exceptions. Row-local problems
(malformed counts, missing names, empty performance sets) are handled where
they occur and logged.
"""


class XFactorError(Exception):
    """Base class for all engine errors."""


class DataIntegrityFault(XFactorError):
    """A per-match row references a match that is not in the catalog."""

    def __init__(self, match_ref: str, player_ref=None):
        self.match_ref = match_ref
        self.player_ref = player_ref
        super().__init__(f"Match {match_ref} not found")


class AggregateHasPerformancesError(XFactorError):
    """Attempt to delete a player-format aggregate that still owns performances."""

    def __init__(self, match_type_player_id: str, performance_count: int):
        self.match_type_player_id = match_type_player_id
        self.performance_count = performance_count
        super().__init__(
            f"MatchTypePlayer {match_type_player_id} still owns "
            f"{performance_count} performance(s)"
        )


class UnrecognizedFormatError(XFactorError):
    """A format code that is not one of the supported match types."""

    def __init__(self, type_number):
        self.type_number = type_number
        super().__init__(f"Unknown match type: {type_number}")
