"""Leaderboard error taxonomy.

A score that does not earn a rank is a normal outcome (``NOT_QUALIFIED``)
and is never raised.
"""


class LeaderboardError(Exception):
    """Base class for leaderboard failures."""


class ValidationError(LeaderboardError):
    """Submission is missing a player name or a usable score."""


class UnknownCategoryError(LeaderboardError):
    def __init__(self, category):
        super().__init__(f"Unknown game: {category}")
        self.category = category


class TransportError(LeaderboardError):
    """The backing store is unreachable or a request against it failed."""


class ConfigurationError(LeaderboardError):
    """Invalid category registry or backend selection at startup."""
