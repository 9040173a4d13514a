"""Rank computation for a bounded, ordered leaderboard.

Pure functions only: no store access, no clock.
"""

from typing import Sequence

from .categories import OrderingDirection


NOT_QUALIFIED = -1


def beats(score, other, direction: OrderingDirection) -> bool:
    """True when ``score`` is strictly better than ``other``. Equal scores never beat."""
    if direction is OrderingDirection.LOWER_IS_BETTER:
        return score < other
    return score > other


def compute_rank(score, sorted_entries: Sequence, direction: OrderingDirection, capacity: int) -> int:
    """Return the 1-based rank ``score`` would take, or ``NOT_QUALIFIED``.

    ``sorted_entries`` must be in ascending rank order and expose ``.score``.
    The first entry the score strictly beats gives up its rank; when nothing
    is beaten the score is appended if there is room left.
    """
    for i, entry in enumerate(sorted_entries[:capacity]):
        if beats(score, entry.score, direction):
            return i + 1
    if len(sorted_entries) < capacity:
        return len(sorted_entries) + 1
    return NOT_QUALIFIED
