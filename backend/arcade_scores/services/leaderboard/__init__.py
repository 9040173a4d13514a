"""Leaderboard domain services: ranking, stores and reconciliation.

Imported by the HTTP blueprint and CLI commands; nothing in this package
depends on the request context except ``SqlEntryStore``, which needs an
application context for its session.
"""

from .categories import CATEGORIES, CategoryConfig, CategoryId, OrderingDirection, format_score, load_categories
from .errors import (
    ConfigurationError,
    LeaderboardError,
    TransportError,
    UnknownCategoryError,
    ValidationError,
)
from .ranking import NOT_QUALIFIED, compute_rank
from .service import LeaderboardService, SubmitResult
from .stores import (
    Entry,
    LeaderboardStore,
    LocalMirrorStore,
    ReadFallbackStore,
    SqlEntryStore,
    StoreStrategy,
    build_store,
)
