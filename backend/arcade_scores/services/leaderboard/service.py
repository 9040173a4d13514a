import logging
import math
import threading
import time
from dataclasses import dataclass
from numbers import Real
from typing import Callable, Dict, List, Mapping, Optional

from .categories import CATEGORIES, CategoryConfig, CategoryId, resolve_category, validate_categories
from .errors import ValidationError
from .ranking import NOT_QUALIFIED, compute_rank
from .reconciliation import insert, repair
from .stores import Entry, LeaderboardStore


logger = logging.getLogger(__name__)

DEFAULT_NAME_MAX_LENGTH = 10


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SubmitResult:
    qualified: bool
    rank: int

    def to_dict(self):
        return {'qualified': self.qualified, 'rank': self.rank}


class LeaderboardService:
    """Facade over one store: reads, qualification checks and submissions.

    Submissions to the same category are serialized with a per-category lock
    and always rank against a snapshot read inside that lock. The lock is
    process-local; other processes writing the same store are not covered.
    """

    def __init__(self, store: LeaderboardStore,
                 categories: Mapping[CategoryId, CategoryConfig] = CATEGORIES,
                 name_max_length: int = DEFAULT_NAME_MAX_LENGTH,
                 clock: Optional[Callable[[], int]] = None):
        validate_categories(categories)
        self.store = store
        self.categories = dict(categories)
        self.name_max_length = name_max_length
        self._clock = clock or _now_ms
        self._locks = {cid: threading.Lock() for cid in self.categories}

    def config_for(self, category) -> CategoryConfig:
        return self.categories[resolve_category(category)]

    def _clamp(self, limit, config: CategoryConfig) -> int:
        return max(0, min(int(limit), config.capacity))

    def get_leaderboard(self, category, limit: int = 10) -> List[dict]:
        config = self.config_for(category)
        entries = self.store.get_category(config.id.value)
        return [e.to_public() for e in entries[:self._clamp(limit, config)]]

    def get_all_leaderboards(self, limit: int = 3) -> Dict[str, List[dict]]:
        grouped: Dict[str, List[Entry]] = {cid.value: [] for cid in self.categories}
        for entry in self.store.scan_all():
            if entry.category not in grouped:
                logger.warning(f"[scan-skip] category={entry.category} rank={entry.rank} not configured")
                continue
            grouped[entry.category].append(entry)
        result = {}
        for category, entries in grouped.items():
            config = self.categories[CategoryId(category)]
            entries.sort(key=lambda e: e.rank)
            result[category] = [e.to_public() for e in entries[:self._clamp(limit, config)]]
        return result

    def _validate_score(self, score):
        if score is None:
            raise ValidationError('playerName and score are required')
        if isinstance(score, bool) or not isinstance(score, Real) or not math.isfinite(score):
            raise ValidationError('score must be a finite number')
        return score

    def _clean_name(self, player_name) -> str:
        if not isinstance(player_name, str) or not player_name.strip():
            raise ValidationError('playerName and score are required')
        return player_name.strip()[:self.name_max_length]

    def check(self, category, score) -> SubmitResult:
        """Rank ``score`` would earn right now, without writing anything."""
        config = self.config_for(category)
        score = self._validate_score(score)
        current = self.store.get_category(config.id.value)
        rank = compute_rank(score, current, config.direction, config.capacity)
        return SubmitResult(rank != NOT_QUALIFIED, rank)

    def submit(self, category, player_name, score) -> SubmitResult:
        config = self.config_for(category)
        score = self._validate_score(score)
        name = self._clean_name(player_name)
        store = self.store.for_writes()
        key = config.id.value

        with self._locks[config.id]:
            current = store.get_category(key)
            rank = compute_rank(score, current, config.direction, config.capacity)
            if rank == NOT_QUALIFIED:
                logger.info(f"[submit] category={key} score={score} qualified=False")
                return SubmitResult(False, NOT_QUALIFIED)
            entry = Entry(category=key, rank=rank, player_name=name, score=score, timestamp=self._clock())
            insert(key, rank, entry, store, config.capacity)

        logger.info(f"[submit] category={key} score={score} rank={rank} qualified=True")
        return SubmitResult(True, rank)

    def repair(self, category=None) -> Dict[str, int]:
        """Re-sort and re-number one category, or all of them."""
        targets = [self.config_for(category)] if category is not None else list(self.categories.values())
        store = self.store.for_writes()
        results = {}
        for config in targets:
            with self._locks[config.id]:
                results[config.id.value] = repair(config.id.value, store, config.direction, config.capacity)
        return results
