"""Backing stores for ranked entries.

Every store addresses entries by ``(category, rank)`` and exposes the same
small capability set. They differ in what a single call guarantees:

- ``SqlEntryStore``: the durable store. Each put/delete is its own
  transaction; there is no multi-key atomicity across a reconciliation.
- ``LocalMirrorStore``: one process-local blob of ordered lists. A
  ``batch()`` holds the process lock for a whole read-modify-write.
- ``ReadFallbackStore``: reads from the durable store, serving the mirror
  when that fails. Writes only ever reach the durable store.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from arcade_scores import db
from arcade_scores.models import LeaderboardEntry
from .categories import CategoryId
from .errors import ConfigurationError, TransportError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entry:
    category: str
    rank: int
    player_name: str
    score: float
    timestamp: int

    def at_rank(self, rank: int) -> 'Entry':
        return replace(self, rank=rank)

    def to_public(self):
        return {
            'playerName': self.player_name,
            'score': self.score,
            'timestamp': self.timestamp,
        }


def _plain_number(value):
    # Float columns hand back 100.0 for a stored 100
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class StoreStrategy(str, Enum):
    REMOTE = 'remote'
    LOCAL = 'local'
    REMOTE_WITH_READ_FALLBACK = 'remote-with-read-fallback'


class LeaderboardStore(ABC):
    @abstractmethod
    def get_category(self, category: str) -> List[Entry]:
        """Entries of one category in ascending rank order."""

    @abstractmethod
    def put_entry(self, entry: Entry) -> None:
        """Upsert by (category, rank)."""

    @abstractmethod
    def delete_entry(self, category: str, rank: int) -> None:
        """Remove the entry at (category, rank); no-op when absent."""

    @abstractmethod
    def scan_all(self) -> List[Entry]:
        """Every entry of every category. Full-table; fine while entries stay few."""

    @contextmanager
    def batch(self, category: str):
        yield self

    def for_writes(self) -> 'LeaderboardStore':
        return self


class SqlEntryStore(LeaderboardStore):
    """Per-entry rows in the ``leaderboard_entry`` table, one commit per call."""

    @staticmethod
    def _to_entry(row: LeaderboardEntry) -> Entry:
        return Entry(
            category=row.category,
            rank=row.rank,
            player_name=row.player_name,
            score=_plain_number(row.score),
            timestamp=row.timestamp,
        )

    @staticmethod
    def _fail(op: str, exc: Exception, **ctx) -> TransportError:
        db.session.rollback()
        details = ' '.join(f"{k}={v}" for k, v in ctx.items())
        logger.error(f"[store-error] op={op} {details} error={exc}")
        return TransportError(f"Leaderboard store {op} failed")

    def get_category(self, category: str) -> List[Entry]:
        try:
            rows = (
                LeaderboardEntry.query
                .filter_by(category=category)
                .order_by(LeaderboardEntry.rank)
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._fail('get_category', exc, category=category) from exc
        return [self._to_entry(r) for r in rows]

    def put_entry(self, entry: Entry) -> None:
        try:
            db.session.merge(LeaderboardEntry(
                category=entry.category,
                rank=entry.rank,
                player_name=entry.player_name,
                score=entry.score,
                timestamp=entry.timestamp,
            ))
            db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('put_entry', exc, category=entry.category, rank=entry.rank) from exc

    def delete_entry(self, category: str, rank: int) -> None:
        try:
            LeaderboardEntry.query.filter_by(category=category, rank=rank).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('delete_entry', exc, category=category, rank=rank) from exc

    def scan_all(self) -> List[Entry]:
        try:
            rows = LeaderboardEntry.query.order_by(LeaderboardEntry.category, LeaderboardEntry.rank).all()
        except SQLAlchemyError as exc:
            raise self._fail('scan_all', exc) from exc
        return [self._to_entry(r) for r in rows]


class LocalMirrorStore(LeaderboardStore):
    """Ordered lists per category; list position is the rank.

    The blob lives in memory and, when ``path`` is given, is persisted as JSON
    after each top-level write. Safe across threads of one process only.
    """

    def __init__(self, path: Optional[str] = None, categories: Iterable = ()):
        self._path = path
        self._lock = threading.RLock()
        self._depth = 0
        self._dirty = False
        self._blob: Dict[str, List[dict]] = self._load()
        for category in categories:
            key = category.value if isinstance(category, CategoryId) else str(category)
            self._blob.setdefault(key, [])

    def _load(self) -> Dict[str, List[dict]]:
        if not self._path or not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, 'r', encoding='utf-8') as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error(f"[mirror-load-fail] path={self._path} error={exc}")
            raise TransportError(f"Cannot read local leaderboard mirror {self._path}") from exc
        if not isinstance(data, dict):
            raise TransportError(f"Local leaderboard mirror {self._path} is not a mapping")
        blob = {}
        for category, rows in data.items():
            if rows is None:
                rows = []
            if not isinstance(rows, list) or not all(self._valid_row(r) for r in rows):
                logger.error(f"[mirror-load-fail] path={self._path} category={category} malformed rows")
                raise TransportError(f"Local leaderboard mirror {self._path} has malformed rows for {category}")
            blob[str(category)] = list(rows)
        return blob

    @staticmethod
    def _valid_row(row) -> bool:
        if not isinstance(row, dict):
            return False
        name, score, ts = row.get('playerName'), row.get('score'), row.get('timestamp')
        return (
            isinstance(name, str)
            and isinstance(score, (int, float)) and not isinstance(score, bool)
            and isinstance(ts, int) and not isinstance(ts, bool)
        )

    def _flush(self) -> None:
        if not self._path:
            self._dirty = False
            return
        directory = os.path.dirname(os.path.abspath(self._path))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix='.leaderboards-', suffix='.json', dir=directory)
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(self._blob, fh, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.error(f"[mirror-save-fail] path={self._path} error={exc}")
            raise TransportError(f"Cannot write local leaderboard mirror {self._path}") from exc
        self._dirty = False

    def _changed(self) -> None:
        self._dirty = True
        if self._depth == 0:
            self._flush()

    @contextmanager
    def batch(self, category: str):
        """Group writes into one read-modify-write: all of them land or none do."""
        with self._lock:
            outermost = self._depth == 0
            before = {k: list(v) for k, v in self._blob.items()} if outermost else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    self._blob = before
                    self._dirty = False
                raise
            finally:
                self._depth -= 1
            if outermost and self._dirty:
                self._flush()

    @staticmethod
    def _to_entry(category: str, index: int, row: dict) -> Entry:
        return Entry(
            category=category,
            rank=index + 1,
            player_name=row['playerName'],
            score=row['score'],
            timestamp=row['timestamp'],
        )

    def get_category(self, category: str) -> List[Entry]:
        with self._lock:
            rows = list(self._blob.get(category, []))
        return [self._to_entry(category, i, r) for i, r in enumerate(rows)]

    def put_entry(self, entry: Entry) -> None:
        with self._lock:
            rows = self._blob.setdefault(entry.category, [])
            index = entry.rank - 1
            if index < 0 or index > len(rows):
                raise ValueError(
                    f"rank {entry.rank} would leave a gap in {entry.category} (length {len(rows)})"
                )
            if index == len(rows):
                rows.append(entry.to_public())
            else:
                rows[index] = entry.to_public()
            self._changed()

    def delete_entry(self, category: str, rank: int) -> None:
        """Drop the tail entry at ``rank``; no-op when ``rank`` is past the tail.

        Removing a middle position would renumber everything after it, so that
        is refused the same way ``put_entry`` refuses gaps.
        """
        with self._lock:
            rows = self._blob.get(category) or []
            if rank < 1 or rank > len(rows):
                return
            if rank != len(rows):
                raise ValueError(
                    f"rank {rank} is not the tail of {category} (length {len(rows)})"
                )
            rows.pop()
            self._changed()

    def replace_category(self, category: str, entries: Iterable[Entry]) -> None:
        with self._lock:
            self._blob[category] = [e.to_public() for e in sorted(entries, key=lambda e: e.rank)]
            self._changed()

    def scan_all(self) -> List[Entry]:
        with self._lock:
            snapshot = {k: list(v) for k, v in self._blob.items()}
        return [
            self._to_entry(category, i, row)
            for category, rows in snapshot.items()
            for i, row in enumerate(rows)
        ]


class ReadFallbackStore(LeaderboardStore):
    """Durable store for everything; the mirror answers reads when it is down."""

    def __init__(self, remote: LeaderboardStore, mirror: LocalMirrorStore):
        self.remote = remote
        self.mirror = mirror

    def get_category(self, category: str) -> List[Entry]:
        try:
            entries = self.remote.get_category(category)
        except TransportError as exc:
            logger.warning(f"[read-fallback] category={category} error={exc}")
            return self.mirror.get_category(category)
        self._refresh_mirror(category, entries)
        return entries

    def scan_all(self) -> List[Entry]:
        try:
            entries = self.remote.scan_all()
        except TransportError as exc:
            logger.warning(f"[read-fallback] scan_all error={exc}")
            return self.mirror.scan_all()
        grouped: Dict[str, List[Entry]] = {}
        for entry in entries:
            grouped.setdefault(entry.category, []).append(entry)
        with self.mirror.batch('*'):
            for category, group in grouped.items():
                self._refresh_mirror(category, group)
        return entries

    @staticmethod
    def _is_settled(entries: List[Entry]) -> bool:
        # A reconciliation caught mid-flight shows a gap or one entry at two ranks
        ranks = sorted(e.rank for e in entries)
        if ranks != list(range(1, len(entries) + 1)):
            return False
        identities = {(e.player_name, e.score, e.timestamp) for e in entries}
        return len(identities) == len(entries)

    def _refresh_mirror(self, category: str, entries: List[Entry]) -> None:
        if not self._is_settled(entries):
            logger.info(f"[mirror-refresh-skip] category={category} entries={len(entries)} not settled")
            return
        try:
            self.mirror.replace_category(category, entries)
        except TransportError as exc:
            # The read itself succeeded; a stale mirror only matters on the next outage
            logger.warning(f"[mirror-refresh-fail] category={category} error={exc}")

    def put_entry(self, entry: Entry) -> None:
        self.remote.put_entry(entry)

    def delete_entry(self, category: str, rank: int) -> None:
        self.remote.delete_entry(category, rank)

    def batch(self, category: str):
        return self.remote.batch(category)

    def for_writes(self) -> LeaderboardStore:
        return self.remote


def build_store(strategy, local_path: Optional[str] = None, categories: Iterable = ()) -> LeaderboardStore:
    """Construct the store selected by configuration."""
    try:
        strategy = StoreStrategy(strategy)
    except ValueError:
        valid = ', '.join(s.value for s in StoreStrategy)
        raise ConfigurationError(f"Unknown leaderboard backend {strategy!r}; expected one of {valid}") from None
    if strategy is StoreStrategy.LOCAL:
        return LocalMirrorStore(local_path, categories)
    if strategy is StoreStrategy.REMOTE_WITH_READ_FALLBACK:
        return ReadFallbackStore(SqlEntryStore(), LocalMirrorStore(local_path, categories))
    return SqlEntryStore()
