"""Shift/evict/insert sequence that keeps a category's ranks dense.

The durable store offers no multi-key transaction, so the order of writes
here is what keeps a category readable while a reconciliation is in
flight. Callers serialize per category; nothing here locks.
"""

import logging
from functools import cmp_to_key

from .categories import OrderingDirection
from .ranking import beats
from .stores import Entry, LeaderboardStore


logger = logging.getLogger(__name__)


def insert(category: str, target_rank: int, new_entry: Entry, store: LeaderboardStore, capacity: int) -> None:
    """Place ``new_entry`` at ``target_rank``, pushing worse entries down one rank.

    Displaced entries are rewritten highest rank first, so no entry is
    overwritten before it has been copied one slot down. Whatever is pushed
    past ``capacity`` is deleted. A final delete at ``capacity + 1`` clears a
    stray left behind by an earlier interrupted run.
    """
    if not 1 <= target_rank <= capacity:
        raise ValueError(f"target rank {target_rank} outside 1..{capacity}")

    with store.batch(category):
        current = store.get_category(category)
        displaced = sorted((e for e in current if e.rank >= target_rank), key=lambda e: e.rank, reverse=True)

        step, rank = 'shift', None
        try:
            for entry in displaced:
                rank = entry.rank
                if entry.rank + 1 <= capacity:
                    store.put_entry(entry.at_rank(entry.rank + 1))
                else:
                    store.delete_entry(category, entry.rank)
            step, rank = 'insert', target_rank
            store.put_entry(new_entry.at_rank(target_rank))
            step, rank = 'cleanup', capacity + 1
            store.delete_entry(category, capacity + 1)
        except Exception as exc:
            logger.error(f"[reconcile-fail] category={category} step={step} rank={rank} target={target_rank} error={exc}")
            raise

    logger.debug(f"[reconcile] category={category} target={target_rank} shifted={len(displaced)}")


def _ordering(direction: OrderingDirection):
    def compare(a: Entry, b: Entry) -> int:
        if beats(a.score, b.score, direction):
            return -1
        if beats(b.score, a.score, direction):
            return 1
        # Equal scores: first come, first served
        if a.timestamp != b.timestamp:
            return -1 if a.timestamp < b.timestamp else 1
        return a.rank - b.rank
    return cmp_to_key(compare)


def repair(category: str, store: LeaderboardStore, direction: OrderingDirection, capacity: int) -> int:
    """Re-sort and re-number a category from a full read.

    Heals what an interrupted reconciliation can leave behind: an entry
    duplicated at two ranks, a gap, or a stray past ``capacity``. Only ranks
    whose content changes are written, so a consistent category costs no
    writes. Returns the number of puts and deletes issued.
    """
    with store.batch(category):
        current = store.get_category(category)

        seen = set()
        unique = []
        for entry in current:
            key = (entry.player_name, entry.score, entry.timestamp)
            if key in seen:
                continue
            seen.add(key)
            unique.append(entry)

        ordered = sorted(unique, key=_ordering(direction))[:capacity]
        by_rank = {e.rank: e for e in current}

        writes = 0
        for index, entry in enumerate(ordered):
            rank = index + 1
            existing = by_rank.get(rank)
            if existing is not None and existing == entry.at_rank(rank):
                continue
            store.put_entry(entry.at_rank(rank))
            writes += 1
        for rank in sorted((r for r in by_rank if r > len(ordered)), reverse=True):
            store.delete_entry(category, rank)
            writes += 1

    if writes:
        logger.warning(f"[repair] category={category} writes={writes} entries={len(ordered)}")
    return writes
