# app/domain/history.py
from datetime import datetime, timedelta
from itertools import combinations
from typing import FrozenSet, Iterable, List, Optional, Set

HistoryPairs = Set[FrozenSet[int]]


def history_cutoff(now: Optional[datetime] = None, weeks: int = 4) -> datetime:
    """Start of the lookback window."""
    now = now or datetime.utcnow()
    return now - timedelta(weeks=weeks)


def build_history_pairs(member_lists: Iterable[List[int]]) -> HistoryPairs:
    """
    Every participant in a group met every other participant of that group.

    >>> sorted(sorted(p) for p in build_history_pairs([[1, 2, 3]]))
    [[1, 2], [1, 3], [2, 3]]
    """
    pairs: HistoryPairs = set()
    for members in member_lists:
        unique = sorted(set(m for m in members if m is not None))
        for a, b in combinations(unique, 2):
            pairs.add(frozenset((a, b)))
    return pairs


def normalize_history(pairs: Iterable[Iterable[int]]) -> HistoryPairs:
    """
    Accept pairs as tuples, lists or frozensets in either order.

    >>> normalize_history({(2, 1)}) == {frozenset((1, 2))}
    True
    """
    return {frozenset(pair) for pair in pairs}


def have_met(history: HistoryPairs, a: int, b: int) -> bool:
    return frozenset((a, b)) in history
