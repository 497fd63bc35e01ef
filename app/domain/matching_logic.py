# app/domain/matching_logic.py
"""
Pure domain logic for the weekly matching run.

This module contains only pure functions over DTOs and plain Python data
structures. Service-layer code loads participants and history from the
database, calls these functions and persists the resulting groups.

Functions included:
- is_compatible
- match_stage
- run_stages
- consolidate_groups
- build_result
- run_matching
- match_participants

No DB access, no randomness: the same input always gives the same groups.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.domain.eligibility import filter_eligible
from app.domain.grouping import (
    MAX_GROUP_SIZE,
    MIN_GROUP_SIZE,
    STAGES,
    MatchingStage,
    region_rule_allows,
    regions_compatible,
)
from app.domain.history import HistoryPairs, have_met, normalize_history
from app.domain.models import GroupDTO, MatchingResult, MatchingRun, ParticipantDTO, Region

logger = logging.getLogger(__name__)

MSG_NOT_ENOUGH = "Not enough participants"
MSG_ALL_BUSY = "All participants already in active groups"
MSG_NOT_ENOUGH_AVAILABLE = "Not enough available participants"


# ----------------------------
# Staged Matcher
# ----------------------------

def is_compatible(
    a: ParticipantDTO,
    b: ParticipantDTO,
    history: HistoryPairs,
    stage: MatchingStage,
) -> bool:
    """Check whether two participants may be paired under a stage's rule."""
    if not region_rule_allows(stage.region_rule, a.region, b.region):
        return False
    if stage.max_age_gap is not None and abs(a.age - b.age) > stage.max_age_gap:
        return False
    if stage.avoid_repeats and have_met(history, a.id, b.id):
        return False
    return True


def shared_region(members: Iterable[ParticipantDTO]) -> Optional[Region]:
    regions = {m.region for m in members}
    return regions.pop() if len(regions) == 1 else None


def match_stage(
    pool: Sequence[ParticipantDTO],
    history: HistoryPairs,
    stage: MatchingStage,
) -> Tuple[List[GroupDTO], List[ParticipantDTO]]:
    """
    Greedily pair the pool under one stage's rule.

    Walks the pool in order; each unpaired participant takes the first later
    participant that is compatible. Returns (pairs, leftover) with leftover in
    pool order.

    Example:
    >>> a = ParticipantDTO(id=1, name="a", region="North", age=30)
    >>> b = ParticipantDTO(id=2, name="b", region="North", age=35)
    >>> pairs, rest = match_stage([a, b], set(), STAGES[0])
    >>> [g.member_ids for g in pairs], rest
    ([[1, 2]], [])
    """
    paired = set()
    groups: List[GroupDTO] = []

    for i, first in enumerate(pool):
        if first.id in paired:
            continue
        for second in pool[i + 1:]:
            if second.id in paired:
                continue
            if is_compatible(first, second, history, stage):
                members = [first, second]
                groups.append(GroupDTO(members=members, region=shared_region(members), stage=stage.name))
                paired.update((first.id, second.id))
                logger.debug(f"Stage {stage.name}: {first.name} + {second.name}")
                break

    leftover = [p for p in pool if p.id not in paired]
    return groups, leftover


def run_stages(
    pool: Sequence[ParticipantDTO],
    history: HistoryPairs,
    stages: Sequence[MatchingStage] = STAGES,
) -> Tuple[List[GroupDTO], List[ParticipantDTO]]:
    """Run the stages in order over a shrinking pool."""
    all_groups: List[GroupDTO] = []
    remaining = list(pool)

    for stage in stages:
        if len(remaining) < MIN_GROUP_SIZE:
            break
        groups, remaining = match_stage(remaining, history, stage)
        all_groups.extend(groups)
        logger.info(
            f"Stage {stage.name} ({stage.description}): "
            f"{len(groups)} groups, {len(remaining)} remaining"
        )

    return all_groups, remaining


# ----------------------------
# Group Consolidator
# ----------------------------

def _absorb_key(indexed: Tuple[int, GroupDTO], loner: ParticipantDTO):
    # smallest group, then same-region group, then earliest formed
    index, group = indexed
    same_region = all(m.region == loner.region for m in group.members)
    return (len(group.members), 0 if same_region else 1, index)


def consolidate_groups(
    groups: List[GroupDTO],
    leftover: Sequence[ParticipantDTO],
) -> Tuple[List[GroupDTO], List[ParticipantDTO]]:
    """
    Fold leftover participants into existing groups of 2-3 instead of
    reporting them as unmatched.

    A leftover only joins a group whose members are all region-compatible with
    it (never a North/South mix). Groups never grow beyond MAX_GROUP_SIZE.
    Returns (groups, unmatched); the input list is not modified.

    Example:
    >>> a, b, c = (ParticipantDTO(id=i, name=str(i), region="Center", age=30) for i in (1, 2, 3))
    >>> groups, unmatched = consolidate_groups([GroupDTO(members=[a, b], region="Center")], [c])
    >>> [g.member_ids for g in groups], unmatched
    ([[1, 2, 3]], [])
    """
    result = [g.model_copy(update={"members": list(g.members)}) for g in groups]
    unmatched: List[ParticipantDTO] = []

    for loner in leftover:
        candidates = [
            (i, g) for i, g in enumerate(result)
            if MIN_GROUP_SIZE <= len(g.members) < MAX_GROUP_SIZE
            and all(regions_compatible(loner.region, m.region) for m in g.members)
        ]
        if not candidates:
            logger.warning(f"No group can absorb {loner.name} ({loner.region.value})")
            unmatched.append(loner)
            continue

        index, group = min(candidates, key=lambda c: _absorb_key(c, loner))
        members = group.members + [loner]
        result[index] = group.model_copy(update={"members": members, "region": shared_region(members)})
        logger.info(f"Added {loner.name} to group {index + 1} ({len(members)} members)")

    return result, unmatched


# ----------------------------
# Result Reporter
# ----------------------------

def build_result(
    groups: Sequence[GroupDTO],
    unmatched: Sequence[ParticipantDTO],
    message: Optional[str] = None,
) -> MatchingResult:
    return MatchingResult(
        success=True,
        groups_created=len(groups),
        unpaired=len(unmatched),
        unpaired_names=[p.name for p in unmatched],
        unpaired_ids=[p.id for p in unmatched],
        message=message,
    )


def not_enough_participants() -> MatchingRun:
    return MatchingRun(result=MatchingResult(success=False, message=MSG_NOT_ENOUGH))


# ----------------------------
# Entry points
# ----------------------------

def run_matching(
    candidates: Sequence[ParticipantDTO],
    recent_history: Iterable[Iterable[int]],
) -> MatchingRun:
    """
    Partition the candidates into groups of 2-4.

    candidates: participants eligible this cycle (already filtered, not busy)
    recent_history: unordered id pairs that met within the lookback window
    (tuples in either order or frozensets)

    The pool is ordered by participant id before Stage A; that order is the
    tie-break for every stage and for the consolidator.
    """
    if len(candidates) < MIN_GROUP_SIZE:
        logger.info("Not enough participants for matching")
        return not_enough_participants()

    history = normalize_history(recent_history)
    pool = sorted(candidates, key=lambda p: p.id)
    groups, leftover = run_stages(pool, history)
    groups, unmatched = consolidate_groups(groups, leftover)

    for p in unmatched:
        logger.warning(f"Without group: {p.name} | {p.region.value}")

    return MatchingRun(groups=groups, unmatched=unmatched, result=build_result(groups, unmatched))


def match_participants(
    directory: Iterable[Dict],
    busy_ids: Iterable[int],
    recent_history: Iterable[Iterable[int]],
    today: Optional[date] = None,
) -> MatchingRun:
    """Eligibility filter + early exits + run_matching."""
    eligibility = filter_eligible(directory, busy_ids, today)
    logger.info(
        f"Found {len(eligibility.qualified)} active participants, "
        f"{len(eligibility.available)} available for matching"
    )

    if len(eligibility.qualified) < MIN_GROUP_SIZE:
        return not_enough_participants()

    if not eligibility.available:
        return MatchingRun(result=build_result([], [], message=MSG_ALL_BUSY))

    if len(eligibility.available) < MIN_GROUP_SIZE:
        unmatched = list(eligibility.available)
        return MatchingRun(
            unmatched=unmatched,
            result=build_result([], unmatched, message=MSG_NOT_ENOUGH_AVAILABLE),
        )

    return run_matching(eligibility.available, recent_history)
