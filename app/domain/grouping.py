# app/domain/grouping.py

from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple
from dataclasses import dataclass

from app.domain.models import Region

MIN_GROUP_SIZE = 2
MAX_GROUP_SIZE = 4

# Center is the only bridge between North and South.
NEIGHBORING_REGIONS: Dict[Region, FrozenSet[Region]] = {
    Region.NORTH: frozenset({Region.CENTER}),
    Region.CENTER: frozenset({Region.NORTH, Region.SOUTH}),
    Region.SOUTH: frozenset({Region.CENTER}),
}


class RegionRule(str, Enum):
    SAME = "same"
    ADJACENT = "adjacent"
    PERMITTED = "permitted"  # same or adjacent


def are_neighbors(a: Region, b: Region) -> bool:
    return b in NEIGHBORING_REGIONS[a]


def regions_compatible(a: Region, b: Region) -> bool:
    """False only for a North/South mix."""
    return a == b or are_neighbors(a, b)


def region_rule_allows(rule: RegionRule, a: Region, b: Region) -> bool:
    if rule is RegionRule.SAME:
        return a == b
    if rule is RegionRule.ADJACENT:
        return are_neighbors(a, b)
    return regions_compatible(a, b)


@dataclass(frozen=True)
class MatchingStage:
    name: str
    region_rule: RegionRule
    max_age_gap: Optional[int] = None  # None = unconstrained
    avoid_repeats: bool = False
    description: str = ""


# Evaluated in order; each stage sees only the participants earlier stages left over.
STAGES: Tuple[MatchingStage, ...] = (
    MatchingStage("A", RegionRule.SAME, 10, True, "same region, ±10 years, new people"),
    MatchingStage("B", RegionRule.SAME, 15, True, "same region, ±15 years, new people"),
    MatchingStage("C", RegionRule.SAME, 15, False, "same region, ±15 years, repeats allowed"),
    MatchingStage("D", RegionRule.ADJACENT, 15, False, "neighboring regions, ±15 years"),
    MatchingStage("E", RegionRule.PERMITTED, None, False, "force majeure, never North+South"),
)
