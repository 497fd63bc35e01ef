# app/domain/eligibility.py
"""
Eligibility filter for the weekly matching run.

Directory records are plain dicts extracted by the service layer:
    {"id": int, "name": str, "region": str, "status": str,
     "on_pause": bool, "birth_date": date | None, "age": int}
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from app.domain.models import ParticipantDTO

STATUS_LEAD = "Lead"
STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"

PARTICIPANT_STATUSES = (STATUS_LEAD, STATUS_ACTIVE, STATUS_INACTIVE)
MATCHABLE_STATUSES = (STATUS_ACTIVE, STATUS_LEAD)


@dataclass
class EligibilityResult:
    qualified: List[ParticipantDTO] = field(default_factory=list)
    available: List[ParticipantDTO] = field(default_factory=list)


def calculate_age(birth_date: date, today: Optional[date] = None) -> int:
    """
    Full years between birth_date and today.

    >>> calculate_age(date(1990, 6, 15), date(2024, 6, 14))
    33
    >>> calculate_age(date(1990, 6, 15), date(2024, 6, 15))
    34
    """
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def is_matchable(record: Dict) -> bool:
    return record.get("status") in MATCHABLE_STATUSES and not record.get("on_pause", False)


def to_candidate(record: Dict, today: Optional[date] = None) -> ParticipantDTO:
    birth_date = record.get("birth_date")
    age = calculate_age(birth_date, today) if birth_date else record.get("age", 0)
    return ParticipantDTO(
        id=record["id"],
        name=record.get("name") or "",
        region=record["region"],
        age=age,
    )


def filter_eligible(
    directory: Iterable[Dict],
    busy_ids: Iterable[int] = (),
    today: Optional[date] = None,
) -> EligibilityResult:
    """
    Split the directory into qualified participants (Active/Lead, not paused)
    and the subset that is not already in an unfinished group.
    """
    busy = set(busy_ids)
    qualified = [to_candidate(r, today) for r in directory if is_matchable(r)]
    available = [p for p in qualified if p.id not in busy]
    return EligibilityResult(qualified=qualified, available=available)
