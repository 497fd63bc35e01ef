# tests/test_eligibility.py
from datetime import date

import pytest
from pydantic import ValidationError

from app.domain.eligibility import calculate_age, filter_eligible, to_candidate


def record(pid, status="Active", on_pause=False, region="Center", age=30, birth_date=None):
    return {"id": pid, "name": f"p{pid}", "region": region, "age": age,
            "status": status, "on_pause": on_pause, "birth_date": birth_date}


def test_calculate_age_before_and_after_birthday():
    assert calculate_age(date(1990, 6, 15), date(2024, 6, 14)) == 33
    assert calculate_age(date(1990, 6, 15), date(2024, 6, 15)) == 34
    assert calculate_age(date(1990, 6, 15), date(2024, 12, 1)) == 34


def test_leap_day_birthday():
    assert calculate_age(date(2000, 2, 29), date(2023, 2, 28)) == 22
    assert calculate_age(date(2000, 2, 29), date(2023, 3, 1)) == 23


def test_birth_date_overrides_stored_age():
    candidate = to_candidate(record(1, age=99, birth_date=date(1994, 1, 1)), today=date(2024, 6, 1))
    assert candidate.age == 30


def test_filter_excludes_inactive_paused_and_busy():
    directory = [
        record(1),
        record(2, status="Lead"),
        record(3, status="Inactive"),
        record(4, on_pause=True),
        record(5),
    ]
    result = filter_eligible(directory, busy_ids=[5])
    assert [p.id for p in result.qualified] == [1, 2, 5]
    assert [p.id for p in result.available] == [1, 2]


def test_unknown_region_is_rejected():
    with pytest.raises(ValidationError):
        to_candidate(record(1, region="East"))
