# tests/test_domain.py
import random

from app.domain.grouping import MAX_GROUP_SIZE, MIN_GROUP_SIZE
from app.domain.history import build_history_pairs
from app.domain.matching_logic import (
    MSG_ALL_BUSY,
    MSG_NOT_ENOUGH,
    MSG_NOT_ENOUGH_AVAILABLE,
    match_participants,
    run_matching,
)
from app.domain.models import ParticipantDTO, Region


def person(pid, region="Center", age=30):
    return ParticipantDTO(id=pid, name=f"p{pid}", region=region, age=age)


def record(pid, region="Center", age=30, status="Active", on_pause=False):
    return {"id": pid, "name": f"p{pid}", "region": region, "age": age,
            "status": status, "on_pause": on_pause, "birth_date": None}


def assert_invariants(run, candidates):
    seen = []
    for g in run.groups:
        assert MIN_GROUP_SIZE <= len(g.members) <= MAX_GROUP_SIZE
        regions = {m.region for m in g.members}
        assert not {Region.NORTH, Region.SOUTH} <= regions
        seen.extend(g.member_ids)
    seen.extend(p.id for p in run.unmatched)
    assert len(seen) == len(set(seen))
    assert sorted(seen) == sorted(p.id for p in candidates)
    assert run.result.groups_created == len(run.groups)
    assert run.result.unpaired == len(run.unmatched)


# -------------------------------
# Early exits
# -------------------------------

def test_zero_candidates():
    run = run_matching([], set())
    assert run.result.success is False
    assert run.result.groups_created == 0
    assert run.result.message == MSG_NOT_ENOUGH


def test_one_candidate():
    run = run_matching([person(1)], set())
    assert run.result.success is False
    assert run.result.groups_created == 0
    assert run.result.message == MSG_NOT_ENOUGH


def test_all_busy():
    directory = [record(1), record(2)]
    run = match_participants(directory, busy_ids=[1, 2], recent_history=set())
    assert run.result.success is True
    assert run.result.groups_created == 0
    assert run.result.message == MSG_ALL_BUSY


def test_one_available_is_reported_unmatched():
    directory = [record(1), record(2)]
    run = match_participants(directory, busy_ids=[1], recent_history=set())
    assert run.result.success is True
    assert run.result.unpaired_ids == [2]
    assert run.result.message == MSG_NOT_ENOUGH_AVAILABLE


def test_paused_and_inactive_do_not_count():
    directory = [record(1), record(2, on_pause=True), record(3, status="Inactive")]
    run = match_participants(directory, busy_ids=[], recent_history=set())
    assert run.result.success is False
    assert run.result.message == MSG_NOT_ENOUGH


def test_lead_status_is_matched():
    directory = [record(1, status="Lead"), record(2, status="Active")]
    run = match_participants(directory, busy_ids=[], recent_history=set())
    assert run.result.groups_created == 1


# -------------------------------
# Stages
# -------------------------------

def test_stage_a_close_ages():
    candidates = [person(1, "Center", 30), person(2, "Center", 35)]
    run = run_matching(candidates, set())
    assert run.result.success is True
    assert run.result.groups_created == 1
    assert run.result.unpaired == 0
    assert run.groups[0].stage == "A"
    assert run.groups[0].region == Region.CENTER


def test_stage_b_thirteen_year_gap():
    candidates = [person(1, "North", 30), person(2, "North", 43)]
    run = run_matching(candidates, set())
    assert run.result.groups_created == 1
    assert run.result.unpaired == 0
    assert run.groups[0].stage == "B"


def test_north_south_never_paired():
    candidates = [person(1, "North", 30), person(2, "South", 30)]
    run = run_matching(candidates, set())
    assert run.result.success is True
    assert run.result.groups_created == 0
    assert run.result.unpaired == 2
    assert run.result.unpaired_names == ["p1", "p2"]


def test_north_center_paired_in_stage_d():
    candidates = [person(1, "North", 30), person(2, "Center", 35)]
    run = run_matching(candidates, set())
    assert run.result.groups_created == 1
    assert run.result.unpaired == 0
    assert run.groups[0].stage == "D"
    assert run.groups[0].region is None


def test_large_age_gap_falls_to_stage_e():
    candidates = [person(1, "South", 20), person(2, "Center", 70)]
    run = run_matching(candidates, set())
    assert run.groups[0].stage == "E"
    assert run.result.unpaired == 0


def test_three_same_region_form_one_group():
    candidates = [person(1), person(2, age=32), person(3, age=34)]
    run = run_matching(candidates, set())
    assert run.result.groups_created == 1
    assert run.result.unpaired == 0
    assert len(run.groups[0].members) == 3


def test_ten_same_region():
    candidates = [person(i, "South", 25 + i) for i in range(1, 11)]
    run = run_matching(candidates, set())
    assert run.result.groups_created >= 2
    assert run.result.unpaired <= 1
    assert_invariants(run, candidates)


def test_history_respected_in_stage_a():
    candidates = [person(i) for i in range(1, 5)]
    history = build_history_pairs([[1, 2], [3, 4]])
    run = run_matching(candidates, history)
    pairs = [set(g.member_ids) for g in run.groups]
    assert {1, 2} not in pairs
    assert {3, 4} not in pairs
    assert all(g.stage == "A" for g in run.groups)


def test_history_repeat_allowed_in_stage_c():
    candidates = [person(1), person(2)]
    history = build_history_pairs([[1, 2]])
    run = run_matching(candidates, history)
    assert run.result.groups_created == 1
    assert run.groups[0].stage == "C"


def test_history_given_as_tuples_in_either_order():
    for history in ({(1, 2)}, {(2, 1)}, [[1, 2]]):
        run = run_matching([person(1), person(2)], history)
        assert run.result.groups_created == 1
        assert run.groups[0].stage == "C"


def test_center_bridge_does_not_pull_in_south():
    candidates = [person(1, "North"), person(2, "South"), person(3, "Center")]
    run = run_matching(candidates, set())
    assert [g.member_ids for g in run.groups] == [[1, 3]]
    assert run.result.unpaired_ids == [2]
    assert_invariants(run, candidates)


def test_input_order_does_not_change_groups():
    candidates = [person(i, region, age) for i, (region, age) in enumerate(
        [("North", 22), ("Center", 41), ("South", 35), ("North", 29),
         ("Center", 38), ("South", 60), ("Center", 25)], start=1)]
    shuffled = list(candidates)
    random.Random(7).shuffle(shuffled)
    first = run_matching(candidates, set())
    second = run_matching(shuffled, set())
    assert [g.member_ids for g in first.groups] == [g.member_ids for g in second.groups]


def test_invariants_hold_for_random_pools():
    rng = random.Random(2024)
    regions = ["North", "Center", "South"]
    for _ in range(200):
        size = rng.randint(2, 40)
        candidates = [person(i, rng.choice(regions), rng.randint(18, 75)) for i in range(1, size + 1)]
        ids = [p.id for p in candidates]
        history = build_history_pairs(
            [rng.sample(ids, min(len(ids), rng.randint(2, 4))) for _ in range(rng.randint(0, 10))]
        )
        run = run_matching(candidates, history)
        assert run.result.success is True
        assert_invariants(run, candidates)
