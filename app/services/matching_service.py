# app/services/matching_service.py
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.domain import matching_logic as domain
from app.domain.eligibility import PARTICIPANT_STATUSES
from app.domain.history import build_history_pairs, history_cutoff
from app.domain.models import MatchingRun, ParticipantDTO
from app.infrastructure.models import GROUP_STATUSES, Group, Participant
from app.repositories.matching_repos import (
    close_active_groups_repo,
    create_group_repo,
    create_participant_repo,
    get_active_for_matching_repo,
    get_group_history_repo,
    get_group_repo,
    get_participant_repo,
    get_participants_in_active_groups_repo,
    list_groups_repo,
    list_participants_repo,
    save_participant_repo,
    update_group_status_repo,
)

logger = logging.getLogger(__name__)


# ----------------------------
# Participants
# ----------------------------

async def create_participant(db: AsyncSession, participant_info: Dict) -> Participant:
    status = participant_info.get("status") or "Lead"
    if status not in PARTICIPANT_STATUSES:
        raise ValueError(f"Invalid participant status: {status}")
    # validates region and age the same way the matcher will read them
    ParticipantDTO(
        id=0,
        name=participant_info.get("name") or "",
        region=participant_info.get("region"),
        age=participant_info.get("age") or 0,
    )
    return await create_participant_repo(db, participant_info)


async def list_participants(db: AsyncSession, status: Optional[str] = None) -> List[Participant]:
    return await list_participants_repo(db, status)


async def get_participant(db: AsyncSession, participant_id: int) -> Participant:
    participant = await get_participant_repo(db, participant_id)
    if not participant:
        raise ValueError("Participant not found")
    return participant


async def toggle_pause(db: AsyncSession, participant_id: int) -> Participant:
    participant = await get_participant(db, participant_id)
    participant.on_pause = not participant.on_pause
    return await save_participant_repo(db, participant)


async def update_participant_status(db: AsyncSession, participant_id: int, status: str) -> Participant:
    if status not in PARTICIPANT_STATUSES:
        raise ValueError(f"Invalid participant status: {status}")
    participant = await get_participant(db, participant_id)
    participant.status = status
    return await save_participant_repo(db, participant)


# ----------------------------
# Groups
# ----------------------------

async def list_groups(db: AsyncSession, status: Optional[str] = None) -> List[Group]:
    return await list_groups_repo(db, status)


async def get_group(db: AsyncSession, group_id: int) -> Group:
    group = await get_group_repo(db, group_id)
    if not group:
        raise ValueError("Group not found")
    return group


async def update_group_status(db: AsyncSession, group_id: int, status: str) -> Group:
    if status not in GROUP_STATUSES:
        raise ValueError(f"Invalid group status: {status}")
    group = await update_group_status_repo(db, group_id, status)
    if not group:
        raise ValueError("Group not found")
    return group


async def close_active_groups(db: AsyncSession) -> int:
    closed = await close_active_groups_repo(db)
    logger.info(f"Closed {closed} active groups")
    return closed


# ----------------------------
# Matching
# ----------------------------

async def run_weekly_matching(
    db: AsyncSession,
    now: Optional[datetime] = None,
    persist: bool = True,
) -> MatchingRun:
    """
    Load the eligible pool, busy set and recent history, run the matcher and
    persist each resulting group as Active.

    persist=False is a dry run: the groups are computed and returned only.
    """
    now = now or datetime.utcnow()
    logger.info("Starting weekly matching...")

    directory = await get_active_for_matching_repo(db)
    busy_ids = await get_participants_in_active_groups_repo(db)
    logger.info(f"Already in active groups: {len(set(busy_ids))} people")

    since = history_cutoff(now, settings.HISTORY_WEEKS)
    history = build_history_pairs(await get_group_history_repo(db, since))
    logger.info(f"Group history (last {settings.HISTORY_WEEKS} weeks): {len(history)} pairs")

    run = domain.match_participants(directory, busy_ids, history, today=now.date())
    if not persist or not run.groups:
        return run

    # all groups of a run are saved together or not at all
    created = 0
    try:
        for group in run.groups:
            await create_group_repo(
                db,
                group.member_ids,
                region=group.region.value if group.region else None,
                stage=group.stage,
                created_at=now,
                commit=False,
            )
            created += 1
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Saving matched groups failed, nothing was persisted")
        raise

    run.result.groups_created = created
    logger.info(f"Matching complete: {created} groups created, {run.result.unpaired} without group")
    return run


async def weekly_close_and_match(db: AsyncSession, now: Optional[datetime] = None) -> MatchingRun:
    """
    Close the current week, then match for the next one.
    Closing first keeps last week's members from being counted as busy.
    """
    await close_active_groups(db)
    return await run_weekly_matching(db, now=now)
