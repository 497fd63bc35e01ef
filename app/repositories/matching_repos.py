# app/repositories/matching_repos.py
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.domain.eligibility import MATCHABLE_STATUSES
from app.infrastructure.models import (
    GROUP_ACTIVE, GROUP_COMPLETED, Group, GroupMember, Participant,
)

# ----------------------------
# Participant
# ----------------------------

async def create_participant_repo(db: AsyncSession, participant_info: Dict) -> Participant:
    participant = Participant(
        name=participant_info["name"],
        telegram_id=participant_info.get("telegram_id"),
        region=participant_info["region"],
        birth_date=participant_info.get("birth_date"),
        age=participant_info.get("age") or 0,
        status=participant_info.get("status") or "Lead",
        on_pause=participant_info.get("on_pause", False),
    )
    db.add(participant)
    await db.commit()
    await db.refresh(participant)
    return participant


async def get_participant_repo(db: AsyncSession, participant_id: int) -> Optional[Participant]:
    return await db.get(Participant, participant_id)


async def list_participants_repo(db: AsyncSession, status: Optional[str] = None) -> List[Participant]:
    stmt = select(Participant).order_by(Participant.id)
    if status:
        stmt = stmt.where(Participant.status == status)
    result = await db.execute(stmt)
    return result.scalars().all()


async def save_participant_repo(db: AsyncSession, participant: Participant) -> Participant:
    db.add(participant)
    await db.commit()
    await db.refresh(participant)
    return participant


async def get_active_for_matching_repo(db: AsyncSession) -> List[Dict]:
    """
    Participants with status Active or Lead that are not on pause,
    as plain dicts for the domain layer.
    """
    result = await db.execute(
        select(Participant)
        .where(
            Participant.status.in_(MATCHABLE_STATUSES),
            Participant.on_pause.is_(False),
        )
        .order_by(Participant.id)
    )
    return [p.to_dict() for p in result.scalars().all()]


# ----------------------------
# Group
# ----------------------------

async def create_group_repo(
    db: AsyncSession,
    participant_ids: List[int],
    region: Optional[str] = None,
    stage: Optional[str] = None,
    status: str = GROUP_ACTIVE,
    created_at: Optional[datetime] = None,
    commit: bool = True,
) -> Group:
    """
    commit=False only flushes, so several groups can share one transaction.
    """
    grp = Group(
        region=region,
        stage=stage,
        status=status,
        created_at=created_at or datetime.utcnow(),
        members=[GroupMember(participant_id=pid) for pid in participant_ids],
    )
    db.add(grp)
    if not commit:
        await db.flush()
        return grp
    await db.commit()
    await db.refresh(grp)
    return grp


async def get_group_repo(db: AsyncSession, group_id: int) -> Optional[Group]:
    result = await db.execute(
        select(Group)
        .where(Group.id == group_id)
        .options(selectinload(Group.members).selectinload(GroupMember.participant))
    )
    return result.scalar_one_or_none()


async def list_groups_repo(db: AsyncSession, status: Optional[str] = None) -> List[Group]:
    stmt = select(Group).order_by(Group.created_at.desc(), Group.id.desc())
    if status:
        stmt = stmt.where(Group.status == status)
    result = await db.execute(stmt)
    return result.scalars().all()


async def update_group_status_repo(db: AsyncSession, group_id: int, status: str) -> Optional[Group]:
    grp = await db.get(Group, group_id)
    if not grp:
        return None
    grp.status = status
    await db.commit()
    await db.refresh(grp)
    return grp


async def get_participants_in_active_groups_repo(db: AsyncSession) -> List[int]:
    result = await db.execute(
        select(GroupMember.participant_id)
        .join(Group, Group.id == GroupMember.group_id)
        .where(Group.status == GROUP_ACTIVE)
    )
    return list(result.scalars().all())


async def get_group_history_repo(db: AsyncSession, since: datetime) -> List[List[int]]:
    """
    Member id lists of every group created at or after `since`, any status.
    """
    result = await db.execute(
        select(GroupMember.group_id, GroupMember.participant_id)
        .join(Group, Group.id == GroupMember.group_id)
        .where(Group.created_at >= since)
        .order_by(GroupMember.group_id, GroupMember.participant_id)
    )
    history: Dict[int, List[int]] = {}
    for group_id, participant_id in result.all():
        history.setdefault(group_id, []).append(participant_id)
    return list(history.values())


async def close_active_groups_repo(db: AsyncSession) -> int:
    """Mark every Active group Completed; returns how many were closed."""
    result = await db.execute(
        update(Group)
        .where(Group.status == GROUP_ACTIVE)
        .values(status=GROUP_COMPLETED)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    return result.rowcount
