# app/routers/matching_routers.py
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import MatchingRun, Region
from app.infrastructure.db.session import get_async_session as get_db
from app.services.matching_service import (
    close_active_groups,
    create_participant,
    get_group,
    get_participant,
    list_groups,
    list_participants,
    run_weekly_matching,
    toggle_pause,
    update_group_status,
    update_participant_status,
    weekly_close_and_match,
)

router = APIRouter()

# ---------- Request schemas ----------
class CreateParticipantRequest(BaseModel):
    name: str
    region: Region
    telegram_id: Optional[str] = None
    birth_date: Optional[date] = None
    age: Optional[int] = Field(default=None, ge=0)
    status: Optional[str] = "Lead"
    on_pause: bool = False

    class Config:
        extra = "forbid"

class StatusRequest(BaseModel):
    status: str

    class Config:
        extra = "forbid"

# ---------- Utility functions ----------
def _json_safe(value: Any) -> Any:
    """Convert non-JSON-serializable values into safe primitives."""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value

def orm_to_dict(instance) -> Dict[str, Any]:
    """Safe serializer for ORM objects exposing to_dict()."""
    if instance is None:
        return {}
    return {k: _json_safe(v) for k, v in instance.to_dict().items()}

def run_to_dict(run: MatchingRun) -> Dict[str, Any]:
    return {
        "ok": True,
        "result": run.result.model_dump(),
        "groups": [
            {
                "participant_ids": g.member_ids,
                "names": [m.name for m in g.members],
                "region": g.region.value if g.region else None,
                "stage": g.stage,
            }
            for g in run.groups
        ],
    }

def _raise_http(e: ValueError):
    code = 404 if "not found" in str(e).lower() else 400
    raise HTTPException(status_code=code, detail=str(e))

# ---------- Participants ----------
@router.post("/participants")
async def create_participant_endpoint(
    payload: CreateParticipantRequest,
    db: AsyncSession = Depends(get_db)
):
    participant_info = payload.model_dump()
    participant_info["region"] = payload.region.value
    try:
        participant = await create_participant(db, participant_info)
    except ValueError as e:
        _raise_http(e)
    return JSONResponse(content={"ok": True, "participant": orm_to_dict(participant)})

@router.get("/participants")
async def list_participants_endpoint(
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    participants = await list_participants(db, status)
    return JSONResponse(content={"ok": True, "participants": [orm_to_dict(p) for p in participants]})

@router.get("/participants/{participant_id}")
async def get_participant_endpoint(
    participant_id: int,
    db: AsyncSession = Depends(get_db)
):
    try:
        participant = await get_participant(db, participant_id)
    except ValueError as e:
        _raise_http(e)
    return JSONResponse(content={"ok": True, "participant": orm_to_dict(participant)})

@router.post("/participants/{participant_id}/toggle_pause")
async def toggle_pause_endpoint(
    participant_id: int,
    db: AsyncSession = Depends(get_db)
):
    try:
        participant = await toggle_pause(db, participant_id)
    except ValueError as e:
        _raise_http(e)
    return JSONResponse(content={"ok": True, "participant": orm_to_dict(participant)})

@router.post("/participants/{participant_id}/status")
async def participant_status_endpoint(
    participant_id: int,
    payload: StatusRequest,
    db: AsyncSession = Depends(get_db)
):
    try:
        participant = await update_participant_status(db, participant_id, payload.status)
    except ValueError as e:
        _raise_http(e)
    return JSONResponse(content={"ok": True, "participant": orm_to_dict(participant)})

# ---------- Groups ----------
@router.get("/groups")
async def list_groups_endpoint(
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    groups = await list_groups(db, status)
    return JSONResponse(content={"ok": True, "groups": [orm_to_dict(g) for g in groups]})

@router.post("/groups/close_active")
async def close_active_groups_endpoint(db: AsyncSession = Depends(get_db)):
    closed = await close_active_groups(db)
    return JSONResponse(content={"ok": True, "closed": closed})

@router.get("/groups/{group_id}")
async def get_group_endpoint(
    group_id: int,
    db: AsyncSession = Depends(get_db)
):
    try:
        group = await get_group(db, group_id)
    except ValueError as e:
        _raise_http(e)
    data = orm_to_dict(group)
    data["members"] = [
        {"id": m.participant.id, "name": m.participant.name, "region": m.participant.region}
        for m in group.members
    ]
    return JSONResponse(content={"ok": True, "group": data})

@router.post("/groups/{group_id}/status")
async def group_status_endpoint(
    group_id: int,
    payload: StatusRequest,
    db: AsyncSession = Depends(get_db)
):
    try:
        group = await update_group_status(db, group_id, payload.status)
    except ValueError as e:
        _raise_http(e)
    return JSONResponse(content={"ok": True, "group": orm_to_dict(group)})

# ---------- Matching ----------
@router.post("/run")
async def run_matching_endpoint(db: AsyncSession = Depends(get_db)):
    run = await run_weekly_matching(db)
    return JSONResponse(content=run_to_dict(run))

@router.post("/preview")
async def preview_matching_endpoint(db: AsyncSession = Depends(get_db)):
    run = await run_weekly_matching(db, persist=False)
    return JSONResponse(content=run_to_dict(run))

@router.post("/weekly_cycle")
async def weekly_cycle_endpoint(db: AsyncSession = Depends(get_db)):
    run = await weekly_close_and_match(db)
    return JSONResponse(content=run_to_dict(run))
