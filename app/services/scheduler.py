# app/services/scheduler.py
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from app.config.settings import settings
from app.services.matching_service import weekly_close_and_match

logger = logging.getLogger(__name__)


def slot_for_week(now: datetime, weekday: int, hour: int) -> datetime:
    """The scheduled run time in the ISO week containing `now`."""
    monday = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
    return monday + timedelta(days=weekday, hours=hour)


def is_due(now: datetime, last_run: Optional[datetime], weekday: int, hour: int) -> bool:
    """
    True once the week's slot has passed and nothing has run since it.

    >>> sat = datetime(2024, 6, 15, 16, 5)
    >>> is_due(sat, None, 5, 16), is_due(sat, sat, 5, 16)
    (True, False)
    """
    slot = slot_for_week(now, weekday, hour)
    if now < slot:
        return False
    return last_run is None or last_run < slot


async def weekly_matching_worker(session_factory, poll_interval: int = 60):
    """
    Background loop: closes last week's groups and runs matching once per
    week at the configured slot. Started from the FastAPI lifespan.
    """
    last_run: Optional[datetime] = None
    logger.info(
        f"Weekly matching worker started (weekday={settings.MATCHING_WEEKDAY}, "
        f"hour={settings.MATCHING_HOUR_UTC} UTC)"
    )
    while True:
        now = datetime.utcnow()
        if is_due(now, last_run, settings.MATCHING_WEEKDAY, settings.MATCHING_HOUR_UTC):
            try:
                async with session_factory() as db:
                    run = await weekly_close_and_match(db, now=now)
                logger.info(
                    f"Weekly cycle done: {run.result.groups_created} groups, "
                    f"{run.result.unpaired} unpaired"
                )
            except Exception:
                logger.exception("Weekly cycle failed")
            # a failed run is not retried until next week's slot
            last_run = now
        await asyncio.sleep(poll_interval)
