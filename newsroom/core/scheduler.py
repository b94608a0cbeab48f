from __future__ import annotations

import datetime as dt
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newsroom.core.config import Settings
from newsroom.core.security import purge_expired_sessions

logger = logging.getLogger(__name__)

def parse_hhmm(s: str) -> tuple[int, int]:
    parts = s.strip().split(":")
    if len(parts) != 2:
        raise ValueError("SESSION_PURGE_AT_UTC must be HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError("SESSION_PURGE_AT_UTC must be HH:MM")
    return hour, minute

async def run_session_purge(sessionmaker: async_sessionmaker[AsyncSession]) -> int:
    async with sessionmaker() as session:
        removed = await purge_expired_sessions(session)
    logger.info("purged %d expired sessions", removed)
    return removed

def start_scheduler(sessionmaker: async_sessionmaker[AsyncSession], settings: Settings) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=dt.timezone.utc)
    hour, minute = parse_hhmm(settings.session_purge_at_utc)
    scheduler.add_job(
        run_session_purge,
        CronTrigger(hour=hour, minute=minute),
        args=[sessionmaker],
        id="purge_sessions",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    scheduler.start()
    return scheduler

def shutdown_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
