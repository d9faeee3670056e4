"""Background scheduler — the per-minute auto-checkout tick.

The job fires every minute; the sweep itself decides whether the current
minute is the checkout cutoff, so the cutoff stays configurable and the
decision is testable without APScheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldservice.adapters.persistence.database import async_session_factory
from fieldservice.application.ports.clock import Clock
from fieldservice.application.use_cases.auto_checkout import SweepReport
from fieldservice.config import settings
from fieldservice.infrastructure.api.dependencies import build_auto_checkout_sweep, get_clock

logger = logging.getLogger(__name__)

AUTO_CHECKOUT_JOB_ID = "auto_checkout"


async def run_auto_checkout(
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    clock: Clock | None = None,
) -> SweepReport | None:
    """One scheduler tick: open a session, sweep if it is the cutoff minute, commit."""
    async with session_factory() as session:
        sweep = build_auto_checkout_sweep(session, clock or get_clock())
        try:
            report = await sweep.tick()
            await session.commit()
        except Exception:
            logger.exception("Auto-checkout tick failed")
            await session.rollback()
            return None
    return report


def register_auto_checkout(
    scheduler: AsyncIOScheduler,
    job: Callable[[], Awaitable[SweepReport | None]] = run_auto_checkout,
) -> Job:
    return scheduler.add_job(
        job,
        trigger=CronTrigger(minute="*"),
        id=AUTO_CHECKOUT_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=30,
        name=f"Auto-checkout at {settings.checkout_cutoff:%H:%M}",
    )


def create_scheduler() -> AsyncIOScheduler:
    """Build the scheduler with all jobs registered. The caller starts it."""
    scheduler = AsyncIOScheduler()
    if settings.auto_checkout_enabled:
        register_auto_checkout(scheduler)
        logger.info("Auto-checkout scheduled for %s daily", f"{settings.checkout_cutoff:%H:%M}")
    else:
        logger.info("Auto-checkout disabled")
    return scheduler
