"""AutoCheckoutSweep — force-checkout everyone still checked in at the cutoff.

The sweep is driven by a per-minute tick. It only acts during the cutoff
minute itself; a process that is down at that minute skips the day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from fieldservice.application.ports.clock import Clock
from fieldservice.application.ports.engineer_repo import EngineerRepository
from fieldservice.application.use_cases.work_time import WorkTimeTracker
from fieldservice.domain.policies.work_window import cutoff_on, is_cutoff_minute

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    ran_at: datetime
    checked_out: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


class AutoCheckoutSweep:
    def __init__(self, engineer_repo: EngineerRepository, tracker: WorkTimeTracker, clock: Clock):
        self._engineers = engineer_repo
        self._tracker = tracker
        self._clock = clock

    async def tick(self) -> SweepReport | None:
        """Run the sweep if the clock is on the cutoff minute, else do nothing."""
        now = self._clock.now()
        if not is_cutoff_minute(now, self._tracker.cutoff):
            return None
        return await self.run(now)

    async def run(self, now: datetime) -> SweepReport:
        at = cutoff_on(now, self._tracker.cutoff)
        report = SweepReport(ran_at=at)

        engineers = await self._engineers.list_checked_in()
        logger.info("Auto-checkout at %s: %d engineer(s) still checked in", at.isoformat(), len(engineers))

        for engineer in engineers:
            try:
                result = await self._tracker.force_checkout(engineer, at)
            except Exception:
                logger.exception("Auto-checkout failed for engineer %s", engineer.id)
                report.failed.append(engineer.id)
                continue
            if result.performed:
                report.checked_out.append(engineer.id)
            else:
                report.skipped.append(engineer.id)

        logger.info(
            "Auto-checkout done: %d checked out, %d skipped, %d failed",
            len(report.checked_out), len(report.skipped), len(report.failed),
        )
        return report
