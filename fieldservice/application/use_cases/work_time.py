"""WorkTimeTracker — engineer check-in / check-out and daily work records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from fieldservice.application.ports.clock import Clock
from fieldservice.application.ports.engineer_repo import EngineerRepository
from fieldservice.application.ports.transaction import Transaction
from fieldservice.application.ports.work_record_repo import WorkRecordRepository
from fieldservice.domain.entities.daily_work_record import DailyWorkRecord, WorkInterval, WorkStats
from fieldservice.domain.entities.engineer import Engineer
from fieldservice.domain.errors import (
    InvalidStateError,
    NotFoundError,
    OutsideWindowError,
    PermissionDeniedError,
    ValidationError,
)
from fieldservice.domain.policies.work_window import (
    effective_checkout,
    is_same_day,
    is_within_check_in_window,
    start_of_day,
    work_date_key,
    worked_minutes,
)
from fieldservice.domain.value_objects.actor import Actor
from fieldservice.domain.value_objects.enums import Role

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    engineer: Engineer
    checked_out_at: datetime | None
    worked_minutes: int
    auto_checkout: bool
    record: DailyWorkRecord | None = None
    performed: bool = True


@dataclass
class DayStatus:
    engineer: Engineer
    today: DailyWorkRecord | None

    @property
    def today_minutes(self) -> int:
        if self.today is not None:
            return self.today.total_work_minutes
        return 0


class WorkTimeTracker:
    def __init__(
        self,
        engineer_repo: EngineerRepository,
        work_record_repo: WorkRecordRepository,
        clock: Clock,
        transaction: Transaction,
        window_start: time,
        cutoff: time,
        history_limit: int = 90,
    ):
        self._engineers = engineer_repo
        self._records = work_record_repo
        self._clock = clock
        self._transaction = transaction
        self._window_start = window_start
        self._cutoff = cutoff
        self._history_limit = history_limit

    @property
    def cutoff(self) -> time:
        return self._cutoff

    async def _require(self, engineer_id: int) -> Engineer:
        engineer = await self._engineers.get_by_id(engineer_id)
        if engineer is None:
            raise NotFoundError(f"Engineer {engineer_id} not found")
        return engineer

    # ── Check-in / check-out ───────────────────────────────────────────

    async def check_in(self, engineer_id: int) -> Engineer:
        now = self._clock.now()
        engineer = await self._require(engineer_id)
        if engineer.is_checked_in:
            raise InvalidStateError("Already checked in")
        if not is_within_check_in_window(now, self._window_start, self._cutoff):
            raise OutsideWindowError(
                f"Check-in is only allowed between {self._window_start:%H:%M} "
                f"and {self._cutoff:%H:%M}"
            )

        updated = await self._engineers.check_in(engineer_id, at=now, day_start=start_of_day(now))
        if updated is None:
            # Another request checked this engineer in between our read and write.
            raise InvalidStateError("Already checked in")
        logger.info("Engineer %s checked in at %s", engineer_id, now.isoformat())
        return updated

    async def check_out(self, engineer_id: int) -> CheckoutResult:
        """Manual checkout. Calls at or after the cutoff are clamped to it."""
        now = self._clock.now()
        engineer = await self._require(engineer_id)
        if not engineer.is_checked_in:
            raise InvalidStateError("Not checked in")
        effective = effective_checkout(now, self._cutoff)
        return await self._check_out(engineer, effective.at, auto=effective.clamped)

    async def force_checkout(self, engineer: Engineer, at: datetime) -> CheckoutResult:
        """Check an engineer out at a fixed time (used by the cutoff sweep)."""
        if not engineer.is_checked_in:
            return CheckoutResult(
                engineer=engineer, checked_out_at=None, worked_minutes=0,
                auto_checkout=True, performed=False,
            )
        return await self._check_out(engineer, at, auto=True)

    async def _check_out(self, engineer: Engineer, at: datetime, auto: bool) -> CheckoutResult:
        check_in = engineer.last_check_in
        minutes = worked_minutes(check_in, at)
        # Engineer row and daily record commit together or not at all.
        async with self._transaction.atomic():
            updated = await self._engineers.check_out(engineer.id, check_in, at, minutes)
            if updated is None:
                logger.info("Engineer %s was already checked out; nothing to record", engineer.id)
                return CheckoutResult(
                    engineer=engineer, checked_out_at=None, worked_minutes=0,
                    auto_checkout=auto, performed=False,
                )
            record = await self._record_checkout(updated, check_in, at)

        logger.info(
            "Engineer %s checked out at %s (%d min, auto=%s, day total %d min)",
            engineer.id, at.isoformat(), minutes, auto, updated.daily_total_work_minutes,
        )
        return CheckoutResult(
            engineer=updated,
            checked_out_at=at,
            worked_minutes=minutes,
            auto_checkout=auto,
            record=record,
        )

    async def _record_checkout(
        self, engineer: Engineer, check_in: datetime | None, check_out: datetime
    ) -> DailyWorkRecord:
        record = DailyWorkRecord(
            engineer_id=engineer.id,
            work_date=work_date_key(check_out),
            first_check_in=engineer.daily_first_check_in or check_in,
            last_check_out=check_out,
            total_work_minutes=engineer.daily_total_work_minutes,
        )
        interval = WorkInterval(check_in=check_in or check_out, check_out=check_out)
        try:
            return await self._records.upsert(record, interval)
        except Exception:
            logger.exception(
                "Daily record for engineer %s on %s not written; checkout rolled back",
                engineer.id, record.work_date,
            )
            raise

    # ── Reads ──────────────────────────────────────────────────────────

    async def current_day_status(self, engineer_id: int) -> DayStatus:
        engineer = await self._require(engineer_id)
        today = await self._records.get(engineer_id, work_date_key(self._clock.now()))
        if today is None and is_same_day(engineer.daily_first_check_in, self._clock.now()):
            # Checked in today but no checkout yet: report the running aggregate.
            today = DailyWorkRecord(
                engineer_id=engineer_id,
                work_date=work_date_key(self._clock.now()),
                first_check_in=engineer.daily_first_check_in,
                last_check_out=engineer.daily_last_check_out,
                total_work_minutes=engineer.daily_total_work_minutes,
            )
        return DayStatus(engineer=engineer, today=today)

    async def history(
        self,
        engineer_id: int,
        actor: Actor,
        from_date: date | None = None,
        to_date: date | None = None,
        limit: int | None = None,
    ) -> list[DailyWorkRecord]:
        self._ensure_can_view(actor, engineer_id)
        if from_date and to_date and from_date > to_date:
            raise ValidationError("'from' must not be after 'to'")
        await self._require(engineer_id)
        return await self._records.list_for_engineer(
            engineer_id,
            from_date=from_date.isoformat() if from_date else None,
            to_date=to_date.isoformat() if to_date else None,
            limit=min(limit or self._history_limit, self._history_limit),
        )

    async def stats(
        self,
        engineer_id: int,
        actor: Actor,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> WorkStats:
        records = await self.history(engineer_id, actor, from_date, to_date)
        return WorkStats.from_records(records)

    @staticmethod
    def _ensure_can_view(actor: Actor, engineer_id: int) -> None:
        if actor.role == Role.ENGINEER and actor.id != engineer_id:
            raise PermissionDeniedError("Engineers can only view their own work history")
