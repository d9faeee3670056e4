"""Attendance endpoints — check-in / check-out and work-time reports."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fieldservice.adapters.persistence.database import get_session
from fieldservice.application.use_cases.work_time import CheckoutResult, WorkTimeTracker
from fieldservice.domain.entities.daily_work_record import DailyWorkRecord
from fieldservice.domain.entities.engineer import Engineer
from fieldservice.domain.value_objects.actor import Actor
from fieldservice.infrastructure.api.dependencies import get_actor, get_work_time_uc

router = APIRouter(prefix="/attendance", tags=["attendance"])


def _iso(value):
    return value.isoformat() if value else None


def _serialize_engineer_state(e: Engineer) -> dict:
    return {
        "engineerId": e.id,
        "name": e.name,
        "availability": e.availability.value,
        "isCheckedIn": e.is_checked_in,
        "lastCheckIn": _iso(e.last_check_in),
        "lastCheckOut": _iso(e.last_check_out),
        "dailyFirstCheckIn": _iso(e.daily_first_check_in),
        "dailyLastCheckOut": _iso(e.daily_last_check_out),
        "dailyTotalWorkMinutes": e.daily_total_work_minutes,
    }


def _serialize_record(r: DailyWorkRecord) -> dict:
    return {
        "engineerId": r.engineer_id,
        "date": r.work_date,
        "firstCheckIn": _iso(r.first_check_in),
        "lastCheckOut": _iso(r.last_check_out),
        "totalWorkMinutes": r.total_work_minutes,
        "log": [interval.to_dict() for interval in r.log],
    }


def _serialize_checkout(result: CheckoutResult) -> dict:
    return {
        **_serialize_engineer_state(result.engineer),
        "checkedOutAt": _iso(result.checked_out_at),
        "workedMinutes": result.worked_minutes,
        "autoCheckout": result.auto_checkout,
        "performed": result.performed,
        "record": _serialize_record(result.record) if result.record else None,
    }


@router.post("/check-in")
async def check_in(
    actor: Actor = Depends(get_actor),
    uc: WorkTimeTracker = Depends(get_work_time_uc),
    session: AsyncSession = Depends(get_session),
):
    engineer = await uc.check_in(actor.id)
    await session.commit()
    return _serialize_engineer_state(engineer)


@router.post("/check-out")
async def check_out(
    actor: Actor = Depends(get_actor),
    uc: WorkTimeTracker = Depends(get_work_time_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.check_out(actor.id)
    await session.commit()
    return _serialize_checkout(result)


@router.get("/status")
async def current_status(
    engineer_id: int | None = Query(default=None, alias="engineerId"),
    actor: Actor = Depends(get_actor),
    uc: WorkTimeTracker = Depends(get_work_time_uc),
):
    """Today's attendance state. Engineers always get their own."""
    target = engineer_id if engineer_id is not None and actor.is_manager_tier() else actor.id
    status = await uc.current_day_status(target)
    return {
        **_serialize_engineer_state(status.engineer),
        "todayMinutes": status.today_minutes,
        "today": _serialize_record(status.today) if status.today else None,
    }


@router.get("/history")
async def work_history(
    engineer_id: int | None = Query(default=None, alias="engineerId"),
    from_date: date | None = Query(default=None, alias="from"),
    to_date: date | None = Query(default=None, alias="to"),
    limit: int | None = Query(default=None, ge=1),
    actor: Actor = Depends(get_actor),
    uc: WorkTimeTracker = Depends(get_work_time_uc),
):
    target = engineer_id if engineer_id is not None else actor.id
    records = await uc.history(target, actor, from_date, to_date, limit)
    return {
        "engineerId": target,
        "total": len(records),
        "records": [_serialize_record(r) for r in records],
    }


@router.get("/stats")
async def work_stats(
    engineer_id: int | None = Query(default=None, alias="engineerId"),
    from_date: date | None = Query(default=None, alias="from"),
    to_date: date | None = Query(default=None, alias="to"),
    actor: Actor = Depends(get_actor),
    uc: WorkTimeTracker = Depends(get_work_time_uc),
):
    target = engineer_id if engineer_id is not None else actor.id
    stats = await uc.stats(target, actor, from_date, to_date)
    return {"engineerId": target, **stats.to_dict()}
