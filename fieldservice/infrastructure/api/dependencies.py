"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldservice.adapters.clock.system_clock import SystemClock
from fieldservice.adapters.persistence.database import get_session
from fieldservice.adapters.persistence.repositories import (
    SqlEngineerRepository,
    SqlPartyDirectory,
    SqlServiceHistory,
    SqlSkillDirectory,
    SqlTicketRepository,
    SqlTransaction,
    SqlWorkRecordRepository,
)
from fieldservice.application.ports.clock import Clock
from fieldservice.application.use_cases.auto_assign import AutoAssignUseCase
from fieldservice.application.use_cases.auto_checkout import AutoCheckoutSweep
from fieldservice.application.use_cases.availability import AvailabilityTracker
from fieldservice.application.use_cases.ticket_lifecycle import TicketLifecycleUseCase
from fieldservice.application.use_cases.work_time import WorkTimeTracker
from fieldservice.config import settings
from fieldservice.domain.errors import ValidationError
from fieldservice.domain.value_objects.actor import Actor
from fieldservice.domain.value_objects.enums import Role

# Re-export session dependency
get_db_session = get_session

_clock = SystemClock()


def get_clock() -> Clock:
    return _clock


# ─── Builders (shared by routes and the scheduler) ──────────────────


def build_ticket_lifecycle(session: AsyncSession, clock: Clock) -> TicketLifecycleUseCase:
    return TicketLifecycleUseCase(
        ticket_repo=SqlTicketRepository(session),
        party_directory=SqlPartyDirectory(session),
        availability=AvailabilityTracker(SqlEngineerRepository(session)),
        service_history=SqlServiceHistory(session),
        clock=clock,
    )


def build_work_time_tracker(session: AsyncSession, clock: Clock) -> WorkTimeTracker:
    return WorkTimeTracker(
        engineer_repo=SqlEngineerRepository(session),
        work_record_repo=SqlWorkRecordRepository(session),
        clock=clock,
        transaction=SqlTransaction(session),
        window_start=settings.check_in_window_start,
        cutoff=settings.checkout_cutoff,
        history_limit=settings.work_history_limit,
    )


def build_auto_checkout_sweep(session: AsyncSession, clock: Clock) -> AutoCheckoutSweep:
    return AutoCheckoutSweep(
        engineer_repo=SqlEngineerRepository(session),
        tracker=build_work_time_tracker(session, clock),
        clock=clock,
    )


# ─── Request-scoped dependencies ────────────────────────────────────


def get_ticket_lifecycle_uc(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> TicketLifecycleUseCase:
    return build_ticket_lifecycle(session, clock)


def get_auto_assign_uc(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> AutoAssignUseCase:
    return AutoAssignUseCase(
        lifecycle=build_ticket_lifecycle(session, clock),
        ticket_repo=SqlTicketRepository(session),
        skill_directory=SqlSkillDirectory(session),
        party_directory=SqlPartyDirectory(session),
        suggestion_limit=settings.suggestion_limit,
    )


def get_work_time_uc(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> WorkTimeTracker:
    return build_work_time_tracker(session, clock)


# ─── Actor (set by the upstream auth gateway) ───────────────────────


def get_optional_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor | None:
    if not x_actor_id:
        return None
    try:
        actor_id = int(x_actor_id)
    except ValueError:
        raise ValidationError(f"Invalid X-Actor-Id header '{x_actor_id}'")
    try:
        role = Role((x_actor_role or Role.ENGINEER.value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown role '{x_actor_role}'")
    return Actor(id=actor_id, role=role)


def get_actor(actor: Actor | None = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return actor
