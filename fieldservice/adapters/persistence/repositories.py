"""SQLAlchemy repository implementations."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import Update, case, func, null, or_, select, update
from sqlalchemy.dialects.postgresql import Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldservice.adapters.persistence.models import (
    CustomerModel,
    DailyWorkRecordModel,
    EngineerModel,
    EngineerSkillModel,
    MachineModel,
    ServiceHistoryModel,
    TicketModel,
)
from fieldservice.application.ports.engineer_repo import EngineerRepository
from fieldservice.application.ports.party_directory import PartyDirectory
from fieldservice.application.ports.service_history import ServiceHistory
from fieldservice.application.ports.skill_directory import SkillDirectory
from fieldservice.application.ports.ticket_repo import TicketRepository
from fieldservice.application.ports.transaction import Transaction
from fieldservice.application.ports.work_record_repo import WorkRecordRepository
from fieldservice.domain.entities.daily_work_record import DailyWorkRecord, WorkInterval
from fieldservice.domain.entities.engineer import Engineer, Skill
from fieldservice.domain.entities.party import CustomerInput, Machine, MachineInput
from fieldservice.domain.entities.service_history import ServiceHistoryEntry
from fieldservice.domain.entities.ticket import Ticket, TicketFilter, TicketGuard
from fieldservice.domain.errors import ConflictError, DuplicateKeyError, NotFoundError
from fieldservice.domain.value_objects.enums import (
    Availability,
    Priority,
    Role,
    SkillLevel,
    TicketStatus,
)

# ─── Mappers ─────────────────────────────────────────────────────────


def _ticket_to_domain(m: TicketModel) -> Ticket:
    return Ticket(
        id=m.id,
        display_id=m.display_id,
        problem=m.problem,
        customer_id=m.customer_id,
        machine_id=m.machine_id,
        priority=Priority(m.priority),
        issue_categories=list(m.issue_categories or []),
        status=TicketStatus(m.status),
        assigned_to=m.assigned_to,
        assigned_by=m.assigned_by,
        assigned_at=m.assigned_at,
        started_at=m.started_at,
        completed_at=m.completed_at,
        closed_at=m.closed_at,
        work_performed=m.work_performed,
        solution_notes=m.solution_notes,
        spares_used=list(m.spares_used or []),
        created_by=m.created_by,
        created_at=m.created_at,
    )


def _engineer_to_domain(m: EngineerModel) -> Engineer:
    return Engineer(
        id=m.id,
        name=m.name,
        email=m.email,
        role=Role(m.role),
        skills=[
            Skill(name=s.name, level=SkillLevel(s.level), years_experience=s.years_experience or 0)
            for s in m.skills
        ],
        availability=Availability(m.availability),
        is_active=m.is_active,
        is_checked_in=m.is_checked_in,
        last_check_in=m.last_check_in,
        last_check_out=m.last_check_out,
        daily_first_check_in=m.daily_first_check_in,
        daily_last_check_out=m.daily_last_check_out,
        daily_total_work_minutes=m.daily_total_work_minutes or 0,
    )


def _work_record_to_domain(m: DailyWorkRecordModel) -> DailyWorkRecord:
    return DailyWorkRecord(
        id=m.id,
        engineer_id=m.engineer_id,
        work_date=m.work_date.isoformat(),
        first_check_in=m.first_check_in,
        last_check_out=m.last_check_out,
        total_work_minutes=m.total_work_minutes or 0,
        log=[
            WorkInterval(
                check_in=datetime.fromisoformat(entry["in"]),
                check_out=datetime.fromisoformat(entry["out"]),
            )
            for entry in (m.log or [])
        ],
    )


def _machine_to_domain(m: MachineModel) -> Machine:
    return Machine(id=m.id, model=m.model, serial_number=m.serial_number, customer_id=m.customer_id)


def _column_values(changes: dict[str, Any]) -> dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in changes.items()}


# ─── Conditional write statements ────────────────────────────────────


def ticket_update_stmt(ticket_id: int, guard: TicketGuard, changes: dict[str, Any]) -> Update:
    """UPDATE that only matches while the ticket still has the guarded status and assignee."""
    assignee_matches = (
        TicketModel.assigned_to.is_(None)
        if guard.assigned_to is None
        else TicketModel.assigned_to == guard.assigned_to
    )
    return (
        update(TicketModel)
        .where(
            TicketModel.id == ticket_id,
            TicketModel.status == guard.status.value,
            assignee_matches,
        )
        .values(**_column_values(changes), updated_at=func.now())
        .returning(TicketModel.id)
        .execution_options(synchronize_session=False)
    )


def check_in_stmt(engineer_id: int, at: datetime, day_start: datetime) -> Update:
    new_day = or_(
        EngineerModel.daily_first_check_in.is_(None),
        EngineerModel.daily_first_check_in < day_start,
    )
    return (
        update(EngineerModel)
        .where(EngineerModel.id == engineer_id, EngineerModel.is_checked_in.is_(False))
        .values(
            is_checked_in=True,
            last_check_in=at,
            availability=Availability.FREE.value,
            daily_first_check_in=case(
                (new_day, at), else_=EngineerModel.daily_first_check_in
            ),
            daily_last_check_out=case(
                (new_day, null()), else_=EngineerModel.daily_last_check_out
            ),
            daily_total_work_minutes=case(
                (new_day, 0), else_=EngineerModel.daily_total_work_minutes
            ),
        )
        .execution_options(synchronize_session=False)
    )


def check_out_stmt(
    engineer_id: int,
    expected_check_in: datetime | None,
    at: datetime,
    worked_minutes: int,
) -> Update:
    same_session = (
        EngineerModel.last_check_in.is_(None)
        if expected_check_in is None
        else EngineerModel.last_check_in == expected_check_in
    )
    return (
        update(EngineerModel)
        .where(
            EngineerModel.id == engineer_id,
            EngineerModel.is_checked_in.is_(True),
            same_session,
        )
        .values(
            is_checked_in=False,
            availability=Availability.OFFLINE.value,
            last_check_out=at,
            daily_last_check_out=at,
            daily_total_work_minutes=EngineerModel.daily_total_work_minutes + worked_minutes,
        )
        .execution_options(synchronize_session=False)
    )


def work_record_upsert_stmt(record: DailyWorkRecord, interval: WorkInterval) -> Insert:
    """INSERT ... ON CONFLICT that writes absolute totals and appends ``interval`` once."""
    entry = interval.to_dict()
    stmt = pg_insert(DailyWorkRecordModel).values(
        engineer_id=record.engineer_id,
        work_date=date.fromisoformat(record.work_date),
        first_check_in=record.first_check_in,
        last_check_out=record.last_check_out,
        total_work_minutes=record.total_work_minutes,
        log=[entry],
    )
    return stmt.on_conflict_do_update(
        index_elements=["engineer_id", "work_date"],
        set_={
            "first_check_in": func.coalesce(
                DailyWorkRecordModel.first_check_in, stmt.excluded.first_check_in
            ),
            "last_check_out": stmt.excluded.last_check_out,
            "total_work_minutes": stmt.excluded.total_work_minutes,
            "log": case(
                (DailyWorkRecordModel.log.contains([entry]), DailyWorkRecordModel.log),
                else_=DailyWorkRecordModel.log.op("||")(stmt.excluded.log),
            ),
            "updated_at": func.now(),
        },
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlTransaction(Transaction):
    def __init__(self, session: AsyncSession):
        self._s = session

    def atomic(self):
        return self._s.begin_nested()


class SqlTicketRepository(TicketRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, ticket: Ticket) -> Ticket:
        m = TicketModel(
            display_id=ticket.display_id,
            problem=ticket.problem,
            priority=ticket.priority.value,
            issue_categories=list(ticket.issue_categories),
            customer_id=ticket.customer_id,
            machine_id=ticket.machine_id,
            status=ticket.status.value,
            assigned_to=ticket.assigned_to,
            spares_used=list(ticket.spares_used),
            created_by=ticket.created_by,
        )
        if ticket.created_at is not None:
            m.created_at = ticket.created_at
        try:
            async with self._s.begin_nested():
                self._s.add(m)
                await self._s.flush()
        except IntegrityError as exc:
            if "display_id" not in str(exc.orig):
                raise
            raise DuplicateKeyError(f"Ticket {ticket.display_id} already exists") from exc
        ticket.id = m.id
        return ticket

    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        result = await self._s.execute(
            select(TicketModel)
            .where(TicketModel.id == ticket_id)
            .execution_options(populate_existing=True)
        )
        m = result.scalar_one_or_none()
        return _ticket_to_domain(m) if m else None

    async def list(self, filters: TicketFilter) -> list[Ticket]:
        stmt = select(TicketModel)
        if filters.status is not None:
            stmt = stmt.where(TicketModel.status == filters.status.value)
        if filters.assigned_to is not None:
            stmt = stmt.where(TicketModel.assigned_to == filters.assigned_to)
        if filters.open_only:
            stmt = stmt.where(TicketModel.assigned_to.is_(None))
        result = await self._s.execute(
            stmt.order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
        )
        return [_ticket_to_domain(m) for m in result.scalars()]

    async def update_if(
        self,
        ticket_id: int,
        guard: TicketGuard,
        changes: dict[str, Any],
    ) -> Ticket | None:
        result = await self._s.execute(ticket_update_stmt(ticket_id, guard, changes))
        if result.scalar_one_or_none() is None:
            return None
        return await self.get_by_id(ticket_id)

    async def count_by_status(self) -> dict[str, int]:
        result = await self._s.execute(
            select(TicketModel.status, func.count()).group_by(TicketModel.status)
        )
        return {status: count for status, count in result.all()}

    async def count_by_assignee(self) -> dict[int | None, int]:
        result = await self._s.execute(
            select(TicketModel.assigned_to, func.count()).group_by(TicketModel.assigned_to)
        )
        return {assignee: count for assignee, count in result.all()}


class SqlEngineerRepository(EngineerRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, engineer: Engineer) -> Engineer:
        m = EngineerModel(
            name=engineer.name,
            email=engineer.email,
            role=engineer.role.value,
            availability=engineer.availability.value,
            is_active=engineer.is_active,
            skills=[
                EngineerSkillModel(
                    name=s.name, level=s.level.value, years_experience=s.years_experience
                )
                for s in engineer.skills
            ],
        )
        self._s.add(m)
        await self._s.flush()
        engineer.id = m.id
        return engineer

    async def get_by_id(self, engineer_id: int) -> Engineer | None:
        result = await self._s.execute(
            select(EngineerModel)
            .where(EngineerModel.id == engineer_id)
            .execution_options(populate_existing=True)
        )
        m = result.scalar_one_or_none()
        return _engineer_to_domain(m) if m else None

    async def get_by_email(self, email: str) -> Engineer | None:
        result = await self._s.execute(select(EngineerModel).where(EngineerModel.email == email))
        m = result.scalar_one_or_none()
        return _engineer_to_domain(m) if m else None

    async def list_checked_in(self) -> list[Engineer]:
        result = await self._s.execute(
            select(EngineerModel)
            .where(EngineerModel.is_checked_in.is_(True))
            .order_by(EngineerModel.id)
            .execution_options(populate_existing=True)
        )
        return [_engineer_to_domain(m) for m in result.scalars()]

    async def set_availability(self, engineer_id: int, availability: Availability) -> bool:
        # Savepoint, so a failed write leaves the ticket transition intact.
        async with self._s.begin_nested():
            result = await self._s.execute(
                update(EngineerModel)
                .where(EngineerModel.id == engineer_id, EngineerModel.is_checked_in.is_(True))
                .values(availability=availability.value)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount > 0

    async def check_in(self, engineer_id: int, at: datetime, day_start: datetime) -> Engineer | None:
        result = await self._s.execute(check_in_stmt(engineer_id, at, day_start))
        if result.rowcount == 0:
            return None
        return await self.get_by_id(engineer_id)

    async def check_out(
        self,
        engineer_id: int,
        expected_check_in: datetime | None,
        at: datetime,
        worked_minutes: int,
    ) -> Engineer | None:
        async with self._s.begin_nested():
            result = await self._s.execute(
                check_out_stmt(engineer_id, expected_check_in, at, worked_minutes)
            )
        if result.rowcount == 0:
            return None
        return await self.get_by_id(engineer_id)


class SqlSkillDirectory(SkillDirectory):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def list_active_engineers_with_skills(self, role: Role = Role.ENGINEER) -> list[Engineer]:
        result = await self._s.execute(
            select(EngineerModel)
            .where(EngineerModel.role == role.value, EngineerModel.is_active.is_(True))
            .order_by(EngineerModel.id)
            .execution_options(populate_existing=True)
        )
        return [_engineer_to_domain(m) for m in result.scalars()]


class SqlWorkRecordRepository(WorkRecordRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def upsert(self, record: DailyWorkRecord, interval: WorkInterval) -> DailyWorkRecord:
        async with self._s.begin_nested():
            await self._s.execute(work_record_upsert_stmt(record, interval))
        stored = await self.get(record.engineer_id, record.work_date)
        return stored if stored is not None else record

    async def get(self, engineer_id: int, work_date: str) -> DailyWorkRecord | None:
        result = await self._s.execute(
            select(DailyWorkRecordModel)
            .where(
                DailyWorkRecordModel.engineer_id == engineer_id,
                DailyWorkRecordModel.work_date == date.fromisoformat(work_date),
            )
            .execution_options(populate_existing=True)
        )
        m = result.scalar_one_or_none()
        return _work_record_to_domain(m) if m else None

    async def list_for_engineer(
        self,
        engineer_id: int,
        from_date: str | None = None,
        to_date: str | None = None,
        limit: int | None = None,
    ) -> list[DailyWorkRecord]:
        stmt = select(DailyWorkRecordModel).where(DailyWorkRecordModel.engineer_id == engineer_id)
        if from_date:
            stmt = stmt.where(DailyWorkRecordModel.work_date >= date.fromisoformat(from_date))
        if to_date:
            stmt = stmt.where(DailyWorkRecordModel.work_date <= date.fromisoformat(to_date))
        stmt = stmt.order_by(DailyWorkRecordModel.work_date.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self._s.execute(stmt)
        return [_work_record_to_domain(m) for m in result.scalars()]


class SqlPartyDirectory(PartyDirectory):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def resolve_or_create_customer(self, data: CustomerInput) -> int:
        if data.customer_id is not None:
            m = await self._s.get(CustomerModel, data.customer_id)
            if m is None:
                raise NotFoundError(f"Customer {data.customer_id} not found")
            return m.id

        m = CustomerModel(
            company_name=data.company_name.strip(),
            contact_person=data.contact_person,
            email=data.email,
            phone=data.phone,
            city=data.city,
            address=data.address,
            service_no=data.service_no,
        )
        self._s.add(m)
        await self._s.flush()
        return m.id

    async def resolve_or_create_machine(self, data: MachineInput, customer_id: int | None) -> int:
        if data.machine_id is not None:
            m = await self._s.get(MachineModel, data.machine_id)
            if m is None:
                raise NotFoundError(f"Machine {data.machine_id} not found")
            return m.id

        serial = data.serial_number.strip()
        result = await self._s.execute(
            select(MachineModel).where(MachineModel.serial_number == serial)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            if existing.customer_id and customer_id and existing.customer_id != customer_id:
                raise ConflictError(
                    f"Machine serial {serial} belongs to another customer ({existing.customer_id})"
                )
            return existing.id

        m = MachineModel(model=data.model.strip(), serial_number=serial, customer_id=customer_id)
        self._s.add(m)
        await self._s.flush()
        return m.id

    async def get_machine(self, machine_id: int) -> Machine | None:
        m = await self._s.get(MachineModel, machine_id)
        return _machine_to_domain(m) if m else None


class SqlServiceHistory(ServiceHistory):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def append(self, entry: ServiceHistoryEntry) -> ServiceHistoryEntry:
        m = ServiceHistoryModel(
            ticket_id=entry.ticket_id,
            action=entry.action.value,
            machine_id=entry.machine_id,
            customer_id=entry.customer_id,
            engineer_id=entry.engineer_id,
            work_performed=entry.work_performed,
            solution_notes=entry.solution_notes,
            spares_used=list(entry.spares_used),
            recorded_by=entry.recorded_by,
            recorded_at=entry.recorded_at,
        )
        async with self._s.begin_nested():
            self._s.add(m)
            await self._s.flush()
        entry.id = m.id
        return entry
