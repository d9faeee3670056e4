"""In-memory implementations of the application ports, shared by the tests."""

from __future__ import annotations

import asyncio
import copy
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from fieldservice.application.ports.clock import Clock
from fieldservice.application.ports.engineer_repo import EngineerRepository
from fieldservice.application.ports.party_directory import PartyDirectory
from fieldservice.application.ports.service_history import ServiceHistory
from fieldservice.application.ports.skill_directory import SkillDirectory
from fieldservice.application.ports.ticket_repo import TicketRepository
from fieldservice.application.ports.transaction import Transaction
from fieldservice.application.ports.work_record_repo import WorkRecordRepository
from fieldservice.domain.entities.daily_work_record import DailyWorkRecord, WorkInterval
from fieldservice.domain.entities.engineer import Engineer, Skill
from fieldservice.domain.entities.party import Customer, CustomerInput, Machine, MachineInput
from fieldservice.domain.entities.service_history import ServiceHistoryEntry
from fieldservice.domain.entities.ticket import Ticket, TicketFilter, TicketGuard
from fieldservice.domain.errors import ConflictError, DuplicateKeyError, NotFoundError
from fieldservice.domain.value_objects.enums import Availability, Role, SkillLevel, TicketStatus

# ─── Builders ───────────────────────────────────────────────────────


def make_engineer(
    engineer_id: int,
    *skills: Skill,
    availability: Availability = Availability.FREE,
    checked_in: bool | None = None,
    role: Role = Role.ENGINEER,
    is_active: bool = True,
    last_check_in: datetime | None = None,
) -> Engineer:
    if checked_in is None:
        checked_in = availability != Availability.OFFLINE
    return Engineer(
        id=engineer_id,
        name=f"Engineer {engineer_id}",
        email=f"eng{engineer_id}@example.com",
        role=role,
        skills=list(skills),
        availability=availability,
        is_active=is_active,
        is_checked_in=checked_in,
        last_check_in=last_check_in,
    )


def skill(name: str, level: SkillLevel = SkillLevel.NOVICE, years: float = 0) -> Skill:
    return Skill(name=name, level=level, years_experience=years)


# ─── Clock ──────────────────────────────────────────────────────────


class FakeClock(Clock):
    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs) -> None:
        self._now += timedelta(**kwargs)


# ─── Repositories ───────────────────────────────────────────────────


class InMemoryTicketRepo(TicketRepository):
    def __init__(self):
        self.tickets: dict[int, Ticket] = {}
        self.writes = 0

    def add(self, ticket: Ticket) -> Ticket:
        if ticket.id is None:
            ticket.id = len(self.tickets) + 1
        self.tickets[ticket.id] = replace(ticket)
        return ticket

    async def save(self, ticket):
        if any(t.display_id == ticket.display_id for t in self.tickets.values()):
            raise DuplicateKeyError(f"Ticket {ticket.display_id} already exists")
        return self.add(ticket)

    async def get_by_id(self, ticket_id):
        t = self.tickets.get(ticket_id)
        return replace(t) if t else None

    async def list(self, filters: TicketFilter):
        out = []
        for t in sorted(self.tickets.values(), key=lambda t: t.id, reverse=True):
            if filters.status is not None and t.status != filters.status:
                continue
            if filters.assigned_to is not None and t.assigned_to != filters.assigned_to:
                continue
            if filters.open_only and t.assigned_to is not None:
                continue
            out.append(replace(t))
        return out

    async def update_if(self, ticket_id: int, guard: TicketGuard, changes: dict[str, Any]):
        # Yield first so concurrent callers interleave like separate DB round trips.
        await asyncio.sleep(0)
        current = self.tickets.get(ticket_id)
        if current is None:
            return None
        if current.status != guard.status or current.assigned_to != guard.assigned_to:
            return None
        updated = replace(current, **changes)
        assert (updated.status == TicketStatus.PENDING) == (updated.assigned_to is None)
        self.tickets[ticket_id] = updated
        self.writes += 1
        return replace(updated)

    async def count_by_status(self):
        counts: dict[str, int] = {}
        for t in self.tickets.values():
            counts[t.status.value] = counts.get(t.status.value, 0) + 1
        return counts

    async def count_by_assignee(self):
        counts: dict[int | None, int] = {}
        for t in self.tickets.values():
            counts[t.assigned_to] = counts.get(t.assigned_to, 0) + 1
        return counts


class InMemoryEngineerRepo(EngineerRepository, SkillDirectory):
    def __init__(self, engineers: list[Engineer] | None = None):
        self.engineers: dict[int, Engineer] = {}
        self.fail_availability = False
        self.fail_check_out_for: set[int] = set()
        for e in engineers or []:
            self.add(e)

    def add(self, engineer: Engineer) -> Engineer:
        self.engineers[engineer.id] = engineer
        return engineer

    async def save(self, engineer):
        if engineer.id is None:
            engineer.id = max(self.engineers, default=0) + 1
        return self.add(engineer)

    async def get_by_id(self, engineer_id):
        e = self.engineers.get(engineer_id)
        return replace(e) if e else None

    async def list_checked_in(self):
        return [replace(e) for _, e in sorted(self.engineers.items()) if e.is_checked_in]

    async def list_active_engineers_with_skills(self, role=Role.ENGINEER):
        return [
            replace(e) for _, e in sorted(self.engineers.items())
            if e.is_active and e.role == role
        ]

    async def set_availability(self, engineer_id, availability):
        if self.fail_availability:
            raise RuntimeError("availability store unavailable")
        e = self.engineers.get(engineer_id)
        if e is None or not e.is_checked_in:
            return False
        e.availability = availability
        return True

    async def check_in(self, engineer_id, at, day_start):
        await asyncio.sleep(0)
        e = self.engineers.get(engineer_id)
        if e is None or e.is_checked_in:
            return None
        if e.daily_first_check_in is None or e.daily_first_check_in < day_start:
            e.daily_first_check_in = at
            e.daily_last_check_out = None
            e.daily_total_work_minutes = 0
        e.is_checked_in = True
        e.last_check_in = at
        e.availability = Availability.FREE
        return replace(e)

    async def check_out(self, engineer_id, expected_check_in, at, worked_minutes):
        await asyncio.sleep(0)
        if engineer_id in self.fail_check_out_for:
            raise RuntimeError(f"write failed for engineer {engineer_id}")
        e = self.engineers.get(engineer_id)
        if e is None or not e.is_checked_in or e.last_check_in != expected_check_in:
            return None
        e.is_checked_in = False
        e.availability = Availability.OFFLINE
        e.last_check_out = at
        e.daily_last_check_out = at
        e.daily_total_work_minutes += worked_minutes
        return replace(e)


class InMemoryWorkRecordRepo(WorkRecordRepository):
    def __init__(self):
        self.records: dict[tuple[int, str], DailyWorkRecord] = {}
        self.upserts = 0
        self.fail_upsert_for: set[int] = set()

    async def upsert(self, record: DailyWorkRecord, interval: WorkInterval):
        if record.engineer_id in self.fail_upsert_for:
            raise RuntimeError(f"record write failed for engineer {record.engineer_id}")
        self.upserts += 1
        key = (record.engineer_id, record.work_date)
        existing = self.records.get(key)
        if existing is None:
            stored = replace(record, log=[interval], id=len(self.records) + 1)
        else:
            log = list(existing.log)
            if interval not in log:
                log.append(interval)
            stored = replace(
                existing,
                first_check_in=existing.first_check_in or record.first_check_in,
                last_check_out=record.last_check_out,
                total_work_minutes=record.total_work_minutes,
                log=log,
            )
        self.records[key] = stored
        return replace(stored)

    async def get(self, engineer_id, work_date):
        r = self.records.get((engineer_id, work_date))
        return replace(r) if r else None

    async def list_for_engineer(self, engineer_id, from_date=None, to_date=None, limit=None):
        rows = [
            r for (eid, day), r in self.records.items()
            if eid == engineer_id
            and (from_date is None or day >= from_date)
            and (to_date is None or day <= to_date)
        ]
        rows.sort(key=lambda r: r.work_date, reverse=True)
        return rows[:limit] if limit else rows


class InMemoryPartyDirectory(PartyDirectory):
    def __init__(self):
        self.customers: dict[int, Customer] = {}
        self.machines: dict[int, Machine] = {}

    def add_machine(self, model: str, serial: str = "SN-1", customer_id: int | None = None) -> Machine:
        m = Machine(id=len(self.machines) + 1, model=model, serial_number=serial, customer_id=customer_id)
        self.machines[m.id] = m
        return m

    async def resolve_or_create_customer(self, data: CustomerInput):
        if data.customer_id is not None:
            if data.customer_id not in self.customers:
                raise NotFoundError(f"Customer {data.customer_id} not found")
            return data.customer_id
        c = Customer(id=len(self.customers) + 1, company_name=data.company_name)
        self.customers[c.id] = c
        return c.id

    async def resolve_or_create_machine(self, data: MachineInput, customer_id):
        if data.machine_id is not None:
            if data.machine_id not in self.machines:
                raise NotFoundError(f"Machine {data.machine_id} not found")
            return data.machine_id
        for m in self.machines.values():
            if m.serial_number == data.serial_number:
                if m.customer_id and customer_id and m.customer_id != customer_id:
                    raise ConflictError("Machine serial belongs to another customer")
                return m.id
        return self.add_machine(data.model, data.serial_number, customer_id).id

    async def get_machine(self, machine_id):
        return self.machines.get(machine_id)


class InMemoryServiceHistory(ServiceHistory):
    def __init__(self):
        self.entries: list[ServiceHistoryEntry] = []

    async def append(self, entry):
        entry.id = len(self.entries) + 1
        self.entries.append(entry)
        return entry


class FakeTransaction(Transaction):
    """Snapshots engineer and work record state; restores it if the block raises."""

    def __init__(self, engineer_repo: InMemoryEngineerRepo, work_records: InMemoryWorkRecordRepo):
        self._engineers = engineer_repo
        self._records = work_records
        self.rollbacks = 0

    @asynccontextmanager
    async def atomic(self):
        engineers = copy.deepcopy(self._engineers.engineers)
        records = copy.deepcopy(self._records.records)
        try:
            yield
        except BaseException:
            self._engineers.engineers.clear()
            self._engineers.engineers.update(engineers)
            self._records.records.clear()
            self._records.records.update(records)
            self.rollbacks += 1
            raise


# ─── Database session ───────────────────────────────────────────────


class FakeSession:
    """Stands in for AsyncSession in route tests; counts commits."""

    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1
