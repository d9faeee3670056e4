"""TicketLifecycleUseCase — create, assign, progress, complete and close tickets.

Every mutating operation follows the same order of checks:

1. load the ticket (NotFoundError)
2. validate the status move (InvalidStateError)
3. check the actor against the permission matrix (PermissionDeniedError)
4. apply the change as one conditional write guarded on the (status, assignee)
   pair that was read in step 1 (ConflictError when someone else got there first)

Availability updates and service history entries are written afterwards and
never roll the ticket change back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from fieldservice.application.ports.clock import Clock
from fieldservice.application.ports.party_directory import PartyDirectory
from fieldservice.application.ports.service_history import ServiceHistory
from fieldservice.application.ports.ticket_repo import TicketRepository
from fieldservice.application.use_cases.availability import AvailabilityTracker
from fieldservice.domain.entities.party import CustomerInput, MachineInput
from fieldservice.domain.entities.service_history import ServiceHistoryEntry
from fieldservice.domain.entities.ticket import Ticket, TicketFilter, TicketGuard
from fieldservice.domain.errors import (
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    ValidationError,
)
from fieldservice.domain.policies.permissions import ensure_permitted, ensure_role
from fieldservice.domain.policies.transitions import ensure_assignable, ensure_transition
from fieldservice.domain.value_objects.actor import Actor
from fieldservice.domain.value_objects.enums import (
    HistoryAction,
    Priority,
    Role,
    TicketOperation,
    TicketStatus,
)

logger = logging.getLogger(__name__)

DISPLAY_ID_ATTEMPTS = 5


@dataclass
class CreateTicketCommand:
    problem: str | None
    customer: CustomerInput
    machine: MachineInput
    priority: str | None = None
    issue_categories: list[str] = field(default_factory=list)


@dataclass
class TicketSummary:
    total: int
    by_status: dict[str, int]
    by_assignee: dict[int | None, int]


def parse_status(value: str | TicketStatus) -> TicketStatus:
    if isinstance(value, TicketStatus):
        return value
    try:
        return TicketStatus((value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown ticket status '{value}'")


def parse_priority(value: str | Priority | None) -> Priority:
    if value is None or value == "":
        return Priority.MEDIUM
    if isinstance(value, Priority):
        return value
    try:
        return Priority(value.strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown priority '{value}'")


def parse_spares(value: list[str] | str | None) -> list[str]:
    """Accept a list or a comma separated string; blanks are dropped."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [str(item).strip() for item in items if str(item).strip()]


class TicketLifecycleUseCase:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        party_directory: PartyDirectory,
        availability: AvailabilityTracker,
        service_history: ServiceHistory,
        clock: Clock,
    ):
        self._tickets = ticket_repo
        self._parties = party_directory
        self._availability = availability
        self._history = service_history
        self._clock = clock

    # ── Create / read ──────────────────────────────────────────────────

    async def create(self, command: CreateTicketCommand, actor: Actor | None) -> Ticket:
        missing = []
        if not (command.problem or "").strip():
            missing.append("problem")
        if not command.customer.is_resolvable():
            missing.append("customerId")
        if not command.machine.is_resolvable():
            missing.append("machineId")
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

        priority = parse_priority(command.priority)
        customer_id = await self._parties.resolve_or_create_customer(command.customer)
        machine_id = await self._parties.resolve_or_create_machine(command.machine, customer_id)

        now = self._clock.now()
        base_id = f"TKT-{int(now.timestamp() * 1000)}"
        ticket = Ticket(
            id=None,
            display_id=base_id,
            problem=command.problem.strip(),
            customer_id=customer_id,
            machine_id=machine_id,
            priority=priority,
            issue_categories=[c.strip() for c in command.issue_categories if c and c.strip()],
            status=TicketStatus.PENDING,
            created_by=actor.id if actor else None,
            created_at=now,
        )
        for attempt in range(1, DISPLAY_ID_ATTEMPTS + 1):
            try:
                ticket = await self._tickets.save(ticket)
                break
            except DuplicateKeyError:
                if attempt == DISPLAY_ID_ATTEMPTS:
                    raise
                logger.warning("Display id %s taken, retrying", ticket.display_id)
                ticket.display_id = f"{base_id}-{attempt}"
        logger.info(
            "Ticket %s created (customer=%s, machine=%s, priority=%s)",
            ticket.display_id, customer_id, machine_id, priority.value,
        )
        return ticket

    async def get(self, ticket_id: int) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    async def list(self, filters: TicketFilter, actor: Actor | None) -> list[Ticket]:
        """List tickets. Engineers without an explicit filter see their own."""
        if filters.open_only:
            filters = replace(filters, status=TicketStatus.PENDING, assigned_to=None)
        elif actor is not None and actor.role == Role.ENGINEER and filters.assigned_to is None:
            filters = replace(filters, assigned_to=actor.id)
        return await self._tickets.list(filters)

    async def list_available(self) -> list[Ticket]:
        return await self._tickets.list(TicketFilter(status=TicketStatus.PENDING, open_only=True))

    async def summary(self, actor: Actor) -> TicketSummary:
        ensure_role(actor, Role.ADMIN)
        by_status = await self._tickets.count_by_status()
        by_assignee = await self._tickets.count_by_assignee()
        return TicketSummary(
            total=sum(by_status.values()),
            by_status={s.value: by_status.get(s.value, 0) for s in TicketStatus},
            by_assignee=by_assignee,
        )

    # ── Assignment ─────────────────────────────────────────────────────

    async def assign(self, ticket_id: int, engineer_id: int | None, actor: Actor) -> Ticket:
        """Assign (engineer: claim) a ticket; managers may also reassign."""
        ticket = await self.get(ticket_id)
        return await self._assign(ticket, engineer_id, actor, allow_reassign=actor.is_manager_tier())

    async def assign_if_pending(self, ticket: Ticket, engineer_id: int, actor: Actor) -> Ticket:
        """Assign a ticket that must still be pending at write time."""
        return await self._assign(ticket, engineer_id, actor, allow_reassign=False)

    async def _assign(
        self,
        ticket: Ticket,
        engineer_id: int | None,
        actor: Actor,
        allow_reassign: bool,
    ) -> Ticket:
        if engineer_id is None:
            raise ValidationError("engineerId is required")
        if ticket.is_in_work() and not allow_reassign:
            raise ConflictError(f"Ticket {ticket.display_id} has already been claimed")
        ensure_assignable(ticket.status, allow_reassign)
        ensure_permitted(actor, TicketOperation.ASSIGN, ticket, target_engineer_id=engineer_id)
        await self._availability.require_engineer(engineer_id)

        updated = await self._write(
            ticket,
            status=TicketStatus.ASSIGNED,
            assigned_to=engineer_id,
            assigned_by=actor.id,
            assigned_at=self._clock.now(),
            started_at=None,
        )
        logger.info(
            "Ticket %s assigned to engineer %s by %s (was %s)",
            ticket.display_id, engineer_id, actor.id, ticket.assigned_to,
        )

        previous = ticket.assigned_to
        if previous is not None and previous != engineer_id:
            await self._availability.mark_free(previous)
        await self._availability.mark_busy(engineer_id)
        return updated

    async def unassign(self, ticket_id: int, actor: Actor) -> Ticket:
        ticket = await self.get(ticket_id)
        ensure_transition(ticket.status, TicketStatus.PENDING)
        ensure_permitted(actor, TicketOperation.UNASSIGN, ticket)
        return await self._return_to_queue(ticket, actor)

    async def _return_to_queue(self, ticket: Ticket, actor: Actor) -> Ticket:
        updated = await self._write(
            ticket,
            status=TicketStatus.PENDING,
            assigned_to=None,
            assigned_by=None,
            assigned_at=None,
            started_at=None,
        )
        logger.info("Ticket %s returned to the queue by %s", ticket.display_id, actor.id)
        await self._availability.mark_free(ticket.assigned_to)
        return updated

    # ── Progress ───────────────────────────────────────────────────────

    async def update_status(self, ticket_id: int, new_status: str | TicketStatus, actor: Actor) -> Ticket:
        target = parse_status(new_status)
        ticket = await self.get(ticket_id)
        ensure_transition(ticket.status, target)

        if target == TicketStatus.PENDING:
            ensure_permitted(actor, TicketOperation.UNASSIGN, ticket)
            return await self._return_to_queue(ticket, actor)
        if target == TicketStatus.COMPLETED:
            ensure_permitted(actor, TicketOperation.COMPLETE, ticket)
            return await self._complete(ticket, actor)

        ensure_permitted(actor, TicketOperation.UPDATE_STATUS, ticket)
        if target == TicketStatus.ASSIGNED:
            raise ValidationError("Assigning a ticket needs an engineer; use the assign operation")
        if target == TicketStatus.CLOSED:
            raise ValidationError("Closing a ticket needs solution notes; use the close operation")

        updated = await self._write(ticket, status=target, started_at=self._clock.now())
        logger.info("Ticket %s: %s -> %s", ticket.display_id, ticket.status.value, target.value)
        return updated

    async def complete(
        self,
        ticket_id: int,
        actor: Actor,
        work_performed: str | None = None,
        solution_notes: str | None = None,
        spares_used: list[str] | str | None = None,
    ) -> Ticket:
        ticket = await self.get(ticket_id)
        ensure_transition(ticket.status, TicketStatus.COMPLETED)
        ensure_permitted(actor, TicketOperation.COMPLETE, ticket)
        return await self._complete(ticket, actor, work_performed, solution_notes, spares_used)

    async def _complete(
        self,
        ticket: Ticket,
        actor: Actor,
        work_performed: str | None = None,
        solution_notes: str | None = None,
        spares_used: list[str] | str | None = None,
    ) -> Ticket:
        changes: dict[str, Any] = {
            "status": TicketStatus.COMPLETED,
            "completed_at": self._clock.now(),
            "spares_used": parse_spares(spares_used),
        }
        if work_performed is not None:
            changes["work_performed"] = work_performed
        if solution_notes is not None:
            changes["solution_notes"] = solution_notes

        updated = await self._write(ticket, **changes)
        logger.info("Ticket %s completed by %s", ticket.display_id, actor.id)

        await self._availability.mark_free(ticket.assigned_to)
        await self._record_history(updated, HistoryAction.COMPLETED, actor)
        return updated

    async def close(self, ticket_id: int, solution_notes: str | None, actor: Actor) -> Ticket:
        if not (solution_notes or "").strip():
            raise ValidationError("Solution notes are required to close a ticket")

        ticket = await self.get(ticket_id)
        ensure_transition(ticket.status, TicketStatus.CLOSED)
        ensure_permitted(actor, TicketOperation.CLOSE, ticket)

        updated = await self._write(
            ticket,
            status=TicketStatus.CLOSED,
            closed_at=self._clock.now(),
            solution_notes=solution_notes.strip(),
        )
        logger.info("Ticket %s closed by %s", ticket.display_id, actor.id)

        # A completed ticket already released its engineer, who may hold new work now.
        if ticket.is_in_work():
            await self._availability.mark_free(ticket.assigned_to)
        await self._record_history(updated, HistoryAction.CLOSED, actor)
        return updated

    # ── Helpers ────────────────────────────────────────────────────────

    async def _write(self, ticket: Ticket, **changes: Any) -> Ticket:
        updated = await self._tickets.update_if(ticket.id, TicketGuard.of(ticket), changes)
        if updated is None:
            logger.warning(
                "Ticket %s changed concurrently (expected status=%s, assignee=%s)",
                ticket.display_id, ticket.status.value, ticket.assigned_to,
            )
            raise ConflictError(
                f"Ticket {ticket.display_id} was modified by someone else; reload and retry"
            )
        return updated

    async def _record_history(self, ticket: Ticket, action: HistoryAction, actor: Actor) -> None:
        entry = ServiceHistoryEntry(
            id=None,
            ticket_id=ticket.id,
            action=action,
            machine_id=ticket.machine_id,
            customer_id=ticket.customer_id,
            engineer_id=ticket.assigned_to,
            recorded_at=self._clock.now(),
            recorded_by=actor.id,
            work_performed=ticket.work_performed,
            solution_notes=ticket.solution_notes,
            spares_used=list(ticket.spares_used),
        )
        try:
            await self._history.append(entry)
        except Exception:
            logger.exception(
                "Ticket %s: service history entry (%s) was not written",
                ticket.display_id, action.value,
            )
