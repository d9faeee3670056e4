"""Ticket entity — a tracked machine-service incident moving through repair."""

from dataclasses import dataclass, field
from datetime import datetime

from fieldservice.domain.value_objects.enums import Priority, TicketStatus

OPEN_STATUSES = frozenset({TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS})


@dataclass
class Ticket:
    id: int | None
    display_id: str
    problem: str
    customer_id: int | None
    machine_id: int | None
    priority: Priority = Priority.MEDIUM
    issue_categories: list[str] = field(default_factory=list)
    status: TicketStatus = TicketStatus.PENDING
    assigned_to: int | None = None
    assigned_by: int | None = None
    assigned_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    closed_at: datetime | None = None
    work_performed: str | None = None
    solution_notes: str | None = None
    spares_used: list[str] = field(default_factory=list)
    created_by: int | None = None
    created_at: datetime | None = None

    def is_assigned_to(self, engineer_id: int | None) -> bool:
        return engineer_id is not None and self.assigned_to == engineer_id

    def is_pending(self) -> bool:
        return self.status == TicketStatus.PENDING

    def is_in_work(self) -> bool:
        """True while an engineer holds the ticket (assigned or in progress)."""
        return self.status in OPEN_STATUSES

    def is_closed(self) -> bool:
        return self.status == TicketStatus.CLOSED


@dataclass(frozen=True)
class TicketGuard:
    """The (status, assignee) pair a conditional update expects to find."""

    status: TicketStatus
    assigned_to: int | None

    @classmethod
    def of(cls, ticket: Ticket) -> "TicketGuard":
        return cls(status=ticket.status, assigned_to=ticket.assigned_to)


@dataclass
class TicketFilter:
    status: TicketStatus | None = None
    assigned_to: int | None = None
    open_only: bool = False
