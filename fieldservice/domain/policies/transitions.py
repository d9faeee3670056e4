"""TicketTransitions — the ticket status state machine."""

from __future__ import annotations

from fieldservice.domain.errors import InvalidStateError
from fieldservice.domain.value_objects.enums import TicketStatus

ALLOWED_TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    TicketStatus.PENDING: frozenset({TicketStatus.ASSIGNED}),
    TicketStatus.ASSIGNED: frozenset(
        {TicketStatus.IN_PROGRESS, TicketStatus.COMPLETED, TicketStatus.PENDING}
    ),
    TicketStatus.IN_PROGRESS: frozenset(
        {TicketStatus.COMPLETED, TicketStatus.CLOSED, TicketStatus.PENDING}
    ),
    TicketStatus.COMPLETED: frozenset({TicketStatus.CLOSED}),
    TicketStatus.CLOSED: frozenset(),
}

# Statuses from which a manager may hand the ticket to someone else.
REASSIGNABLE = frozenset({TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS})


def can_transition(current: TicketStatus, target: TicketStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: TicketStatus, target: TicketStatus) -> None:
    """Raise InvalidStateError unless ``current -> target`` is a defined edge."""
    if not can_transition(current, target):
        if current == TicketStatus.CLOSED:
            raise InvalidStateError("Ticket is closed; no further transitions are allowed")
        raise InvalidStateError(
            f"Cannot move ticket from '{current.value}' to '{target.value}'"
        )


def ensure_assignable(current: TicketStatus, allow_reassign: bool) -> None:
    """Pending tickets can always be assigned; held tickets only when reassigning."""
    if current == TicketStatus.PENDING:
        return
    if allow_reassign and current in REASSIGNABLE:
        return
    ensure_transition(current, TicketStatus.ASSIGNED)
