"""PermissionMatrix — who may perform which ticket operation, per status.

The matrix is keyed by (operation, current status) for each role tier.
Engineers form one tier; manager, admin and superadmin share the manager tier.
Anything missing from a matrix is denied.
"""

from __future__ import annotations

from enum import Enum

from fieldservice.domain.entities.ticket import Ticket
from fieldservice.domain.errors import PermissionDeniedError
from fieldservice.domain.value_objects.actor import Actor
from fieldservice.domain.value_objects.enums import Role, TicketOperation, TicketStatus


class Access(str, Enum):
    DENY = "deny"
    OWN = "own"  # actor must be the ticket's assignee
    SELF = "self"  # actor may only target themselves
    ANY = "any"


_S = TicketStatus
_Op = TicketOperation

_ENGINEER_MATRIX: dict[tuple[TicketOperation, TicketStatus], Access] = {
    (_Op.ASSIGN, _S.PENDING): Access.SELF,
    (_Op.UNASSIGN, _S.ASSIGNED): Access.OWN,
    (_Op.UNASSIGN, _S.IN_PROGRESS): Access.OWN,
    (_Op.UPDATE_STATUS, _S.ASSIGNED): Access.OWN,
    (_Op.UPDATE_STATUS, _S.IN_PROGRESS): Access.OWN,
    (_Op.UPDATE_STATUS, _S.COMPLETED): Access.OWN,
    (_Op.COMPLETE, _S.ASSIGNED): Access.OWN,
    (_Op.COMPLETE, _S.IN_PROGRESS): Access.OWN,
    (_Op.CLOSE, _S.IN_PROGRESS): Access.OWN,
    (_Op.CLOSE, _S.COMPLETED): Access.OWN,
}

_MANAGER_MATRIX: dict[tuple[TicketOperation, TicketStatus], Access] = {
    (_Op.ASSIGN, _S.PENDING): Access.ANY,
    (_Op.ASSIGN, _S.ASSIGNED): Access.ANY,
    (_Op.ASSIGN, _S.IN_PROGRESS): Access.ANY,
    (_Op.UNASSIGN, _S.ASSIGNED): Access.ANY,
    (_Op.UNASSIGN, _S.IN_PROGRESS): Access.ANY,
    (_Op.COMPLETE, _S.ASSIGNED): Access.ANY,
    (_Op.COMPLETE, _S.IN_PROGRESS): Access.ANY,
    (_Op.CLOSE, _S.IN_PROGRESS): Access.ANY,
    (_Op.CLOSE, _S.COMPLETED): Access.ANY,
    (_Op.AUTO_ASSIGN, _S.PENDING): Access.ANY,
    **{(_Op.UPDATE_STATUS, s): Access.ANY for s in TicketStatus},
    **{(_Op.SUGGEST, s): Access.ANY for s in TicketStatus},
}


def access_for(role: Role, operation: TicketOperation, status: TicketStatus) -> Access:
    matrix = _MANAGER_MATRIX if role.is_manager_tier() else _ENGINEER_MATRIX
    return matrix.get((operation, status), Access.DENY)


def is_permitted(
    actor: Actor,
    operation: TicketOperation,
    ticket: Ticket,
    target_engineer_id: int | None = None,
) -> bool:
    access = access_for(actor.role, operation, ticket.status)
    if access == Access.ANY:
        return True
    if access == Access.OWN:
        return ticket.is_assigned_to(actor.id)
    if access == Access.SELF:
        return target_engineer_id is not None and target_engineer_id == actor.id
    return False


def ensure_permitted(
    actor: Actor,
    operation: TicketOperation,
    ticket: Ticket,
    target_engineer_id: int | None = None,
) -> None:
    if not is_permitted(actor, operation, ticket, target_engineer_id):
        raise PermissionDeniedError(
            f"Role '{actor.role.value}' may not {operation.value.replace('_', ' ')} "
            f"ticket {ticket.display_id} in status '{ticket.status.value}'"
        )


def ensure_role(actor: Actor, minimum: Role) -> None:
    """Coarse role gate for operations that are not tied to a ticket."""
    if not actor.role.at_least(minimum):
        raise PermissionDeniedError(f"Requires role '{minimum.value}' or higher")
