"""Ticket endpoints — create, list, lifecycle transitions, auto-assignment."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fieldservice.adapters.persistence.database import get_session
from fieldservice.application.use_cases.auto_assign import (
    AutoAssignUseCase,
    EngineerSuggestion,
)
from fieldservice.application.use_cases.ticket_lifecycle import (
    CreateTicketCommand,
    TicketLifecycleUseCase,
    parse_status,
)
from fieldservice.config import settings
from fieldservice.domain.entities.party import CustomerInput, MachineInput
from fieldservice.domain.entities.ticket import Ticket, TicketFilter
from fieldservice.domain.policies.assignment_scoring import ScoredCandidate
from fieldservice.domain.value_objects.actor import Actor
from fieldservice.domain.value_objects.enums import Role
from fieldservice.infrastructure.api.dependencies import (
    get_actor,
    get_auto_assign_uc,
    get_optional_actor,
    get_ticket_lifecycle_uc,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["tickets"])

# ── Request schemas ─────────────────────────────────────────────────


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CustomerData(_CamelModel):
    company_name: str | None = Field(default=None, alias="companyName")
    contact_person: str | None = Field(default=None, alias="contactPerson")
    email: str | None = None
    phone: str | None = None
    city: str | None = None
    address: str | None = None
    service_no: str | None = Field(default=None, alias="serviceNo")


class MachineData(_CamelModel):
    model: str | None = None
    serial_number: str | None = Field(default=None, alias="serialNumber")


class CreateTicketRequest(_CamelModel):
    problem: str | None = None
    priority: str | None = None
    customer_id: int | None = Field(default=None, alias="customerId")
    machine_id: int | None = Field(default=None, alias="machineId")
    customer_data: CustomerData | None = Field(default=None, alias="customerData")
    machine_data: MachineData | None = Field(default=None, alias="machineData")
    issue_categories: list[str] = Field(default_factory=list, alias="issueCategories")
    service_no: str | None = Field(default=None, alias="serviceNo")


class AssignRequest(_CamelModel):
    engineer_id: int | None = Field(default=None, alias="engineerId")


class StatusRequest(_CamelModel):
    status: str


class CompleteRequest(_CamelModel):
    work_performed: str | None = Field(default=None, alias="workPerformed")
    solution_notes: str | None = Field(default=None, alias="solutionNotes")
    spares_used: list[str] | str | None = Field(default=None, alias="sparesUsed")


class CloseRequest(_CamelModel):
    solution_notes: str | None = Field(default=None, alias="solutionNotes")


# ── Serializers ─────────────────────────────────────────────────────


def _iso(value):
    return value.isoformat() if value else None


def serialize_ticket(t: Ticket) -> dict:
    return {
        "id": t.id,
        "displayId": t.display_id,
        "problem": t.problem,
        "priority": t.priority.value,
        "issueCategories": list(t.issue_categories),
        "customerId": t.customer_id,
        "machineId": t.machine_id,
        "status": t.status.value,
        "assignedTo": t.assigned_to,
        "assignedBy": t.assigned_by,
        "assignedAt": _iso(t.assigned_at),
        "startedAt": _iso(t.started_at),
        "completedAt": _iso(t.completed_at),
        "closedAt": _iso(t.closed_at),
        "workPerformed": t.work_performed,
        "solutionNotes": t.solution_notes,
        "sparesUsed": list(t.spares_used),
        "createdBy": t.created_by,
        "createdAt": _iso(t.created_at),
    }


def _serialize_skill(skill) -> dict:
    return {
        "name": skill.name,
        "level": skill.level.value,
        "yearsExperience": skill.years_experience,
    }


def _serialize_candidate(c: ScoredCandidate) -> dict:
    return {
        "engineerId": c.engineer.id,
        "name": c.engineer.name,
        "availability": c.engineer.availability.value,
        "score": c.score,
        "matchingSkills": [_serialize_skill(s) for s in c.matching_skills],
    }


def _serialize_suggestion(s: EngineerSuggestion) -> dict:
    return {
        "engineerId": s.engineer_id,
        "name": s.name,
        "email": s.email,
        "availability": s.availability.value,
        "score": s.score,
        "matchingSkills": [_serialize_skill(skill) for skill in s.matching_skills],
        "totalSkills": s.total_skills,
        "isAvailable": s.is_available,
    }


# ── Endpoints ───────────────────────────────────────────────────────


@router.post("", status_code=201)
async def create_ticket(
    body: CreateTicketRequest,
    actor: Actor | None = Depends(get_optional_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    """Create a ticket. Anonymous callers are allowed when public tickets are enabled."""
    if actor is None and not settings.allow_public_tickets:
        raise HTTPException(status_code=401, detail="Authentication required")

    customer = body.customer_data or CustomerData()
    machine = body.machine_data or MachineData()
    command = CreateTicketCommand(
        problem=body.problem,
        priority=body.priority,
        issue_categories=body.issue_categories,
        customer=CustomerInput(
            customer_id=body.customer_id,
            company_name=customer.company_name,
            contact_person=customer.contact_person,
            email=customer.email,
            phone=customer.phone,
            city=customer.city,
            address=customer.address,
            service_no=customer.service_no or body.service_no,
        ),
        machine=MachineInput(
            machine_id=body.machine_id,
            model=machine.model,
            serial_number=machine.serial_number,
        ),
    )
    ticket = await uc.create(command, actor)
    await session.commit()
    return serialize_ticket(ticket)


@router.get("")
async def list_tickets(
    status: str | None = None,
    assigned_to: int | None = Query(default=None, alias="assignedTo"),
    open_only: bool = Query(default=False, alias="open"),
    actor: Actor | None = Depends(get_optional_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
):
    """List tickets. ``open=true`` lists the unclaimed queue."""
    filters = TicketFilter(
        status=parse_status(status) if status else None,
        assigned_to=assigned_to,
        open_only=open_only,
    )
    tickets = await uc.list(filters, actor)
    return {"total": len(tickets), "tickets": [serialize_ticket(t) for t in tickets]}


@router.get("/available")
async def list_available_tickets(
    actor: Actor = Depends(get_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
):
    tickets = await uc.list_available()
    return {"total": len(tickets), "tickets": [serialize_ticket(t) for t in tickets]}


@router.get("/summary")
async def ticket_summary(
    actor: Actor = Depends(get_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
):
    summary = await uc.summary(actor)
    return {
        "total": summary.total,
        "byStatus": summary.by_status,
        "byAssignee": [
            {"engineerId": engineer_id, "count": count}
            for engineer_id, count in summary.by_assignee.items()
        ],
    }


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: int,
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
):
    return serialize_ticket(await uc.get(ticket_id))


@router.post("/{ticket_id}/assign")
async def assign_ticket(
    ticket_id: int,
    body: AssignRequest,
    actor: Actor = Depends(get_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    """Assign a ticket. An engineer that omits engineerId claims it for themselves."""
    engineer_id = body.engineer_id
    if engineer_id is None and actor.role == Role.ENGINEER:
        engineer_id = actor.id
    ticket = await uc.assign(ticket_id, engineer_id, actor)
    await session.commit()
    return serialize_ticket(ticket)


@router.post("/{ticket_id}/unassign")
async def unassign_ticket(
    ticket_id: int,
    actor: Actor = Depends(get_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    ticket = await uc.unassign(ticket_id, actor)
    await session.commit()
    return serialize_ticket(ticket)


@router.put("/{ticket_id}/status")
async def update_ticket_status(
    ticket_id: int,
    body: StatusRequest,
    actor: Actor = Depends(get_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    ticket = await uc.update_status(ticket_id, body.status, actor)
    await session.commit()
    return serialize_ticket(ticket)


@router.post("/{ticket_id}/complete")
async def complete_ticket(
    ticket_id: int,
    body: CompleteRequest,
    actor: Actor = Depends(get_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    ticket = await uc.complete(
        ticket_id,
        actor,
        work_performed=body.work_performed,
        solution_notes=body.solution_notes,
        spares_used=body.spares_used,
    )
    await session.commit()
    return serialize_ticket(ticket)


@router.post("/{ticket_id}/close")
async def close_ticket(
    ticket_id: int,
    body: CloseRequest,
    actor: Actor = Depends(get_actor),
    uc: TicketLifecycleUseCase = Depends(get_ticket_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    ticket = await uc.close(ticket_id, body.solution_notes, actor)
    await session.commit()
    return serialize_ticket(ticket)


@router.post("/{ticket_id}/auto-assign")
async def auto_assign_ticket(
    ticket_id: int,
    actor: Actor = Depends(get_actor),
    uc: AutoAssignUseCase = Depends(get_auto_assign_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.execute(ticket_id, actor)
    await session.commit()
    return {
        "ticket": serialize_ticket(result.ticket),
        "assignedEngineer": _serialize_candidate(result.chosen),
        "alternatives": [_serialize_candidate(c) for c in result.alternatives],
    }


@router.get("/{ticket_id}/suggested-engineers")
async def suggested_engineers(
    ticket_id: int,
    actor: Actor = Depends(get_actor),
    uc: AutoAssignUseCase = Depends(get_auto_assign_uc),
):
    suggestions = await uc.suggest(ticket_id, actor)
    return {"ticketId": ticket_id, "engineers": [_serialize_suggestion(s) for s in suggestions]}
