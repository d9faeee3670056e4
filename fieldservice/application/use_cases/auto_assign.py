"""AutoAssignUseCase — pick the best-fit engineer for a pending ticket."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fieldservice.application.ports.party_directory import PartyDirectory
from fieldservice.application.ports.skill_directory import SkillDirectory
from fieldservice.application.ports.ticket_repo import TicketRepository
from fieldservice.application.use_cases.ticket_lifecycle import TicketLifecycleUseCase
from fieldservice.domain.entities.engineer import Skill
from fieldservice.domain.entities.ticket import Ticket
from fieldservice.domain.errors import ConflictError, InvalidStateError, NotFoundError
from fieldservice.domain.policies.assignment_scoring import (
    AssignmentContext,
    ScoredCandidate,
    rank_candidates,
)
from fieldservice.domain.policies.permissions import ensure_permitted
from fieldservice.domain.value_objects.actor import Actor
from fieldservice.domain.value_objects.enums import Availability, Role, TicketOperation

logger = logging.getLogger(__name__)

ALTERNATIVES_SHOWN = 3


@dataclass
class AutoAssignResult:
    ticket: Ticket
    chosen: ScoredCandidate
    alternatives: list[ScoredCandidate]


@dataclass
class EngineerSuggestion:
    engineer_id: int
    name: str
    email: str | None
    availability: Availability
    score: float
    matching_skills: list[Skill]
    total_skills: int

    @property
    def is_available(self) -> bool:
        return self.availability == Availability.FREE

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> EngineerSuggestion:
        eng = candidate.engineer
        return cls(
            engineer_id=eng.id,
            name=eng.name,
            email=eng.email,
            availability=eng.availability,
            score=candidate.score,
            matching_skills=list(candidate.matching_skills),
            total_skills=len(eng.skills),
        )


class AutoAssignUseCase:
    def __init__(
        self,
        lifecycle: TicketLifecycleUseCase,
        ticket_repo: TicketRepository,
        skill_directory: SkillDirectory,
        party_directory: PartyDirectory,
        suggestion_limit: int = 5,
    ):
        self._lifecycle = lifecycle
        self._tickets = ticket_repo
        self._skills = skill_directory
        self._parties = party_directory
        self._suggestion_limit = suggestion_limit

    async def _rank(self, ticket: Ticket) -> list[ScoredCandidate]:
        machine_model = None
        if ticket.machine_id is not None:
            machine = await self._parties.get_machine(ticket.machine_id)
            machine_model = machine.model if machine else None

        engineers = await self._skills.list_active_engineers_with_skills(Role.ENGINEER)
        context = AssignmentContext.for_ticket(ticket, machine_model)
        return rank_candidates(engineers, context)

    async def execute(self, ticket_id: int, actor: Actor) -> AutoAssignResult:
        ticket = await self._lifecycle.get(ticket_id)
        if not ticket.is_pending():
            raise InvalidStateError(
                f"Only pending tickets can be auto-assigned; {ticket.display_id} is '{ticket.status.value}'"
            )
        ensure_permitted(actor, TicketOperation.AUTO_ASSIGN, ticket)

        ranking = await self._rank(ticket)
        if not ranking:
            raise NotFoundError("No available engineers found")
        best = ranking[0]

        # Scoring may take a while; make sure nobody claimed the ticket meanwhile.
        current = await self._tickets.get_by_id(ticket_id)
        if current is None or not current.is_pending():
            raise ConflictError(f"Ticket {ticket.display_id} was claimed while scoring candidates")

        assigned = await self._lifecycle.assign_if_pending(current, best.engineer.id, actor)
        logger.info(
            "Ticket %s auto-assigned to engineer %s (score=%.1f, %d candidates)",
            ticket.display_id, best.engineer.id, best.score, len(ranking),
        )
        return AutoAssignResult(
            ticket=assigned,
            chosen=best,
            alternatives=ranking[1:1 + ALTERNATIVES_SHOWN],
        )

    async def suggest(self, ticket_id: int, actor: Actor) -> list[EngineerSuggestion]:
        """Top-ranked engineers for a ticket, without assigning anyone."""
        ticket = await self._lifecycle.get(ticket_id)
        ensure_permitted(actor, TicketOperation.SUGGEST, ticket)
        ranking = await self._rank(ticket)
        return [EngineerSuggestion.from_candidate(c) for c in ranking[: self._suggestion_limit]]
