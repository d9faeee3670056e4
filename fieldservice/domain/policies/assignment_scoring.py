"""AssignmentScorer — heuristic best-fit ranking of engineers for a ticket."""

from __future__ import annotations

from dataclasses import dataclass

from fieldservice.domain.entities.engineer import Engineer, Skill
from fieldservice.domain.entities.ticket import Ticket
from fieldservice.domain.value_objects.enums import Availability, SkillLevel

FREE_BONUS = 10
BUSY_PENALTY = -5
MACHINE_MATCH_BONUS = 5
CATEGORY_MATCH_BONUS = 4
LEVEL_BONUS: dict[SkillLevel, int] = {
    SkillLevel.EXPERT: 3,
    SkillLevel.ADVANCED: 2,
    SkillLevel.NOVICE: 0,
}
EXPERIENCE_BONUS_CAP = 5


@dataclass(frozen=True)
class AssignmentContext:
    """The ticket attributes the scorer looks at."""

    machine_model: str
    issue_categories: tuple[str, ...] = ()

    @classmethod
    def for_ticket(cls, ticket: Ticket, machine_model: str | None) -> AssignmentContext:
        return cls(
            machine_model=machine_model or "",
            issue_categories=tuple(ticket.issue_categories or ()),
        )


@dataclass(frozen=True)
class ScoredCandidate:
    engineer: Engineer
    score: float
    matching_skills: tuple[Skill, ...]
    position: int  # index in the original candidate listing


def _overlaps(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction; blanks never match."""
    a, b = a.strip().lower(), b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def _matches_any_category(skill: Skill, categories: tuple[str, ...]) -> bool:
    return any(_overlaps(skill.name, cat) for cat in categories)


def score(engineer: Engineer, context: AssignmentContext) -> float:
    """Pure function: score one engineer against one ticket.

    Rules:
      1. +10 when free, -5 when busy.
      2. Per skill matching the machine model: +5, plus the level bonus.
      3. Per skill matching any issue category: +4.
      4. Experience bonus: min(total years / 2, 5).

    Rules 2 and 3 are *additive*: one skill can earn both bonuses.
    """
    total: float = 0
    if engineer.availability == Availability.FREE:
        total += FREE_BONUS
    elif engineer.availability == Availability.BUSY:
        total += BUSY_PENALTY

    for skill in engineer.skills:
        if _overlaps(skill.name, context.machine_model):
            total += MACHINE_MATCH_BONUS + LEVEL_BONUS.get(skill.level, 0)
        if _matches_any_category(skill, context.issue_categories):
            total += CATEGORY_MATCH_BONUS

    total += min(engineer.total_years_experience() / 2, EXPERIENCE_BONUS_CAP)
    return total


def matching_skills(engineer: Engineer, context: AssignmentContext) -> tuple[Skill, ...]:
    return tuple(
        s for s in engineer.skills
        if _overlaps(s.name, context.machine_model) or _matches_any_category(s, context.issue_categories)
    )


def is_candidate(engineer: Engineer) -> bool:
    return engineer.is_active and not engineer.is_offline()


def rank_candidates(
    engineers: list[Engineer],
    context: AssignmentContext,
) -> list[ScoredCandidate]:
    """Rank active, non-offline engineers by score, highest first.

    Ties keep the order of the input listing: the sort key carries the
    original position explicitly.
    """
    scored = [
        ScoredCandidate(
            engineer=eng,
            score=score(eng, context),
            matching_skills=matching_skills(eng, context),
            position=index,
        )
        for index, eng in enumerate(engineers)
        if is_candidate(eng)
    ]
    return sorted(scored, key=lambda c: (-c.score, c.position))
