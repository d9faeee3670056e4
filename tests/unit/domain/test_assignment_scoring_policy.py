"""Tests for the engineer scoring heuristic."""

from fieldservice.domain.entities.engineer import Skill
from fieldservice.domain.entities.ticket import Ticket
from fieldservice.domain.policies.assignment_scoring import (
    AssignmentContext,
    matching_skills,
    rank_candidates,
    score,
)
from fieldservice.domain.value_objects.enums import Availability, SkillLevel
from tests.fakes import make_engineer

CO2_EXPERT = Skill("CO2", SkillLevel.EXPERT, 4)


def test_free_expert_on_matching_machine():
    e = make_engineer(1, CO2_EXPERT)
    ctx = AssignmentContext(machine_model="CO2 Laser 1390")
    # 10 free + 5 machine + 3 expert + 2 experience
    assert score(e, ctx) == 20


def test_busy_engineer_is_penalised():
    e = make_engineer(1, CO2_EXPERT, availability=Availability.BUSY)
    assert score(e, AssignmentContext(machine_model="CO2 Laser 1390")) == 5


def test_machine_match_is_case_insensitive_both_ways():
    e = make_engineer(1, Skill("co2 laser 1390 pro", SkillLevel.NOVICE, 0))
    assert score(e, AssignmentContext(machine_model="CO2 LASER 1390")) == 15


def test_category_bonus_stacks_with_machine_bonus():
    e = make_engineer(1, CO2_EXPERT)
    ctx = AssignmentContext(machine_model="CO2 Laser", issue_categories=("co2 tube",))
    assert score(e, ctx) == 24


def test_category_bonus_counted_once_per_skill():
    e = make_engineer(1, Skill("Optics", SkillLevel.NOVICE, 0))
    ctx = AssignmentContext(machine_model="Fiber", issue_categories=("optics", "optics alignment"))
    assert score(e, ctx) == 14


def test_experience_bonus_is_capped():
    e = make_engineer(1, Skill("Welding", SkillLevel.NOVICE, 30))
    assert score(e, AssignmentContext(machine_model="CO2")) == 15


def test_blank_names_never_match():
    e = make_engineer(1, Skill(" ", SkillLevel.EXPERT, 0))
    ctx = AssignmentContext(machine_model="", issue_categories=("",))
    assert score(e, ctx) == 10
    assert matching_skills(e, ctx) == ()


def test_context_from_ticket():
    t = Ticket(
        id=1, display_id="TKT-1", problem="x", customer_id=1, machine_id=1,
        issue_categories=["optics"],
    )
    ctx = AssignmentContext.for_ticket(t, None)
    assert ctx.machine_model == ""
    assert ctx.issue_categories == ("optics",)


def test_rank_excludes_offline_and_inactive():
    engineers = [
        make_engineer(1, CO2_EXPERT, availability=Availability.OFFLINE),
        make_engineer(2, CO2_EXPERT, is_active=False),
        make_engineer(3),
    ]
    ranked = rank_candidates(engineers, AssignmentContext(machine_model="CO2"))
    assert [c.engineer.id for c in ranked] == [3]


def test_rank_orders_by_score_then_listing_order():
    engineers = [
        make_engineer(5),
        make_engineer(2, CO2_EXPERT),
        make_engineer(9),
    ]
    ranked = rank_candidates(engineers, AssignmentContext(machine_model="CO2"))
    assert [c.engineer.id for c in ranked] == [2, 5, 9]
    assert ranked[0].matching_skills == (CO2_EXPERT,)
