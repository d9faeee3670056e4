"""Tests for domain enums."""

from fieldservice.domain.value_objects.enums import (
    Availability,
    Priority,
    Role,
    SkillLevel,
    TicketStatus,
)


def test_ticket_status_values():
    assert [s.value for s in TicketStatus] == [
        "pending", "assigned", "in_progress", "completed", "closed",
    ]


def test_priority_values():
    assert Priority("high") is Priority.HIGH
    assert Priority.MEDIUM.value == "medium"


def test_availability_values():
    assert {a.value for a in Availability} == {"free", "busy", "offline"}


def test_skill_level_values():
    assert SkillLevel("expert") is SkillLevel.EXPERT


def test_role_ordering():
    assert Role.SUPERADMIN.at_least(Role.ADMIN)
    assert Role.ADMIN.at_least(Role.MANAGER)
    assert not Role.MANAGER.at_least(Role.ADMIN)
    assert not Role.ENGINEER.at_least(Role.MANAGER)


def test_manager_tier():
    assert not Role.ENGINEER.is_manager_tier()
    assert Role.MANAGER.is_manager_tier()
    assert Role.ADMIN.is_manager_tier()
    assert Role.SUPERADMIN.is_manager_tier()
