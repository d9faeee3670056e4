"""Pytest configuration and shared fixtures."""

from datetime import datetime, time

import pytest

from fieldservice.application.use_cases.auto_assign import AutoAssignUseCase
from fieldservice.application.use_cases.auto_checkout import AutoCheckoutSweep
from fieldservice.application.use_cases.availability import AvailabilityTracker
from fieldservice.application.use_cases.ticket_lifecycle import TicketLifecycleUseCase
from fieldservice.application.use_cases.work_time import WorkTimeTracker
from fieldservice.domain.value_objects.actor import Actor
from fieldservice.domain.value_objects.enums import Role
from tests.fakes import (
    FakeClock,
    FakeTransaction,
    InMemoryEngineerRepo,
    InMemoryPartyDirectory,
    InMemoryServiceHistory,
    InMemoryTicketRepo,
    InMemoryWorkRecordRepo,
)

MONDAY_10AM = datetime(2026, 3, 2, 10, 0)


@pytest.fixture
def clock():
    return FakeClock(MONDAY_10AM)


@pytest.fixture
def ticket_repo():
    return InMemoryTicketRepo()


@pytest.fixture
def engineer_repo():
    return InMemoryEngineerRepo()


@pytest.fixture
def work_records():
    return InMemoryWorkRecordRepo()


@pytest.fixture
def parties():
    return InMemoryPartyDirectory()


@pytest.fixture
def history():
    return InMemoryServiceHistory()


@pytest.fixture
def availability(engineer_repo):
    return AvailabilityTracker(engineer_repo)


@pytest.fixture
def lifecycle(ticket_repo, parties, availability, history, clock):
    return TicketLifecycleUseCase(ticket_repo, parties, availability, history, clock)


@pytest.fixture
def auto_assign(lifecycle, ticket_repo, engineer_repo, parties):
    return AutoAssignUseCase(lifecycle, ticket_repo, engineer_repo, parties, suggestion_limit=5)


@pytest.fixture
def transaction(engineer_repo, work_records):
    return FakeTransaction(engineer_repo, work_records)


@pytest.fixture
def work_time(engineer_repo, work_records, clock, transaction):
    return WorkTimeTracker(
        engineer_repo, work_records, clock, transaction,
        window_start=time(9, 0), cutoff=time(19, 0), history_limit=90,
    )


@pytest.fixture
def sweep(engineer_repo, work_time, clock):
    return AutoCheckoutSweep(engineer_repo, work_time, clock)


@pytest.fixture
def manager():
    return Actor(id=900, role=Role.MANAGER)


@pytest.fixture
def admin():
    return Actor(id=901, role=Role.ADMIN)
