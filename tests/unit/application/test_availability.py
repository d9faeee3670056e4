"""Tests for AvailabilityTracker."""

import pytest

from fieldservice.domain.errors import NotFoundError
from fieldservice.domain.value_objects.enums import Availability
from tests.fakes import make_engineer


@pytest.mark.asyncio
async def test_busy_then_free(availability, engineer_repo):
    engineer_repo.add(make_engineer(1))

    assert await availability.mark_busy(1)
    assert await availability.get(1) == Availability.BUSY
    assert await availability.mark_free(1)
    assert await availability.get(1) == Availability.FREE


@pytest.mark.asyncio
async def test_mark_free_is_idempotent(availability, engineer_repo):
    engineer_repo.add(make_engineer(1))
    assert await availability.mark_free(1)
    assert await availability.mark_free(1)
    assert await availability.get(1) == Availability.FREE


@pytest.mark.asyncio
async def test_offline_engineer_stays_offline(availability, engineer_repo):
    engineer_repo.add(make_engineer(1, availability=Availability.OFFLINE))
    assert not await availability.mark_busy(1)
    assert await availability.get(1) == Availability.OFFLINE


@pytest.mark.asyncio
async def test_mark_free_without_engineer(availability):
    assert not await availability.mark_free(None)


@pytest.mark.asyncio
async def test_store_failure_is_swallowed(availability, engineer_repo):
    engineer_repo.add(make_engineer(1))
    engineer_repo.fail_availability = True
    assert not await availability.mark_busy(1)


@pytest.mark.asyncio
async def test_unknown_engineer(availability):
    with pytest.raises(NotFoundError):
        await availability.get(5)
