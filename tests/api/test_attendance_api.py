"""HTTP tests for the attendance endpoints, wired to in-memory fakes."""

from __future__ import annotations

from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient

from fieldservice.adapters.persistence.database import get_session
from fieldservice.domain.entities.daily_work_record import DailyWorkRecord
from fieldservice.domain.value_objects.enums import Availability
from fieldservice.infrastructure.api.dependencies import get_work_time_uc
from fieldservice.main import create_app
from tests.fakes import FakeSession, make_engineer

ME = {"X-Actor-Id": "1"}
COLLEAGUE = {"X-Actor-Id": "2", "X-Actor-Role": "engineer"}
MANAGER = {"X-Actor-Id": "900", "X-Actor-Role": "manager"}


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def app(session, work_time, engineer_repo):
    engineer_repo.add(make_engineer(1, availability=Availability.OFFLINE))
    engineer_repo.add(make_engineer(2, availability=Availability.OFFLINE))
    app = create_app()
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_work_time_uc] = lambda: work_time
    return app


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _at(hour, minute=0):
    return datetime(2026, 3, 2, hour, minute)


@pytest.mark.asyncio
async def test_check_in_defaults_role_to_engineer(app, session):
    async with _client(app) as client:
        resp = await client.post("/api/attendance/check-in", headers=ME)

    assert resp.status_code == 200
    body = resp.json()
    assert body["engineerId"] == 1
    assert body["isCheckedIn"] is True
    assert body["availability"] == "free"
    assert body["lastCheckIn"] == "2026-03-02T10:00:00"
    assert session.commits == 1


@pytest.mark.asyncio
async def test_check_in_before_window(app, clock):
    clock.set(_at(8, 30))
    async with _client(app) as client:
        resp = await client.post("/api/attendance/check-in", headers=ME)

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "Check-in is only allowed between 09:00 and 19:00",
        "kind": "OutsideWindowError",
    }


@pytest.mark.asyncio
async def test_check_in_requires_actor(app):
    async with _client(app) as client:
        resp = await client.post("/api/attendance/check-in")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_late_check_out_is_clamped(app, clock):
    async with _client(app) as client:
        await client.post("/api/attendance/check-in", headers=ME)
        clock.set(_at(19, 30))
        resp = await client.post("/api/attendance/check-out", headers=ME)

    body = resp.json()
    assert resp.status_code == 200
    assert body["autoCheckout"] is True
    assert body["workedMinutes"] == 540
    assert body["checkedOutAt"] == "2026-03-02T19:00:00"
    assert body["availability"] == "offline"
    assert body["record"]["date"] == "2026-03-02"
    assert body["record"]["totalWorkMinutes"] == 540
    assert body["record"]["log"] == [{"in": "2026-03-02T10:00:00", "out": "2026-03-02T19:00:00"}]


@pytest.mark.asyncio
async def test_check_out_when_not_checked_in(app):
    async with _client(app) as client:
        resp = await client.post("/api/attendance/check-out", headers=ME)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Not checked in"


@pytest.mark.asyncio
async def test_status_engineer_always_sees_self(app):
    async with _client(app) as client:
        await client.post("/api/attendance/check-in", headers=ME)
        own = await client.get("/api/attendance/status", params={"engineerId": 2}, headers=ME)
        managed = await client.get("/api/attendance/status", params={"engineerId": 1}, headers=MANAGER)

    assert own.json()["engineerId"] == 1
    assert own.json()["isCheckedIn"] is True
    assert managed.json()["engineerId"] == 1
    assert managed.json()["todayMinutes"] == 0


@pytest.mark.asyncio
async def test_history_of_colleague_forbidden(app):
    async with _client(app) as client:
        resp = await client.get("/api/attendance/history", params={"engineerId": 1}, headers=COLLEAGUE)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_history_inverted_range(app):
    async with _client(app) as client:
        resp = await client.get(
            "/api/attendance/history", params={"from": "2026-03-05", "to": "2026-03-01"}, headers=ME,
        )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_history_rejects_non_positive_limit(app):
    async with _client(app) as client:
        resp = await client.get("/api/attendance/history", params={"limit": 0}, headers=ME)
    assert resp.status_code == 400
    assert "limit" in resp.json()["error"]


@pytest.mark.asyncio
async def test_history_and_stats(app, work_records):
    for day, minutes in [("2026-03-02", 540), ("2026-03-03", 300)]:
        work_records.records[(1, day)] = DailyWorkRecord(
            engineer_id=1, work_date=day, first_check_in=None, last_check_out=None,
            total_work_minutes=minutes,
        )

    async with _client(app) as client:
        history = await client.get("/api/attendance/history", headers=ME)
        stats = await client.get("/api/attendance/stats", params={"engineerId": 1}, headers=MANAGER)

    assert history.json()["total"] == 2
    assert [r["date"] for r in history.json()["records"]] == ["2026-03-03", "2026-03-02"]
    assert stats.json()["totalMinutes"] == 840
    assert stats.json()["totalHours"] == 14
    assert stats.json()["avgMinutesPerDay"] == 420
