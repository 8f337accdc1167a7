"""
Failure Injection Tests.

Validates how storage, redis and unexpected failures are reported.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError

from backend.app.core.config import Settings
from backend.app.main import app
from backend.app.models.slot_assignment import SlotAssignment


@pytest.mark.asyncio
async def test_storage_failure_on_listing(client, seed, mocker):
    mocker.patch(
        "backend.app.services.slot_registry.list_active_slots",
        side_effect=OperationalError("SELECT route_slots", {}, Exception("database is unavailable"))
    )

    response = await client.get(f"/v1/routes/{seed.route_id}/slots", headers=seed.headers["client"])

    assert response.status_code == 500
    body = response.json()
    assert body["error_code"] == "ERR_STORAGE"
    assert "unavailable" not in body["message"]


@pytest.mark.asyncio
async def test_storage_failure_on_assign_leaves_no_record(client, seed, make_slot, assign, db_session, mocker):
    slot = await make_slot(1)
    mocker.patch(
        "backend.app.services.assignment_ledger.reserve_place",
        side_effect=OperationalError("UPDATE route_slots", {}, Exception("disk I/O error"))
    )

    response = await assign("route_admin", slot["id"])

    assert response.status_code == 500
    assert response.json()["error_code"] == "ERR_STORAGE"

    count = await db_session.execute(select(func.count(SlotAssignment.id)))
    assert count.scalar() == 0


@pytest.mark.asyncio
async def test_unexpected_error_is_reported_generically(client, seed, mocker):
    mocker.patch(
        "backend.app.services.assignment_ledger.list_approved",
        side_effect=RuntimeError("boom")
    )

    # The catch-all handler answers, but Starlette re-raises to the server afterwards
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/v1/slot-assignments/approved", headers=seed.headers["client"])

    assert response.status_code == 500
    assert response.json()["error_code"] == "ERR_INTERNAL_SERVER"


@pytest.mark.asyncio
async def test_revocation_check_fails_open_when_redis_is_down(client, seed, mock_redis, mocker):
    mocker.patch.object(mock_redis, "exists", side_effect=RedisConnectionError("redis down"))

    response = await client.get("/v1/auth/me", headers=seed.headers["client"])

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_logout_reports_unrevoked_token_when_redis_is_down(client, seed, mock_redis, mocker):
    mocker.patch.object(mock_redis, "set", side_effect=RedisConnectionError("redis down"))

    response = await client.post("/v1/auth/logout", headers=seed.headers["client"])

    assert response.status_code == 200
    assert response.json()["token_revoked"] is False


def test_debug_is_off_unless_configured(monkeypatch):
    """Debug mode would send tracebacks to callers instead of the generic error body."""
    monkeypatch.delenv("DEBUG", raising=False)

    assert Settings(_env_file=None).debug is False
