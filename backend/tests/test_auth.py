"""
Integration tests for the authenticated caller context.

Verifies token validation, revocation on logout and the admin audit
trail reader.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, update

from backend.app.core.jwt import create_access_token
from backend.app.models.audit_log import AuditLog
from backend.app.models.enums import UserRole
from backend.app.models.user import User


@pytest.mark.asyncio
async def test_me_returns_caller(client, seed):
    response = await client.get("/v1/auth/me", headers=seed.headers["route_admin"])

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == seed.user_ids["route_admin"]
    assert data["username"] == "route_admin"
    assert data["role"] == "route_admin"


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "Bearer not-a-jwt"},
    {"Authorization": "Basic dXNlcjpwYXNz"},
])
async def test_missing_or_invalid_token(client, seed, headers):
    response = await client.get("/v1/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_AUTH_001"
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_expired_token(client, seed):
    token = create_access_token(
        data={"sub": "route_admin", "user_id": seed.user_ids["route_admin"], "role": "route_admin"},
        expires_delta=timedelta(minutes=-1)
    )

    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Could not validate credentials"


@pytest.mark.asyncio
async def test_token_for_unknown_user(client, seed):
    token = create_access_token(data={"sub": "ghost", "user_id": 9999, "role": "route_admin"})

    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_is_rejected(client, seed, db_session):
    await db_session.execute(
        update(User).where(User.id == seed.user_ids["fleet_manager"]).values(is_active=False)
    )
    await db_session.commit()

    response = await client.get("/v1/slot-assignments/approved", headers=seed.headers["fleet_manager"])

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_role_comes_from_the_database(client, seed, db_session, slot_body):
    """A demoted user's old token no longer carries the old role."""
    await db_session.execute(
        update(User).where(User.id == seed.user_ids["route_admin"]).values(role=UserRole.CLIENT)
    )
    await db_session.commit()

    response = await client.post(
        f"/v1/routes/{seed.route_id}/slots",
        json={"slots": [slot_body(1)]},
        headers=seed.headers["route_admin"]
    )

    assert response.status_code == 403


# Logout
@pytest.mark.asyncio
async def test_logout_revokes_token(client, seed, db_session, mock_redis):
    headers = seed.headers["customer_service"]

    response = await client.post("/v1/auth/logout", headers=headers)

    assert response.status_code == 200
    assert response.json()["token_revoked"] is True
    assert any(key.startswith("blacklist:token:") for key in mock_redis.store)

    after = await client.get("/v1/auth/me", headers=headers)
    assert after.status_code == 401

    # Other users are unaffected
    other = await client.get("/v1/auth/me", headers=seed.headers["client"])
    assert other.status_code == 200

    audited = await db_session.execute(select(AuditLog).where(AuditLog.action == "TOKEN_REVOKED"))
    assert audited.scalar_one().actor_id == seed.user_ids["customer_service"]


# Audit trail
@pytest.mark.asyncio
async def test_audit_logs_for_system_admin(client, seed, make_slot):
    await make_slot(1)

    response = await client.get(
        "/v1/admin/audit-logs",
        params={"action": "SLOTS_CREATED"},
        headers=seed.headers["system_admin"]
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    entry = data["logs"][0]
    assert entry["actor_username"] == "route_admin"
    assert entry["actor_role"] == "route_admin"
    assert entry["entity_id"] == seed.route_id


@pytest.mark.asyncio
@pytest.mark.parametrize("user", ["route_admin", "fleet_manager", "customer_service", "client"])
async def test_audit_logs_forbidden_for_others(client, seed, user):
    response = await client.get("/v1/admin/audit-logs", headers=seed.headers[user])

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["redis"] == "connected"
    assert "X-Correlation-ID" in response.headers


@pytest.mark.asyncio
async def test_revocation_is_checked_once_per_request(client, seed, mock_redis, mocker):
    exists = mocker.spy(mock_redis, "exists")

    response = await client.get("/v1/auth/me", headers=seed.headers["client"])

    assert response.status_code == 200
    assert exists.call_count == 1
    assert exists.call_args.args[0].startswith("blacklist:token:")
