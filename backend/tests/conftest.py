"""
Centralized Test Configuration.
"""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.jwt import create_access_token
from backend.app.models.enums import UserRole
from backend.app.models.fleet import Fleet
from backend.app.models.fleet_vehicle import FleetVehicle
from backend.app.models.route import Route
from backend.app.models.user import User
import backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def mock_redis(monkeypatch):
    """Swap the module-level redis client for an in-memory one."""
    fake = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", fake)
    return fake


@pytest.fixture
async def engine():
    """A fresh in-memory database per test, bound to the test's event loop."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Shared session for fixture data creation."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory, mock_redis):
    """Async client for testing."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}


def make_token(user: User) -> str:
    return create_access_token(data={
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
    })


SEED_USERS = [
    ("system_admin", UserRole.SYSTEM_ADMIN),
    ("route_admin", UserRole.ROUTE_ADMIN),
    ("fleet_manager", UserRole.FLEET_MANAGER),
    ("other_fleet_manager", UserRole.FLEET_MANAGER),
    ("customer_service", UserRole.CUSTOMER_SERVICE),
    ("client", UserRole.CLIENT),
]


@pytest.fixture
async def seed(db_session):
    """
    One user per role (plus a second fleet manager), two routes, two
    fleets and their vehicles.

    Returns a namespace with ids and ready-made Authorization headers
    keyed by user name.
    """
    users = {}
    for name, role in SEED_USERS:
        user = User(
            email=f"{name}@test.com",
            username=name,
            full_name=name.replace("_", " ").title(),
            role=role,
            is_active=True,
        )
        db_session.add(user)
        users[name] = user

    route = Route(route_code="R-100", name="Central to Airport", origin="Central", destination="Airport")
    other_route = Route(route_code="R-200", name="Harbour Loop", origin="Harbour", destination="Harbour")
    db_session.add_all([route, other_route])
    await db_session.commit()

    fleet = Fleet(
        company_name="Metro Coaches",
        registration_number="FLT-001",
        phone="+1-555-0100",
        manager_id=users["fleet_manager"].id,
    )
    other_fleet = Fleet(
        company_name="Harbour Shuttles",
        registration_number="FLT-002",
        phone="+1-555-0200",
        manager_id=users["other_fleet_manager"].id,
    )
    db_session.add_all([fleet, other_fleet])
    await db_session.commit()

    vehicles = [
        FleetVehicle(fleet_id=fleet.id, vehicle_number=f"MC-{n}", vehicle_type="Bus")
        for n in range(1, 6)
    ]
    other_vehicle = FleetVehicle(fleet_id=other_fleet.id, vehicle_number="HS-1", vehicle_type="Minibus")
    db_session.add_all(vehicles + [other_vehicle])
    await db_session.commit()

    return SimpleNamespace(
        user_ids={name: user.id for name, user in users.items()},
        headers={
            name: {"Authorization": f"Bearer {make_token(user)}"}
            for name, user in users.items()
        },
        route_id=route.id,
        other_route_id=other_route.id,
        fleet_id=fleet.id,
        other_fleet_id=other_fleet.id,
        vehicle_ids=[vehicle.id for vehicle in vehicles],
        other_vehicle_id=other_vehicle.id,
    )


def slot_payload(slot_number: int, **overrides) -> dict:
    payload = {
        "slot_number": slot_number,
        "departure_time": f"{6 + slot_number:02d}:00",
        "arrival_time": f"{6 + slot_number:02d}:45",
        "days_of_week": ["monday", "wednesday", "friday"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_slot(client, seed):
    """Create one slot on the seeded route as route admin and return its JSON."""
    async def _make_slot(slot_number: int = 1, route_id: int = None, **overrides) -> dict:
        response = await client.post(
            f"/v1/routes/{route_id or seed.route_id}/slots",
            json={"slots": [slot_payload(slot_number, **overrides)]},
            headers=seed.headers["route_admin"],
        )
        assert response.status_code == 201, response.text
        return response.json()["slots"][0]

    return _make_slot


@pytest.fixture
def assign(client, seed):
    """Post an assignment request as the given user and return the raw response."""
    async def _assign(user: str, slot_id: int, vehicle_id: int = None, fleet_id: int = None, **extra):
        body = {
            "slot_id": slot_id,
            "vehicle_id": vehicle_id if vehicle_id is not None else seed.vehicle_ids[0],
            "fleet_id": fleet_id if fleet_id is not None else seed.fleet_id,
        }
        body.update(extra)
        return await client.post("/v1/slot-assignments", json=body, headers=seed.headers[user])

    return _assign


@pytest.fixture
def slot_body():
    """Builder for one slot creation payload."""
    return slot_payload
