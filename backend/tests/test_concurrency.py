"""
Concurrency Tests.

Validates that the slot capacity bound holds when assignments race.
"""

import asyncio
from datetime import time

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from backend.app.core.exceptions import CapacityExceededError
from backend.app.db.session import Base
from backend.app.models.enums import UserRole
from backend.app.models.fleet import Fleet
from backend.app.models.fleet_vehicle import FleetVehicle
from backend.app.models.route import Route
from backend.app.models.route_enums import AssignmentStatus
from backend.app.models.route_slot import RouteSlot
from backend.app.models.slot_assignment import SlotAssignment
from backend.app.models.user import User
from backend.app.services.slot_scheduler import SlotScheduler

CALLERS = 6
MAX_CAPACITY = 2


@pytest.fixture
async def file_sessions(tmp_path):
    """Separate connections need a file database; :memory: is per connection."""
    file_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'slots.db'}")
    async with file_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)

    await file_engine.dispose()


async def _seed(factory):
    async with factory() as session:
        admin = User(email="admin@test.com", username="route_admin", role=UserRole.ROUTE_ADMIN)
        manager = User(email="fm@test.com", username="fleet_manager", role=UserRole.FLEET_MANAGER)
        route = Route(route_code="R-1", name="Race Route")
        session.add_all([admin, manager, route])
        await session.commit()

        fleet = Fleet(company_name="Racers", registration_number="FLT-R", manager_id=manager.id)
        session.add(fleet)
        await session.commit()

        slot = RouteSlot(
            route_id=route.id,
            slot_number=1,
            departure_time=time(8, 0),
            arrival_time=time(8, 45),
            days_of_week=["monday"],
            max_capacity=MAX_CAPACITY,
            created_by=admin.id,
        )
        vehicles = [
            FleetVehicle(fleet_id=fleet.id, vehicle_number=f"RC-{n}") for n in range(CALLERS)
        ]
        session.add(slot)
        session.add_all(vehicles)
        await session.commit()

        caller = {"user_id": admin.id, "sub": admin.username, "role": UserRole.ROUTE_ADMIN.value}
        return caller, slot.id, fleet.id, [v.id for v in vehicles]


@pytest.mark.asyncio
async def test_concurrent_assigns_never_exceed_capacity(file_sessions):
    """Gathered route admin assigns on one slot: exactly max_capacity succeed."""
    caller, slot_id, fleet_id, vehicle_ids = await _seed(file_sessions)

    async def attempt(vehicle_id):
        async with file_sessions() as session:
            scheduler = SlotScheduler(session)
            try:
                await scheduler.assign(caller, slot_id=slot_id, vehicle_id=vehicle_id, fleet_id=fleet_id)
                return True
            except CapacityExceededError:
                return False

    outcomes = await asyncio.gather(*(attempt(vehicle_id) for vehicle_id in vehicle_ids))

    assert outcomes.count(True) == MAX_CAPACITY
    assert outcomes.count(False) == CALLERS - MAX_CAPACITY

    async with file_sessions() as session:
        approved = await session.execute(
            select(func.count(SlotAssignment.id)).where(
                SlotAssignment.slot_id == slot_id,
                SlotAssignment.status == AssignmentStatus.APPROVED
            )
        )
        assert approved.scalar() == MAX_CAPACITY

        slot = await session.get(RouteSlot, slot_id)
        assert slot.occupied_count == MAX_CAPACITY


@pytest.mark.asyncio
async def test_concurrent_approvals_never_exceed_capacity(file_sessions):
    """Pending requests approved at once: the approval re-check holds the bound."""
    caller, slot_id, fleet_id, vehicle_ids = await _seed(file_sessions)

    async with file_sessions() as session:
        manager = (await session.execute(
            select(User).where(User.role == UserRole.FLEET_MANAGER)
        )).scalar_one()
        requester = {"user_id": manager.id, "sub": manager.username, "role": UserRole.FLEET_MANAGER.value}
        scheduler = SlotScheduler(session)
        pending_ids = [
            (await scheduler.assign(requester, slot_id=slot_id, vehicle_id=v, fleet_id=fleet_id)).id
            for v in vehicle_ids
        ]

    async def approve(assignment_id):
        async with file_sessions() as session:
            try:
                await SlotScheduler(session).set_assignment_status(caller, assignment_id, "approve")
                return True
            except CapacityExceededError:
                return False

    outcomes = await asyncio.gather(*(approve(assignment_id) for assignment_id in pending_ids))

    assert outcomes.count(True) == MAX_CAPACITY

    async with file_sessions() as session:
        slot = await session.get(RouteSlot, slot_id)
        assert slot.occupied_count == MAX_CAPACITY
