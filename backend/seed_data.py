"""
Database seeding script for local development.

Creates one user per role, a route, two fleets with vehicles, and prints
a bearer token per user for exercising the API by hand.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.core.jwt import create_access_token
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.models.route import Route
from backend.app.models.fleet import Fleet
from backend.app.models.fleet_vehicle import FleetVehicle
from backend.app.models.route_slot import RouteSlot  # noqa: F401
from backend.app.models.slot_assignment import SlotAssignment  # noqa: F401
from backend.app.models.audit_log import AuditLog  # noqa: F401
from sqlalchemy import select

SEED_USERS = [
    ("sysadmin", "System Admin", UserRole.SYSTEM_ADMIN),
    ("routeadmin", "Route Admin", UserRole.ROUTE_ADMIN),
    ("fleetmanager", "Fleet Manager", UserRole.FLEET_MANAGER),
    ("fleetmanager2", "Second Fleet Manager", UserRole.FLEET_MANAGER),
    ("support", "Customer Service", UserRole.CUSTOMER_SERVICE),
    ("client", "Client", UserRole.CLIENT),
]


async def seed_data():
    """
    Seed development data.

    Creates:
    - 1 user per role (2 fleet managers)
    - 1 route (R-100)
    - 2 fleets, one per fleet manager, with 3 vehicles each
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        result = await db.execute(select(User).where(User.username == "sysadmin"))
        if result.scalar_one_or_none():
            print("ℹ️  Seed users already exist, skipping seeding")
            users = (await db.execute(select(User).order_by(User.id))).scalars().all()
            _print_tokens(users)
            return

        users = {}
        for username, full_name, role in SEED_USERS:
            user = User(
                email=f"{username}@slots.local",
                username=username,
                full_name=full_name,
                role=role,
                is_active=True
            )
            db.add(user)
            users[username] = user

        route = Route(route_code="R-100", name="Central to Airport", origin="Central", destination="Airport")
        db.add(route)
        await db.commit()
        print(f"✅ Created route {route.route_code} (id: {route.id})")

        for manager, company, registration, prefix in [
            ("fleetmanager", "Metro Coaches", "FLT-001", "MC"),
            ("fleetmanager2", "Harbour Shuttles", "FLT-002", "HS"),
        ]:
            fleet = Fleet(
                company_name=company,
                registration_number=registration,
                manager_id=users[manager].id,
                is_active=True
            )
            db.add(fleet)
            await db.commit()

            db.add_all([
                FleetVehicle(fleet_id=fleet.id, vehicle_number=f"{prefix}-{n}", vehicle_type="Bus")
                for n in range(1, 4)
            ])
            await db.commit()
            print(f"✅ Created fleet {company} (id: {fleet.id}) with 3 vehicles")

        print("\n🎉 Seeding completed successfully!")
        _print_tokens(users.values())


def _print_tokens(users):
    print("\nBearer tokens:")
    for user in users:
        token = create_access_token(data={
            "sub": user.username,
            "user_id": user.id,
            "role": user.role.value
        })
        print(f"  - {user.role.value:<17} {user.username:<14} {token}")


if __name__ == "__main__":
    asyncio.run(seed_data())
