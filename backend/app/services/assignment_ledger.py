"""
Assignment ledger.

Owns vehicle-to-slot assignments, their approval lifecycle and the slot
capacity bound.

Capacity is guarded in storage: a place is taken with a single
conditional UPDATE on route_slots.occupied_count, in the same
transaction as the assignment write. Concurrent callers racing for the
last place are serialized by the row lock that UPDATE takes; the loser
matches zero rows and gets CapacityExceededError.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.core.exceptions import (
    BusinessValidationError,
    CapacityExceededError,
    DuplicateAssignmentError,
    ResourceNotFoundError,
)
from backend.app.core.guards import OwnershipGuard
from backend.app.db.session import utcnow
from backend.app.models.enums import UserRole
from backend.app.models.fleet import Fleet
from backend.app.models.fleet_vehicle import FleetVehicle
from backend.app.models.route_enums import AssignmentAction, AssignmentStatus, OCCUPYING_STATUSES
from backend.app.models.route_slot import RouteSlot
from backend.app.models.slot_assignment import SlotAssignment

logger = logging.getLogger(__name__)
ownership_guard = OwnershipGuard()

def _enriched():
    return (
        selectinload(SlotAssignment.slot),
        selectinload(SlotAssignment.vehicle),
        selectinload(SlotAssignment.fleet),
        selectinload(SlotAssignment.requester),
    )


def _occupying():
    return (
        SlotAssignment.status.in_(OCCUPYING_STATUSES),
        SlotAssignment.is_active.is_(True),
    )


async def reserve_place(db: AsyncSession, slot_id: int) -> bool:
    """
    Take one place in a slot if one is free.

    Returns:
        True if a place was taken, False if the slot is full
    """
    result = await db.execute(
        update(RouteSlot)
        .where(
            RouteSlot.id == slot_id,
            RouteSlot.occupied_count < RouteSlot.max_capacity,
        )
        .values(occupied_count=RouteSlot.occupied_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_place(db: AsyncSession, slot_id: int) -> None:
    """Give back one place in a slot."""
    await db.execute(
        update(RouteSlot)
        .where(RouteSlot.id == slot_id, RouteSlot.occupied_count > 0)
        .values(occupied_count=RouteSlot.occupied_count - 1)
        .execution_options(synchronize_session=False)
    )


async def get_slot(db: AsyncSession, slot_id: int) -> RouteSlot:
    # occupied_count is changed by bulk UPDATEs, so never trust the identity map
    slot = await db.get(RouteSlot, slot_id, populate_existing=True)
    if slot is None:
        raise ResourceNotFoundError("Route slot", slot_id)
    return slot


async def load_assignment(db: AsyncSession, assignment_id: int) -> SlotAssignment:
    """Load an assignment with slot, vehicle, fleet and requester."""
    result = await db.execute(
        select(SlotAssignment)
        .options(*_enriched())
        .where(SlotAssignment.id == assignment_id)
        .execution_options(populate_existing=True)
    )
    assignment = result.scalar_one_or_none()
    if assignment is None:
        raise ResourceNotFoundError("Slot assignment", assignment_id)
    return assignment


async def _lock_assignment(db: AsyncSession, assignment_id: int) -> SlotAssignment:
    result = await db.execute(
        select(SlotAssignment)
        .where(SlotAssignment.id == assignment_id)
        .with_for_update()
    )
    assignment = result.scalar_one_or_none()
    if assignment is None:
        raise ResourceNotFoundError("Slot assignment", assignment_id)
    return assignment


async def _commit_assignment(db: AsyncSession, assignment: SlotAssignment) -> None:
    """Commit, mapping the one-vehicle-per-slot index violation to a 409."""
    slot_id, vehicle_id = assignment.slot_id, assignment.vehicle_id
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateAssignmentError(slot_id=slot_id, vehicle_id=vehicle_id)


async def assign(
    db: AsyncSession,
    caller: dict,
    role: UserRole,
    slot_id: int,
    vehicle_id: int,
    fleet_id: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    priority: Optional[int] = None
) -> SlotAssignment:
    """
    Bind a vehicle to a slot.

    A route admin's assignment is approved on creation and takes a place
    immediately. A fleet manager's request is created pending; it is
    refused up front when the slot is already full but only takes a place
    once approved.

    Raises:
        ResourceNotFoundError: Slot, vehicle or fleet missing
        BusinessValidationError: Vehicle does not belong to the fleet
        InsufficientPermissionsError: Fleet manager does not manage the fleet
        CapacityExceededError: Slot is full
        DuplicateAssignmentError: Vehicle already holds a place on the slot
    """
    slot = await get_slot(db, slot_id)

    vehicle = await db.get(FleetVehicle, vehicle_id)
    if vehicle is None:
        raise ResourceNotFoundError("Vehicle", vehicle_id)

    fleet = await db.get(Fleet, fleet_id)
    if fleet is None:
        raise ResourceNotFoundError("Fleet", fleet_id)

    if vehicle.fleet_id != fleet.id:
        raise BusinessValidationError(
            "Vehicle does not belong to the given fleet",
            details={"vehicle_id": vehicle_id, "fleet_id": fleet_id}
        )

    ownership_guard.enforce(fleet.manager_id, caller, "fleet")

    now = utcnow()
    assignment = SlotAssignment(
        slot_id=slot.id,
        vehicle_id=vehicle.id,
        fleet_id=fleet.id,
        route_id=slot.route_id,
        assigned_by=caller["user_id"],
        assigned_at=now,
        start_date=start_date or now,
        end_date=end_date,
        priority=priority or 1,
        is_active=True,
    )

    if role == UserRole.ROUTE_ADMIN:
        if not await reserve_place(db, slot.id):
            slot_id, max_capacity = slot.id, slot.max_capacity
            await db.rollback()
            raise CapacityExceededError(slot_id=slot_id, max_capacity=max_capacity)
        assignment.status = AssignmentStatus.APPROVED
        assignment.approved_at = now
        assignment.approved_by = caller["user_id"]
    else:
        if slot.occupied_count >= slot.max_capacity:
            raise CapacityExceededError(slot_id=slot.id, max_capacity=slot.max_capacity)
        assignment.status = AssignmentStatus.PENDING

    db.add(assignment)
    await _commit_assignment(db, assignment)

    logger.info(
        "Vehicle %s assigned to slot %s as %s by user %s",
        vehicle.id, slot.id, assignment.status.value, caller["user_id"]
    )
    return await load_assignment(db, assignment.id)


async def set_assignment_status(
    db: AsyncSession,
    caller: dict,
    assignment_id: int,
    action: str,
    reason: Optional[str] = None
) -> SlotAssignment:
    """
    Approve or reject an assignment.

    Approval of an assignment that does not already hold a place takes
    one, so approvals can never push a slot past max_capacity.
    Re-approving only refreshes the approval stamp. Rejecting an
    approved/active assignment gives its place back.

    Raises:
        ResourceNotFoundError: Assignment missing
        BusinessValidationError: Unknown action, or assignment was removed
        CapacityExceededError: Approval with the slot already full
        DuplicateAssignmentError: Vehicle already holds a place on the slot
    """
    assignment = await _lock_assignment(db, assignment_id)

    try:
        decision = AssignmentAction(action)
    except ValueError:
        await db.rollback()
        raise BusinessValidationError(
            'Invalid action. Use "approve" or "reject"',
            details={"action": action}
        )

    if not assignment.is_active:
        await db.rollback()
        raise BusinessValidationError(
            "Removed assignments cannot be approved or rejected",
            details={"assignment_id": assignment_id}
        )

    now = utcnow()
    slot_id = assignment.slot_id
    was_occupying = assignment.is_occupying

    if decision == AssignmentAction.APPROVE:
        if not was_occupying and not await reserve_place(db, slot_id):
            slot = await get_slot(db, slot_id)
            max_capacity = slot.max_capacity
            await db.rollback()
            logger.warning("Approval of assignment %s refused, slot %s is full", assignment_id, slot_id)
            raise CapacityExceededError(slot_id=slot_id, max_capacity=max_capacity)

        assignment.status = AssignmentStatus.APPROVED
        assignment.approved_at = now
        assignment.approved_by = caller["user_id"]
        assignment.rejected_at = None
        assignment.rejected_by = None
        assignment.rejection_reason = None
    else:
        if was_occupying:
            await release_place(db, slot_id)

        assignment.status = AssignmentStatus.REJECTED
        assignment.rejected_at = now
        assignment.rejected_by = caller["user_id"]
        assignment.rejection_reason = reason
        assignment.approved_at = None
        assignment.approved_by = None

    await _commit_assignment(db, assignment)

    logger.info(
        "Slot assignment %s %s by user %s",
        assignment_id, assignment.status.value, caller["user_id"]
    )
    return await load_assignment(db, assignment_id)


async def remove(db: AsyncSession, caller: dict, assignment_id: int) -> SlotAssignment:
    """
    Soft-remove an assignment.

    Always ends inactive; a place is given back only if the assignment
    held one, so repeated calls are harmless.

    Raises:
        ResourceNotFoundError: Assignment missing
        InsufficientPermissionsError: Fleet manager does not manage the fleet
    """
    assignment = await _lock_assignment(db, assignment_id)

    fleet = await db.get(Fleet, assignment.fleet_id)
    ownership_guard.enforce(fleet.manager_id, caller, "fleet")

    if assignment.is_occupying:
        await release_place(db, assignment.slot_id)

    assignment.status = AssignmentStatus.INACTIVE
    assignment.is_active = False
    await db.commit()

    logger.info("Slot assignment %s removed by user %s", assignment_id, caller["user_id"])
    return assignment


async def list_pending(db: AsyncSession, route_id: Optional[int] = None) -> List[SlotAssignment]:
    """Pending requests, newest first."""
    query = (
        select(SlotAssignment)
        .options(*_enriched())
        .where(
            SlotAssignment.status == AssignmentStatus.PENDING,
            SlotAssignment.is_active.is_(True),
        )
        .order_by(SlotAssignment.assigned_at.desc(), SlotAssignment.id.desc())
    )
    if route_id is not None:
        query = query.where(SlotAssignment.route_id == route_id)

    result = await db.execute(query)
    return list(result.scalars().all())


async def list_approved(db: AsyncSession, route_id: Optional[int] = None) -> List[SlotAssignment]:
    """Approved/active assignments, ordered by their slot's departure time."""
    query = (
        select(SlotAssignment)
        .join(RouteSlot, RouteSlot.id == SlotAssignment.slot_id)
        .options(*_enriched())
        .where(*_occupying())
        .order_by(RouteSlot.departure_time, RouteSlot.slot_number, SlotAssignment.id)
    )
    if route_id is not None:
        query = query.where(SlotAssignment.route_id == route_id)

    result = await db.execute(query)
    return list(result.scalars().all())


async def live_assignments_by_slot(
    db: AsyncSession,
    slot_ids: Sequence[int]
) -> Dict[int, List[SlotAssignment]]:
    """
    Approved/active assignments for several slots at once.

    Each slot's list is ordered by priority, then most recent first.
    """
    grouped: Dict[int, List[SlotAssignment]] = defaultdict(list)
    if not slot_ids:
        return grouped

    result = await db.execute(
        select(SlotAssignment)
        .options(
            selectinload(SlotAssignment.vehicle),
            selectinload(SlotAssignment.fleet),
        )
        .where(SlotAssignment.slot_id.in_(slot_ids), *_occupying())
        .order_by(SlotAssignment.priority, SlotAssignment.assigned_at.desc())
    )
    for assignment in result.scalars().all():
        grouped[assignment.slot_id].append(assignment)
    return grouped


async def list_slot_assignments(db: AsyncSession, slot_id: int) -> List[SlotAssignment]:
    """
    Approved/active assignments of one slot.

    Raises:
        ResourceNotFoundError: If the slot does not exist
    """
    await get_slot(db, slot_id)
    grouped = await live_assignments_by_slot(db, [slot_id])
    return grouped[slot_id]
