"""
Slot Assignment API Endpoints.

Vehicle-to-slot assignments and the route admin approval workflow.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from backend.app.core.dependencies import get_current_user
from backend.app.models.route_enums import AssignmentStatus
from backend.app.schemas.slot_assignment import (
    SlotAssignmentCreate, SlotAssignmentStatusUpdate, SlotAssignmentResponse,
    SlotAssignmentEnvelope, SlotAssignmentListResponse, SlotAssignmentRemovedResponse
)
from backend.app.services.slot_scheduler import SlotScheduler, get_scheduler

router = APIRouter(prefix="/slot-assignments", tags=["Slot Assignments"])


def _list_response(message: str, assignments) -> SlotAssignmentListResponse:
    return SlotAssignmentListResponse(
        message=message,
        total=len(assignments),
        assignments=[SlotAssignmentResponse.model_validate(a) for a in assignments]
    )


@router.post("", response_model=SlotAssignmentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_slot_assignment(
    payload: SlotAssignmentCreate,
    current_user: dict = Depends(get_current_user),
    scheduler: SlotScheduler = Depends(get_scheduler)
):
    """
    Assign a vehicle to a slot.

    - Route admin: the assignment is approved immediately and takes a place.
    - Fleet manager: a pending request is created for a fleet they manage.
    """
    assignment = await scheduler.assign(
        current_user,
        slot_id=payload.slot_id,
        vehicle_id=payload.vehicle_id,
        fleet_id=payload.fleet_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        priority=payload.priority
    )

    if assignment.status == AssignmentStatus.APPROVED:
        message = "Vehicle assigned to slot"
    else:
        message = "Slot assignment request submitted for approval"

    return SlotAssignmentEnvelope(
        message=message,
        assignment=SlotAssignmentResponse.model_validate(assignment)
    )


@router.get("/pending", response_model=SlotAssignmentListResponse)
async def list_pending_assignments(
    route_id: Optional[int] = Query(None, description="Only requests on this route"),
    current_user: dict = Depends(get_current_user),
    scheduler: SlotScheduler = Depends(get_scheduler)
):
    """Pending requests awaiting a decision, newest first (route admin only)."""
    assignments = await scheduler.list_pending(current_user, route_id=route_id)
    return _list_response(f"Retrieved {len(assignments)} pending slot assignments", assignments)


@router.get("/approved", response_model=SlotAssignmentListResponse)
async def list_approved_assignments(
    route_id: Optional[int] = Query(None, description="Only assignments on this route"),
    current_user: dict = Depends(get_current_user),
    scheduler: SlotScheduler = Depends(get_scheduler)
):
    """Approved/active assignments ordered by departure time."""
    assignments = await scheduler.list_approved(current_user, route_id=route_id)
    return _list_response(f"Retrieved {len(assignments)} approved slot assignments", assignments)


@router.patch("/{assignment_id}/status", response_model=SlotAssignmentEnvelope)
async def update_slot_assignment_status(
    assignment_id: int,
    payload: SlotAssignmentStatusUpdate,
    current_user: dict = Depends(get_current_user),
    scheduler: SlotScheduler = Depends(get_scheduler)
):
    """
    Approve or reject an assignment (route admin only).

    Approving takes a place in the slot if the assignment does not hold
    one yet; rejecting gives a held place back.
    """
    assignment = await scheduler.set_assignment_status(
        current_user, assignment_id, payload.action, reason=payload.reason
    )

    return SlotAssignmentEnvelope(
        message=f"Slot assignment {assignment.status.value}",
        assignment=SlotAssignmentResponse.model_validate(assignment)
    )


@router.delete("/{assignment_id}", response_model=SlotAssignmentRemovedResponse)
async def remove_slot_assignment(
    assignment_id: int,
    current_user: dict = Depends(get_current_user),
    scheduler: SlotScheduler = Depends(get_scheduler)
):
    """Soft-remove an assignment. Safe to repeat."""
    assignment = await scheduler.remove(current_user, assignment_id)

    return SlotAssignmentRemovedResponse(
        message="Slot assignment removed",
        id=assignment.id,
        status=assignment.status,
        is_active=assignment.is_active
    )
