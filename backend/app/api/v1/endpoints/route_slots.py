"""
Route Slot API Endpoints.

Slot definition on a route and the slot availability view.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from backend.app.core.dependencies import get_current_user
from backend.app.models.route_enums import DayOfWeek
from backend.app.schemas.route_slot import (
    RouteSlotBatchCreate, RouteSlotBatchResponse, RouteSlotResponse, FailedSlot,
    RouteSlotAvailability, RouteSlotAvailabilityListResponse
)
from backend.app.schemas.slot_assignment import SlotAssignmentSummary, SlotAssignmentListSummary
from backend.app.services.slot_scheduler import SlotScheduler, SlotAvailability, get_scheduler

router = APIRouter(prefix="/routes", tags=["Route Slots"])
slot_router = APIRouter(prefix="/slots", tags=["Route Slots"])


def _availability_response(availability: SlotAvailability) -> RouteSlotAvailability:
    slot_data = RouteSlotResponse.model_validate(availability.slot).model_dump()
    return RouteSlotAvailability(
        **slot_data,
        assignments=[SlotAssignmentSummary.model_validate(a) for a in availability.assignments],
        available_capacity=availability.available_capacity
    )


@router.post(
    "/{route_id}/slots",
    response_model=RouteSlotBatchResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_route_slots(
    route_id: int,
    payload: RouteSlotBatchCreate,
    current_user: dict = Depends(get_current_user),
    scheduler: SlotScheduler = Depends(get_scheduler)
):
    """
    Create a batch of slots on a route (system admin or route admin).

    Slots are created one by one; a slot whose number is already taken on
    the route is reported under `failed` and does not undo the others.
    """
    result = await scheduler.create_slots(current_user, route_id, payload.slots)

    return RouteSlotBatchResponse(
        message=f"Created {len(result.created)} of {result.requested} route slots",
        slots=[RouteSlotResponse.model_validate(slot) for slot in result.created],
        failed=[FailedSlot(slot_number=number, reason=reason) for number, reason in result.failed]
    )


@router.get("/{route_id}/slots", response_model=RouteSlotAvailabilityListResponse)
async def list_route_slots(
    route_id: int,
    day: Optional[DayOfWeek] = Query(None, description="Only slots recurring on this day"),
    current_user: dict = Depends(get_current_user),
    scheduler: SlotScheduler = Depends(get_scheduler)
):
    """
    List the active slots of a route with their live assignments.

    available_capacity is max_capacity minus the approved/active
    assignments and is not clamped at zero.
    """
    slots = await scheduler.get_route_slots_with_availability(current_user, route_id, day=day)

    return RouteSlotAvailabilityListResponse(
        message=f"Retrieved {len(slots)} route slots",
        route_id=route_id,
        slots=[_availability_response(availability) for availability in slots]
    )


@slot_router.get("/{slot_id}/assignments", response_model=SlotAssignmentListSummary)
async def list_slot_assignments(
    slot_id: int,
    current_user: dict = Depends(get_current_user),
    scheduler: SlotScheduler = Depends(get_scheduler)
):
    """Approved/active assignments of a slot, highest priority first."""
    assignments = await scheduler.list_slot_assignments(current_user, slot_id)

    return SlotAssignmentListSummary(
        message=f"Retrieved {len(assignments)} slot assignments",
        slot_id=slot_id,
        total=len(assignments),
        assignments=[SlotAssignmentSummary.model_validate(a) for a in assignments]
    )
