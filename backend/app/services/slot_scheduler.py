"""
Slot scheduler facade.

The single operation surface over the slot registry and the assignment
ledger. Every operation is checked once against SLOT_OPERATION_POLICY
before it is dispatched, and every state change is written to the audit
log.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import CapacityExceededError, InsufficientPermissionsError
from backend.app.core.guards import SlotOperation, authorize
from backend.app.db.session import get_db
from backend.app.models.route_enums import AssignmentStatus, DayOfWeek
from backend.app.models.route_slot import RouteSlot
from backend.app.models.slot_assignment import SlotAssignment
from backend.app.schemas.route_slot import RouteSlotCreate
from backend.app.services import assignment_ledger, slot_registry
from backend.app.services.audit import AuditAction, log_event

logger = logging.getLogger(__name__)


@dataclass
class SlotAvailability:
    """A slot, its live assignments and its remaining places."""
    slot: RouteSlot
    assignments: List[SlotAssignment]

    @property
    def available_capacity(self) -> int:
        # Not clamped: a negative value means the slot is over-allocated
        return self.slot.max_capacity - len(self.assignments)


class SlotScheduler:
    """
    Facade over route slots and slot assignments.

    Usage:
        scheduler = SlotScheduler(db)
        assignment = await scheduler.assign(current_user, slot_id=1, vehicle_id=7, fleet_id=2)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _access_denied(self, operation: SlotOperation, caller: dict, exc: InsufficientPermissionsError):
        logger.warning(
            "User %s (%s) denied %s: %s",
            caller.get("user_id"), caller.get("role"), operation.value, exc.message
        )
        await log_event(
            self.db,
            action=AuditAction.ACCESS_DENIED,
            actor=caller,
            metadata={"operation": operation.value, **exc.details}
        )

    async def _authorize(self, operation: SlotOperation, caller: dict):
        try:
            return authorize(operation, caller)
        except InsufficientPermissionsError as exc:
            await self._access_denied(operation, caller, exc)
            raise

    async def _capacity_refused(self, caller: dict, exc: CapacityExceededError, **metadata):
        logger.warning("Capacity exceeded on slot %s", exc.details.get("slot_id"))
        await log_event(
            self.db,
            action=AuditAction.CAPACITY_EXCEEDED,
            actor=caller,
            entity_type="route_slot",
            entity_id=exc.details.get("slot_id"),
            metadata=metadata
        )

    # Slot registry

    async def create_slots(
        self,
        caller: dict,
        route_id: int,
        slot_inputs: Sequence[RouteSlotCreate]
    ) -> slot_registry.SlotBatchResult:
        await self._authorize(SlotOperation.CREATE_SLOTS, caller)

        result = await slot_registry.create_slots(
            self.db, route_id, slot_inputs, created_by=caller["user_id"]
        )

        await log_event(
            self.db,
            action=AuditAction.SLOTS_CREATED,
            actor=caller,
            entity_type="route",
            entity_id=route_id,
            metadata={
                "requested": result.requested,
                "created_slot_ids": [slot.id for slot in result.created],
                "failed_slot_numbers": [number for number, _ in result.failed],
            }
        )
        return result

    async def get_route_slots_with_availability(
        self,
        caller: dict,
        route_id: int,
        day: Optional[DayOfWeek] = None
    ) -> List[SlotAvailability]:
        """Active slots of a route with live assignments and remaining places."""
        await self._authorize(SlotOperation.LIST_SLOTS, caller)

        slots = await slot_registry.list_active_slots(self.db, route_id, day=day)
        grouped = await assignment_ledger.live_assignments_by_slot(
            self.db, [slot.id for slot in slots]
        )
        return [SlotAvailability(slot=slot, assignments=grouped[slot.id]) for slot in slots]

    # Assignment ledger

    async def list_slot_assignments(self, caller: dict, slot_id: int) -> List[SlotAssignment]:
        await self._authorize(SlotOperation.LIST_SLOT_ASSIGNMENTS, caller)
        return await assignment_ledger.list_slot_assignments(self.db, slot_id)

    async def assign(
        self,
        caller: dict,
        slot_id: int,
        vehicle_id: int,
        fleet_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        priority: Optional[int] = None
    ) -> SlotAssignment:
        role = await self._authorize(SlotOperation.ASSIGN, caller)

        try:
            assignment = await assignment_ledger.assign(
                self.db,
                caller,
                role,
                slot_id=slot_id,
                vehicle_id=vehicle_id,
                fleet_id=fleet_id,
                start_date=start_date,
                end_date=end_date,
                priority=priority,
            )
        except InsufficientPermissionsError as exc:
            # Fleet ownership is only known once the fleet is loaded
            await self._access_denied(SlotOperation.ASSIGN, caller, exc)
            raise
        except CapacityExceededError as exc:
            await self._capacity_refused(caller, exc, vehicle_id=vehicle_id, fleet_id=fleet_id)
            raise

        await log_event(
            self.db,
            action=AuditAction.SLOT_ASSIGNMENT_REQUESTED,
            actor=caller,
            entity_type="slot_assignment",
            entity_id=assignment.id,
            metadata={
                "slot_id": assignment.slot_id,
                "vehicle_id": assignment.vehicle_id,
                "fleet_id": assignment.fleet_id,
                "status": assignment.status.value,
            }
        )
        return assignment

    async def set_assignment_status(
        self,
        caller: dict,
        assignment_id: int,
        action: str,
        reason: Optional[str] = None
    ) -> SlotAssignment:
        await self._authorize(SlotOperation.SET_ASSIGNMENT_STATUS, caller)

        try:
            assignment = await assignment_ledger.set_assignment_status(
                self.db, caller, assignment_id, action, reason=reason
            )
        except CapacityExceededError as exc:
            await self._capacity_refused(caller, exc, assignment_id=assignment_id)
            raise

        if assignment.status == AssignmentStatus.APPROVED:
            audit_action = AuditAction.SLOT_ASSIGNMENT_APPROVED
        else:
            audit_action = AuditAction.SLOT_ASSIGNMENT_REJECTED

        await log_event(
            self.db,
            action=audit_action,
            actor=caller,
            entity_type="slot_assignment",
            entity_id=assignment.id,
            metadata={"slot_id": assignment.slot_id, "reason": reason}
        )
        return assignment

    async def list_pending(self, caller: dict, route_id: Optional[int] = None) -> List[SlotAssignment]:
        await self._authorize(SlotOperation.LIST_PENDING, caller)
        return await assignment_ledger.list_pending(self.db, route_id=route_id)

    async def list_approved(self, caller: dict, route_id: Optional[int] = None) -> List[SlotAssignment]:
        await self._authorize(SlotOperation.LIST_APPROVED, caller)
        return await assignment_ledger.list_approved(self.db, route_id=route_id)

    async def remove(self, caller: dict, assignment_id: int) -> SlotAssignment:
        await self._authorize(SlotOperation.REMOVE, caller)

        try:
            assignment = await assignment_ledger.remove(self.db, caller, assignment_id)
        except InsufficientPermissionsError as exc:
            await self._access_denied(SlotOperation.REMOVE, caller, exc)
            raise

        await log_event(
            self.db,
            action=AuditAction.SLOT_ASSIGNMENT_REMOVED,
            actor=caller,
            entity_type="slot_assignment",
            entity_id=assignment.id,
            metadata={"slot_id": assignment.slot_id}
        )
        return assignment


async def get_scheduler(db: AsyncSession = Depends(get_db)) -> SlotScheduler:
    """FastAPI dependency providing a scheduler bound to the request session."""
    return SlotScheduler(db)
