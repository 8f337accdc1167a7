"""
Slot registry.

Owns route slot definitions: batch creation with defaults and the
active-slot listing of a route.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import BusinessValidationError, ResourceNotFoundError
from backend.app.models.route import Route
from backend.app.models.route_enums import DayOfWeek, SlotType
from backend.app.models.route_slot import RouteSlot
from backend.app.schemas.route_slot import RouteSlotCreate

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_MINUTES = 15
DEFAULT_SLOT_TYPE = SlotType.REGULAR.value
DEFAULT_MAX_CAPACITY = 1


@dataclass
class SlotBatchResult:
    """Outcome of a batch creation; earlier slots survive later failures."""
    requested: int
    created: List[RouteSlot] = field(default_factory=list)
    failed: List[Tuple[int, str]] = field(default_factory=list)


async def get_route(db: AsyncSession, route_id: int) -> Route:
    """
    Load a route or fail.

    Raises:
        ResourceNotFoundError: If the route does not exist
    """
    route = await db.get(Route, route_id)
    if route is None:
        raise ResourceNotFoundError("Route", route_id)
    return route


def build_slot(route_id: int, slot_in: RouteSlotCreate, created_by: int) -> RouteSlot:
    """Apply creation defaults to one requested slot."""
    return RouteSlot(
        route_id=route_id,
        slot_number=slot_in.slot_number,
        departure_time=slot_in.departure_time,
        arrival_time=slot_in.arrival_time,
        buffer_minutes=slot_in.buffer_minutes if slot_in.buffer_minutes is not None else DEFAULT_BUFFER_MINUTES,
        days_of_week=[day.value for day in slot_in.days_of_week],
        slot_type=slot_in.slot_type or DEFAULT_SLOT_TYPE,
        max_capacity=slot_in.max_capacity if slot_in.max_capacity is not None else DEFAULT_MAX_CAPACITY,
        occupied_count=0,
        is_active=slot_in.is_active is not False,
        created_by=created_by,
    )


async def create_slots(
    db: AsyncSession,
    route_id: int,
    slot_inputs: Sequence[RouteSlotCreate],
    created_by: int
) -> SlotBatchResult:
    """
    Create a batch of slots on a route.

    Each slot is committed on its own. A slot that violates a storage
    constraint (duplicate slot_number on the route) or any other storage
    error is reported in ``failed`` and the batch continues. When nothing
    was stored because of storage errors, the last one is raised.

    Raises:
        BusinessValidationError: If the batch is empty or nothing was created
        ResourceNotFoundError: If the route does not exist
    """
    if not slot_inputs:
        raise BusinessValidationError("Valid slots array is required")

    await get_route(db, route_id)

    result = SlotBatchResult(requested=len(slot_inputs))

    storage_error = None
    for slot_in in slot_inputs:
        try:
            slot = build_slot(route_id, slot_in, created_by)
            db.add(slot)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "Slot %s on route %s rejected by storage constraint",
                slot_in.slot_number, route_id
            )
            result.failed.append((slot_in.slot_number, "Slot number already exists on this route"))
            continue
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(
                "Slot %s on route %s could not be stored",
                slot_in.slot_number, route_id, exc_info=exc
            )
            storage_error = exc
            result.failed.append((slot_in.slot_number, "Slot could not be stored"))
            continue
        result.created.append(slot)

    # A rollback expires everything in the session, including committed slots
    for slot in result.created:
        await db.refresh(slot)

    if not result.created:
        if storage_error is not None:
            raise storage_error
        raise BusinessValidationError(
            "No route slots were created",
            details={"failed": [{"slot_number": n, "reason": r} for n, r in result.failed]}
        )

    logger.info(
        "Created %d of %d slots on route %s",
        len(result.created), result.requested, route_id
    )
    return result


async def list_active_slots(
    db: AsyncSession,
    route_id: int,
    day: Optional[DayOfWeek] = None
) -> List[RouteSlot]:
    """
    List the active slots of a route.

    Ordered by slot_number; when a day is given, only slots recurring on
    that day are returned, ordered by departure time.

    Raises:
        ResourceNotFoundError: If the route does not exist
    """
    await get_route(db, route_id)

    result = await db.execute(
        select(RouteSlot)
        .where(RouteSlot.route_id == route_id, RouteSlot.is_active.is_(True))
        .order_by(RouteSlot.slot_number)
    )
    slots = list(result.scalars().all())

    if day is not None:
        slots = [slot for slot in slots if day.value in slot.days_of_week]
        slots.sort(key=lambda slot: slot.departure_time)

    return slots
