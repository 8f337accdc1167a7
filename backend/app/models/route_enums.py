"""
Route slot and assignment enumerations.
"""

import enum


class SlotType(str, enum.Enum):
    """
    Known slot types.

    The column is a plain string so new types can be introduced without
    a migration; these are the values the service knows about.
    """
    REGULAR = "regular"
    EXPRESS = "express"
    SPECIAL = "special"
    RUSH_HOUR = "rush_hour"
    PEAK = "peak"
    NIGHT = "night"


class DayOfWeek(str, enum.Enum):
    """Days a slot can recur on."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class AssignmentStatus(str, enum.Enum):
    """
    Slot assignment status.

    PENDING: Fleet manager requested the slot
    APPROVED: Route admin approved (or created) the assignment
    REJECTED: Route admin rejected the request
    ACTIVE: Assignment is in service
    INACTIVE: Assignment was removed; never reactivated
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    INACTIVE = "inactive"


# Statuses that consume a place in the slot's capacity
OCCUPYING_STATUSES = (AssignmentStatus.APPROVED, AssignmentStatus.ACTIVE)


class AssignmentAction(str, enum.Enum):
    """Actions a route admin can take on an assignment."""
    APPROVE = "approve"
    REJECT = "reject"


class VehicleStatus(str, enum.Enum):
    """Operational status of a fleet vehicle."""
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
