"""
Security guards for role-based and ownership-based access control.

The slot scheduler's role rules live in one declarative table,
SLOT_OPERATION_POLICY, consulted once per operation by the facade.
"""

import enum
from typing import Dict, FrozenSet, List, Optional
from fastapi import Depends, HTTPException, status
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.models.enums import UserRole


class SlotOperation(str, enum.Enum):
    """Operations exposed by the slot scheduler."""
    CREATE_SLOTS = "create_slots"
    LIST_SLOTS = "list_slots"
    LIST_SLOT_ASSIGNMENTS = "list_slot_assignments"
    ASSIGN = "assign"
    SET_ASSIGNMENT_STATUS = "set_assignment_status"
    LIST_PENDING = "list_pending"
    LIST_APPROVED = "list_approved"
    REMOVE = "remove"


ANY_ROLE: FrozenSet[UserRole] = frozenset(UserRole)

SLOT_OPERATION_POLICY: Dict[SlotOperation, FrozenSet[UserRole]] = {
    SlotOperation.CREATE_SLOTS: frozenset({UserRole.SYSTEM_ADMIN, UserRole.ROUTE_ADMIN}),
    SlotOperation.LIST_SLOTS: ANY_ROLE,
    SlotOperation.LIST_SLOT_ASSIGNMENTS: ANY_ROLE,
    SlotOperation.ASSIGN: frozenset({UserRole.FLEET_MANAGER, UserRole.ROUTE_ADMIN}),
    SlotOperation.SET_ASSIGNMENT_STATUS: frozenset({UserRole.ROUTE_ADMIN}),
    SlotOperation.LIST_PENDING: frozenset({UserRole.ROUTE_ADMIN}),
    SlotOperation.LIST_APPROVED: ANY_ROLE,
    SlotOperation.REMOVE: frozenset({UserRole.ROUTE_ADMIN, UserRole.FLEET_MANAGER}),
}


def caller_role(current_user: dict) -> Optional[UserRole]:
    """Resolve the caller's role, or None when the claim is missing or unknown."""
    try:
        return UserRole(current_user.get("role"))
    except ValueError:
        return None


def authorize(operation: SlotOperation, current_user: dict) -> UserRole:
    """
    Check the caller against SLOT_OPERATION_POLICY.

    Args:
        operation: Scheduler operation being invoked
        current_user: Authenticated caller context

    Returns:
        The caller's role

    Raises:
        InsufficientPermissionsError: If the role is not allowed for the operation
    """
    allowed = SLOT_OPERATION_POLICY[operation]
    role = caller_role(current_user)

    if role is None or role not in allowed:
        raise InsufficientPermissionsError(
            message=f"Access denied. Required role: {', '.join(sorted(r.value for r in allowed))}",
            details={"operation": operation.value, "role": current_user.get("role")}
        )

    return role


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control outside the scheduler.

    Usage:
        @router.get("/admin/audit-logs")
        async def list_logs(current_user: dict = Depends(require_role([UserRole.SYSTEM_ADMIN]))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role = caller_role(current_user)

        if user_role is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


class OwnershipGuard:
    """
    Ownership check for fleet-scoped resources.

    Fleet managers act only on fleets they manage; route admins act on
    any fleet.
    """

    def enforce(
        self,
        resource_owner_id: Optional[int],
        current_user: dict,
        resource_name: str = "resource"
    ):
        """
        Raise 403 unless the caller may act on the resource.

        Raises:
            InsufficientPermissionsError if the ownership check fails
        """
        if caller_role(current_user) != UserRole.FLEET_MANAGER:
            return

        if resource_owner_id != current_user.get("user_id"):
            raise InsufficientPermissionsError(
                message=f"Access denied. You do not manage this {resource_name}.",
                details={"resource": resource_name}
            )
