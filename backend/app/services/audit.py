"""
Audit logging service for scheduling decisions and access events.

Provides centralized audit logging for operators.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    TOKEN_REVOKED = "TOKEN_REVOKED"
    ACCESS_DENIED = "ACCESS_DENIED"

    # Slot registry
    SLOTS_CREATED = "SLOTS_CREATED"

    # Assignment ledger
    SLOT_ASSIGNMENT_REQUESTED = "SLOT_ASSIGNMENT_REQUESTED"
    SLOT_ASSIGNMENT_APPROVED = "SLOT_ASSIGNMENT_APPROVED"
    SLOT_ASSIGNMENT_REJECTED = "SLOT_ASSIGNMENT_REJECTED"
    SLOT_ASSIGNMENT_REMOVED = "SLOT_ASSIGNMENT_REMOVED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor: Optional[dict] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Write an event to the audit log.

    Runs in its own commit, after the business change has been committed
    or rolled back, so a refused operation still leaves a trace.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor: Authenticated caller context, None for system actions
        entity_type: Kind of entity acted upon ("route_slot", "slot_assignment", ...)
        entity_id: ID of the entity acted upon
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    actor = actor or {}
    audit_log = AuditLog(
        actor_id=actor.get("user_id"),
        actor_username=actor.get("sub"),
        actor_role=actor.get("role"),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_data=metadata
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if action:
        query = query.where(AuditLog.action == action)

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)

    if entity_id is not None:
        query = query.where(AuditLog.entity_id == entity_id)

    query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
