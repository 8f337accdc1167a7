"""
Admin API Endpoints.

Read access to the audit trail for system administrators.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.schemas.admin import AuditLogListResponse, AuditLogResponse
from backend.app.core.guards import require_role
from backend.app.services.audit import get_audit_trail

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    action: Optional[str] = Query(None, description="Filter by action, e.g. SLOT_ASSIGNMENT_APPROVED"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type"),
    entity_id: Optional[int] = Query(None, description="Filter by entity ID"),
    limit: int = Query(100, ge=1, le=500, description="Maximum entries"),
    admin: dict = Depends(require_role([UserRole.SYSTEM_ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the audit trail, most recent first (system admin only).
    """
    logs = await get_audit_trail(
        db,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        limit=limit
    )

    return AuditLogListResponse(
        message=f"Retrieved {len(logs)} audit log entries",
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
