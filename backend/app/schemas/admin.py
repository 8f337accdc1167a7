"""
Admin Pydantic schemas.

Schemas for the audit trail reader.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List, Dict, Any


class AuditLogResponse(BaseModel):
    """Schema for a single audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    actor_role: Optional[str]
    action: str
    entity_type: Optional[str]
    entity_id: Optional[int]
    meta_data: Optional[Dict[str, Any]]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    message: str
    logs: List[AuditLogResponse]
    total: int
