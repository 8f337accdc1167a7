"""
Audit Log Database Model.

Tracks scheduling decisions and access events for operators.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from backend.app.db.session import Base, utcnow


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - SLOTS_CREATED
    - SLOT_ASSIGNMENT_REQUESTED / _APPROVED / _REJECTED / _REMOVED
    - CAPACITY_EXCEEDED
    - ACCESS_DENIED
    - TOKEN_REVOKED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)
    actor_role = Column(String(50), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # What the action was performed on
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(Integer, nullable=True, index=True)

    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, entity={self.entity_type}:{self.entity_id})>"
