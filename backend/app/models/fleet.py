"""
Fleet database model.

A fleet is an operating company whose vehicles run on routes.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from backend.app.db.session import Base, utcnow


class Fleet(Base):
    """
    Fleet model.

    Managed by exactly one fleet manager user, who may request slot
    assignments for the fleet's vehicles.
    """
    __tablename__ = "fleets"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    company_name = Column(String(100), nullable=False)
    registration_number = Column(String(100), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)

    # Ownership - Fleet is run by a fleet manager
    manager_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Fleet(id={self.id}, name='{self.company_name}', manager_id={self.manager_id})>"
