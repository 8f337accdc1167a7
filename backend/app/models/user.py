"""
User database model.

Users are provisioned by the identity service; the scheduler reads them
to resolve the caller and to show who requested an assignment.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from backend.app.db.session import Base, utcnow
from backend.app.models.enums import UserRole


class User(Base):
    """User model for the authenticated caller context."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    role = Column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        default=UserRole.CLIENT,
        nullable=False
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}')>"
