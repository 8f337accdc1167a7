"""
Route Slot database model.

A slot is a recurring departure window on a route with a bounded number
of vehicle places.
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Time, ForeignKey, JSON,
    CheckConstraint, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from backend.app.db.session import Base, utcnow
from backend.app.models.route_enums import SlotType


class RouteSlot(Base):
    """
    Route Slot model.

    departure_time/arrival_time are times of day; recurrence comes from
    days_of_week. occupied_count mirrors the number of approved/active
    assignments and is only changed by conditional UPDATEs in the
    assignment ledger, which is what keeps it within max_capacity.
    """
    __tablename__ = "route_slots"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    route_id = Column(Integer, ForeignKey('routes.id'), nullable=False, index=True)
    slot_number = Column(Integer, nullable=False)

    # Service window
    departure_time = Column(Time, nullable=False)
    arrival_time = Column(Time, nullable=False)
    buffer_minutes = Column(Integer, default=15, nullable=False)
    days_of_week = Column(JSON, nullable=False)

    slot_type = Column(String(50), default=SlotType.REGULAR.value, nullable=False)

    # Capacity
    max_capacity = Column(Integer, default=1, nullable=False)
    occupied_count = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey('users.id'), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    route = relationship("Route", back_populates="slots", lazy="noload")

    __table_args__ = (
        UniqueConstraint('route_id', 'slot_number', name='uq_route_slots_route_slot_number'),
        CheckConstraint('max_capacity >= 1', name='ck_route_slots_max_capacity'),
        CheckConstraint(
            'occupied_count >= 0 AND occupied_count <= max_capacity',
            name='ck_route_slots_occupied_count'
        ),
        Index('ix_route_slots_route_active', 'route_id', 'is_active'),
    )

    def __repr__(self):
        return f"<RouteSlot(id={self.id}, route_id={self.route_id}, slot_number={self.slot_number})>"
