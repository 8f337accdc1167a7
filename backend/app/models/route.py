"""
Route database model.

A route is a fixed transit line; its timetable is expressed as RouteSlots.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from backend.app.db.session import Base, utcnow


class Route(Base):
    """
    Route model.

    Owns zero or many RouteSlots. Routes are maintained by the route
    management module; the scheduler only checks that they exist.
    """
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    route_code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    origin = Column(String(200), nullable=True)
    destination = Column(String(200), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    slots = relationship("RouteSlot", back_populates="route", lazy="noload")

    def __repr__(self):
        return f"<Route(id={self.id}, code='{self.route_code}', name='{self.name}')>"
