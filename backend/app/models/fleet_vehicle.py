"""
Fleet Vehicle database model.

Vehicles belong to a fleet and are what gets bound to route slots.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum
from backend.app.db.session import Base, utcnow
from backend.app.models.route_enums import VehicleStatus


class FleetVehicle(Base):
    """
    Fleet Vehicle model.

    Only number, type and status are surfaced by the scheduler when it
    enriches assignments.
    """
    __tablename__ = "fleet_vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - Vehicle belongs to a Fleet
    fleet_id = Column(Integer, ForeignKey('fleets.id'), nullable=False, index=True)

    vehicle_number = Column(String(100), unique=True, nullable=False, index=True)
    vehicle_type = Column(String(100), nullable=True)  # e.g., "Bus", "Minibus"

    status = Column(
        Enum(VehicleStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        default=VehicleStatus.ACTIVE,
        nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<FleetVehicle(id={self.id}, number='{self.vehicle_number}', fleet_id={self.fleet_id})>"
