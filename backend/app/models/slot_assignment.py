"""
Slot Assignment database model.

Binds one fleet vehicle to one route slot for a date range, with an
approval lifecycle.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
from backend.app.db.session import Base, utcnow
from backend.app.models.route_enums import AssignmentStatus, OCCUPYING_STATUSES

_OCCUPYING_PREDICATE = text(
    "status IN ({}) AND is_active".format(", ".join(f"'{s.value}'" for s in OCCUPYING_STATUSES))
)


class SlotAssignment(Base):
    """
    Slot Assignment model.

    Approval and rejection metadata are mutually exclusive; the ledger
    clears one set when it stamps the other. route_id is copied from the
    slot at creation time.
    """
    __tablename__ = "slot_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    slot_id = Column(Integer, ForeignKey('route_slots.id'), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey('fleet_vehicles.id'), nullable=False, index=True)
    fleet_id = Column(Integer, ForeignKey('fleets.id'), nullable=False, index=True)
    route_id = Column(Integer, ForeignKey('routes.id'), nullable=False, index=True)
    assigned_by = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    status = Column(
        Enum(AssignmentStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        default=AssignmentStatus.PENDING,
        nullable=False,
        index=True
    )
    assigned_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Approval metadata
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(Integer, ForeignKey('users.id'), nullable=True)

    # Rejection metadata
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    # Effective period
    start_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)

    priority = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    slot = relationship("RouteSlot", lazy="raise")
    vehicle = relationship("FleetVehicle", lazy="raise")
    fleet = relationship("Fleet", lazy="raise")
    requester = relationship("User", foreign_keys=[assigned_by], lazy="raise")

    # A vehicle holds at most one approved/active assignment per slot
    __table_args__ = (
        Index(
            'ix_slot_assignments_vehicle_slot_occupying',
            'vehicle_id', 'slot_id',
            unique=True,
            postgresql_where=_OCCUPYING_PREDICATE,
            sqlite_where=_OCCUPYING_PREDICATE,
        ),
        Index('ix_slot_assignments_slot_status', 'slot_id', 'status'),
    )

    @property
    def is_occupying(self) -> bool:
        """True when the assignment consumes a place in the slot's capacity."""
        return self.is_active and self.status in OCCUPYING_STATUSES

    def __repr__(self):
        return f"<SlotAssignment(id={self.id}, slot_id={self.slot_id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
