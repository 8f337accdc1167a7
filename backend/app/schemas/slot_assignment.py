"""
Slot Assignment Pydantic schemas.

Request and response models for the assignment approval workflow.
"""

from pydantic import BaseModel, Field
from datetime import datetime, time
from typing import Optional, List
from backend.app.models.route_enums import AssignmentStatus, VehicleStatus


class SlotAssignmentCreate(BaseModel):
    """Schema for requesting (or directly creating) a slot assignment."""
    slot_id: int = Field(..., description="Route slot ID")
    vehicle_id: int = Field(..., description="Fleet vehicle ID")
    fleet_id: int = Field(..., description="Operating fleet ID")
    start_date: Optional[datetime] = Field(None, description="Defaults to now")
    end_date: Optional[datetime] = Field(None, description="Open-ended when omitted")
    priority: Optional[int] = Field(None, ge=1, le=10, description="1 is highest, defaults to 1")


class SlotAssignmentStatusUpdate(BaseModel):
    """
    Schema for a route admin decision.

    action is a plain string so an unknown action reaches the ledger and
    is refused there with a business validation error.
    """
    action: str = Field(..., description="approve or reject")
    reason: Optional[str] = Field(None, max_length=500, description="Reason for rejection")


class VehicleSummary(BaseModel):
    id: int
    vehicle_number: str
    vehicle_type: Optional[str]
    status: VehicleStatus

    class Config:
        from_attributes = True


class FleetSummary(BaseModel):
    id: int
    company_name: str
    phone: Optional[str]

    class Config:
        from_attributes = True


class RequesterSummary(BaseModel):
    id: int
    username: str
    full_name: Optional[str]
    email: str

    class Config:
        from_attributes = True


class SlotSummary(BaseModel):
    id: int
    route_id: int
    slot_number: int
    departure_time: time
    arrival_time: time
    slot_type: str
    max_capacity: int

    class Config:
        from_attributes = True


class SlotAssignmentSummary(BaseModel):
    """Assignment as shown inside a slot (vehicle and fleet only)."""
    id: int
    vehicle_id: int
    fleet_id: int
    status: AssignmentStatus
    priority: int
    assigned_at: datetime
    start_date: datetime
    end_date: Optional[datetime]
    vehicle: VehicleSummary
    fleet: FleetSummary

    class Config:
        from_attributes = True


class SlotAssignmentResponse(BaseModel):
    """Schema for a fully enriched slot assignment."""
    id: int
    slot_id: int
    vehicle_id: int
    fleet_id: int
    route_id: int
    assigned_by: int
    status: AssignmentStatus
    assigned_at: datetime
    approved_at: Optional[datetime]
    approved_by: Optional[int]
    rejected_at: Optional[datetime]
    rejected_by: Optional[int]
    rejection_reason: Optional[str]
    start_date: datetime
    end_date: Optional[datetime]
    priority: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    slot: SlotSummary
    vehicle: VehicleSummary
    fleet: FleetSummary
    requester: RequesterSummary

    class Config:
        from_attributes = True


class SlotAssignmentEnvelope(BaseModel):
    """Single assignment plus a human-readable outcome."""
    message: str
    assignment: SlotAssignmentResponse


class SlotAssignmentListResponse(BaseModel):
    message: str
    total: int
    assignments: List[SlotAssignmentResponse]


class SlotAssignmentRemovedResponse(BaseModel):
    message: str
    id: int
    status: AssignmentStatus
    is_active: bool


class SlotAssignmentListSummary(BaseModel):
    """Live assignments of one slot."""
    message: str
    slot_id: int
    total: int
    assignments: List[SlotAssignmentSummary]
