"""
Route Slot Pydantic schemas.

Defines request and response models for slot definition and the
availability view.
"""

from pydantic import BaseModel, Field
from datetime import datetime, time
from typing import Optional, List
from backend.app.models.route_enums import DayOfWeek
from backend.app.schemas.slot_assignment import SlotAssignmentSummary


class RouteSlotCreate(BaseModel):
    """
    One slot in a batch creation request.

    Optional fields left out are defaulted by the slot registry.
    """
    slot_number: int = Field(..., ge=1, description="Sequence position within the route")
    departure_time: time = Field(..., description="Departure time of day (HH:MM)")
    arrival_time: time = Field(..., description="Arrival time of day (HH:MM)")
    buffer_minutes: Optional[int] = Field(None, ge=0, le=60, description="Minutes reserved around the window")
    days_of_week: List[DayOfWeek] = Field(..., min_length=1, description="Days the slot recurs on")
    slot_type: Optional[str] = Field(None, min_length=1, max_length=50, description="regular, express, special, ...")
    max_capacity: Optional[int] = Field(None, ge=1, le=10, description="Vehicles the slot can hold")
    is_active: Optional[bool] = Field(None, description="Defaults to true")


class RouteSlotBatchCreate(BaseModel):
    """Schema for creating a batch of slots on a route."""
    slots: List[RouteSlotCreate] = Field(default_factory=list)


class RouteSlotResponse(BaseModel):
    """Schema for route slot response."""
    id: int
    route_id: int
    slot_number: int
    departure_time: time
    arrival_time: time
    buffer_minutes: int
    days_of_week: List[str]
    slot_type: str
    max_capacity: int
    is_active: bool
    created_by: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FailedSlot(BaseModel):
    """A slot from a batch that could not be created."""
    slot_number: int
    reason: str


class RouteSlotBatchResponse(BaseModel):
    """Result of a batch slot creation (partial success is possible)."""
    message: str
    slots: List[RouteSlotResponse]
    failed: List[FailedSlot]


class RouteSlotAvailability(RouteSlotResponse):
    """A slot with its live assignments and remaining places."""
    assignments: List[SlotAssignmentSummary]
    available_capacity: int


class RouteSlotAvailabilityListResponse(BaseModel):
    """Schema for the slot availability listing of a route."""
    message: str
    route_id: int
    slots: List[RouteSlotAvailability]
