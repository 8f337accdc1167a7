"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import auth, admin, route_slots, slot_assignments

router = APIRouter()

# Include authentication endpoints
router.include_router(auth.router)

# Include admin endpoints
router.include_router(admin.router)

# Slot registry
router.include_router(route_slots.router)
router.include_router(route_slots.slot_router)

# Assignment ledger
router.include_router(slot_assignments.router)
