"""
User roles enumeration.

Defines the role types carried in the authenticated caller context.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        SYSTEM_ADMIN: Platform-wide administration
        ROUTE_ADMIN: Owns route slots and approves/rejects assignment requests
        FLEET_MANAGER: Operates vehicles and requests slot assignments
        CUSTOMER_SERVICE: Support staff, read-only for scheduling
        CLIENT: Passenger account (default role)
    """
    SYSTEM_ADMIN = "system_admin"
    ROUTE_ADMIN = "route_admin"
    FLEET_MANAGER = "fleet_manager"
    CUSTOMER_SERVICE = "customer_service"
    CLIENT = "client"
