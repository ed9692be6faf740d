"""
Domain Services - application layer.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Model (entity)

Usage:
    from tablebook_api.services.domain import ReservationService

    # In router
    service = ReservationService(db)
    reservation = service.create(customer_id, body)
"""

from .availability_service import AvailabilityService, windows_overlap
from .reservation_service import ReservationService
from .order_service import OrderService
from .cart_service import CartService
from .venue_service import VenueService
from .stats_service import StatsService
from .account_service import AccountService
from .admin_service import RestaurantAdminService, StaffAdminService

__all__ = [
    "AvailabilityService",
    "windows_overlap",
    "ReservationService",
    "OrderService",
    "CartService",
    "VenueService",
    "StatsService",
    "AccountService",
    "RestaurantAdminService",
    "StaffAdminService",
]
