"""
Customer routers - require a customer token.
- /api/cart/*
- /api/reservations/*
- /api/orders/*, /api/payments (manual payments)
- /api/notifications/*
"""

from .cart import router as cart_router
from .reservations import router as reservations_router
from .orders import router as orders_router, payments_router
from .notifications import router as notifications_router

__all__ = [
    "cart_router",
    "reservations_router",
    "orders_router",
    "payments_router",
    "notifications_router",
]
