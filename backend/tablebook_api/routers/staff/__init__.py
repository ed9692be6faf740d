"""
Staff API router - combines all staff sub-routers.

- dashboard: login, stats and notification inbox
- reservations: listing, status changes, cancellation decisions
- orders: listing and status changes
- tables: table CRUD
- menu: category and item CRUD

All routes are prefixed with /api/staff and scoped to the restaurant in
the staff token.
"""

from fastapi import APIRouter

from .dashboard import router as dashboard_router
from .reservations import router as reservations_router
from .orders import router as orders_router
from .tables import router as tables_router
from .menu import router as menu_router


router = APIRouter(prefix="/api/staff")

router.include_router(dashboard_router)
router.include_router(reservations_router)
router.include_router(orders_router)
router.include_router(tables_router)
router.include_router(menu_router)

__all__ = ["router"]
