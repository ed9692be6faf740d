"""
Admin API router - combines all admin sub-routers.

- dashboard: login, platform stats, order and reservation listings
- restaurants: restaurant CRUD
- staff: staff account CRUD
- analytics: overview, rankings, peak hours and revenue

All routes are prefixed with /api/admin
"""

from fastapi import APIRouter

from .dashboard import router as dashboard_router
from .restaurants import router as restaurants_router
from .staff import router as staff_router
from .analytics import router as analytics_router


router = APIRouter(prefix="/api/admin")

router.include_router(dashboard_router)
router.include_router(restaurants_router)
router.include_router(staff_router)
router.include_router(analytics_router)

__all__ = ["router"]
