"""
Public routers - No authentication required.
- /api/restaurants/* - Catalog, floor plan and menu
- /api/health - Health check
"""

from .restaurants import router as restaurants_router
from .health import router as health_router

__all__ = ["restaurants_router", "health_router"]
