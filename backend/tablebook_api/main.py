"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from tablebook_shared.config.settings import settings
from tablebook_shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from tablebook_api.core import configure_cors, lifespan, register_middlewares
from tablebook_api.routers.admin import router as admin_router
from tablebook_api.routers.auth import router as auth_router
from tablebook_api.routers.customer import (
    cart_router,
    notifications_router,
    orders_router,
    payments_router,
    reservations_router,
)
from tablebook_api.routers.payments import hitpay_router
from tablebook_api.routers.public import health_router, restaurants_router
from tablebook_api.routers.staff import router as staff_router


app = FastAPI(
    title="TableBook REST API",
    description="Restaurant reservations, orders and payments",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_middlewares(app)
# Added last: CORS is the outermost middleware
configure_cors(app)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(restaurants_router)
app.include_router(cart_router)
app.include_router(reservations_router)
app.include_router(orders_router)
app.include_router(payments_router)
app.include_router(hitpay_router)
app.include_router(notifications_router)
app.include_router(staff_router)
app.include_router(admin_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tablebook_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.environment == "development",
    )
