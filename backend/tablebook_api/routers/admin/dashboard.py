"""
Admin login, platform stats and cross-restaurant listings.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_admin
from tablebook_shared.security.rate_limit import limiter
from tablebook_shared.utils.schemas import (
    LoginRequest,
    LoginResponse,
    OrderOutput,
    OrderStatusLiteral,
    PlatformStats,
    ReservationOutput,
    ReservationStatusLiteral,
)
from tablebook_api.services.domain import (
    AccountService,
    OrderService,
    ReservationService,
    StatsService,
)


router = APIRouter(tags=["admin"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def admin_login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    return AccountService(db).login_admin(body.email, body.password)


@router.get("/stats", response_model=PlatformStats)
def platform_stats(db: Session = Depends(get_db), ctx: dict = Depends(require_admin)) -> PlatformStats:
    return StatsService(db).platform_stats()


@router.get("/orders", response_model=list[OrderOutput])
def list_orders(
    status: OrderStatusLiteral | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> list[OrderOutput]:
    return [OrderOutput.model_validate(o) for o in OrderService(db).list_all(status, limit)]


@router.get("/reservations", response_model=list[ReservationOutput])
def list_reservations(
    status: ReservationStatusLiteral | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> list[ReservationOutput]:
    return [ReservationOutput.model_validate(r) for r in ReservationService(db).list_all(status, limit)]
