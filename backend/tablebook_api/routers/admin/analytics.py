"""
Platform analytics for administrators.

Periods: week, month, year, all. Revenue counts completed orders only.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_admin
from tablebook_shared.utils.schemas import (
    AnalyticsOverview,
    PeakHour,
    ReservationOutput,
    RevenueByDay,
    TopRestaurant,
)
from tablebook_api.services.domain import StatsService


router = APIRouter(prefix="/analytics", tags=["admin-analytics"])

Period = Literal["week", "month", "year", "all"]


@router.get("/overview", response_model=AnalyticsOverview)
def overview(
    period: Period = "month",
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> AnalyticsOverview:
    return StatsService(db).overview(period)


@router.get("/top-restaurants", response_model=list[TopRestaurant])
def top_restaurants(
    period: Period = "month",
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> list[TopRestaurant]:
    return StatsService(db).top_restaurants(period, limit)


@router.get("/peak-hours", response_model=list[PeakHour])
def peak_hours(
    period: Period = "month",
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> list[PeakHour]:
    return StatsService(db).peak_hours(period)


@router.get("/recent-reservations", response_model=list[ReservationOutput])
def recent_reservations(
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> list[ReservationOutput]:
    return [ReservationOutput.model_validate(r) for r in StatsService(db).recent_reservations(limit)]


@router.get("/revenue-by-day", response_model=list[RevenueByDay])
def revenue_by_day(
    days: int = Query(default=30, ge=1, le=366),
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> list[RevenueByDay]:
    return StatsService(db).revenue_by_day(days)
