"""
Statistics Domain Service.

Dashboard counters for staff (one restaurant) and admins (platform wide).
Revenue only counts completed orders.
"""

from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tablebook_shared.config.constants import OrderStatus, ReservationStatus
from tablebook_shared.utils.schemas import (
    AnalyticsOverview,
    PeakHour,
    PlatformStats,
    RevenueByDay,
    TopRestaurant,
    VenueStats,
)
from tablebook_api.models import Customer, Order, Reservation, Restaurant, Staff

# Analytics look-back windows
PERIOD_DAYS: dict[str, int | None] = {
    "week": 7,
    "month": 30,
    "year": 365,
    "all": None,
}

ACTIVE_ORDER_STATUSES = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.SERVED,
    OrderStatus.READY,
]


def period_start(period: str, today: date | None = None) -> date | None:
    """First day covered by an analytics period, None for all time."""
    days = PERIOD_DAYS.get(period, PERIOD_DAYS["month"])
    if days is None:
        return None
    return (today or date.today()) - timedelta(days=days)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def _money(value) -> float:
    return float(Decimal(value or 0))


class StatsService:
    """Read-only aggregates."""

    def __init__(self, db: Session):
        self._db = db

    def _count(self, model, *conditions) -> int:
        return self._db.scalar(select(func.count(model.id)).where(*conditions)) or 0

    def _revenue(self, *conditions) -> float:
        return _money(self._db.scalar(
            select(func.coalesce(func.sum(Order.total_amount), 0)).where(
                Order.status == OrderStatus.COMPLETED, *conditions
            )
        ))

    # =========================================================================
    # Staff dashboard
    # =========================================================================

    def venue_stats(self, venue_id: int, today: date | None = None) -> VenueStats:
        today = today or date.today()
        day_start, day_end = _day_bounds(today)
        in_venue_res = Reservation.restaurant_id == venue_id
        in_venue_order = Order.restaurant_id == venue_id

        return VenueStats(
            reservations_today=self._count(
                Reservation, in_venue_res, Reservation.reservation_date == today
            ),
            pending_reservations=self._count(
                Reservation, in_venue_res, Reservation.status == ReservationStatus.PENDING
            ),
            cancellation_requests=self._count(
                Reservation,
                in_venue_res,
                Reservation.status == ReservationStatus.CANCELLATION_REQUESTED,
            ),
            orders_today=self._count(
                Order, in_venue_order, Order.created_at >= day_start, Order.created_at < day_end
            ),
            active_orders=self._count(Order, in_venue_order, Order.status.in_(ACTIVE_ORDER_STATUSES)),
            revenue_today=self._revenue(
                in_venue_order, Order.created_at >= day_start, Order.created_at < day_end
            ),
            revenue_total=self._revenue(in_venue_order),
        )

    # =========================================================================
    # Admin dashboard and analytics
    # =========================================================================

    def platform_stats(self) -> PlatformStats:
        return PlatformStats(
            total_restaurants=self._count(Restaurant),
            total_customers=self._count(Customer),
            total_staff=self._count(Staff),
            total_reservations=self._count(Reservation),
            total_orders=self._count(Order),
            total_revenue=self._revenue(),
            pending_reservations=self._count(
                Reservation, Reservation.status == ReservationStatus.PENDING
            ),
        )

    def _grouped(self, column, *conditions) -> dict[str, int]:
        rows = self._db.execute(
            select(column, func.count()).where(*conditions).group_by(column)
        ).all()
        return {key: count for key, count in rows}

    def overview(self, period: str = "month", today: date | None = None) -> AnalyticsOverview:
        since = period_start(period, today)
        res_filter = [Reservation.reservation_date >= since] if since else []
        order_filter = (
            [Order.created_at >= datetime.combine(since, time.min, tzinfo=timezone.utc)]
            if since else []
        )

        avg_party = self._db.scalar(
            select(func.avg(Reservation.party_size)).where(*res_filter)
        )
        avg_order = self._db.scalar(select(func.avg(Order.total_amount)).where(*order_filter))

        return AnalyticsOverview(
            reservations_by_status=self._grouped(Reservation.status, *res_filter),
            orders_by_status=self._grouped(Order.status, *order_filter),
            payments_by_status=self._grouped(Order.payment_status, *order_filter),
            average_party_size=round(float(avg_party or 0), 2),
            average_order_value=round(_money(avg_order), 2),
        )

    def top_restaurants(
        self,
        period: str = "month",
        limit: int = 10,
        today: date | None = None,
    ) -> list[TopRestaurant]:
        """Restaurants ranked by order count, then revenue."""
        since = period_start(period, today)

        res_query = select(Reservation.restaurant_id, func.count(Reservation.id)).group_by(
            Reservation.restaurant_id
        )
        if since:
            res_query = res_query.where(Reservation.reservation_date >= since)
        reservation_counts = dict(self._db.execute(res_query).all())

        order_query = select(
            Order.restaurant_id,
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0),
        ).group_by(Order.restaurant_id)
        if since:
            order_query = order_query.where(
                Order.created_at >= datetime.combine(since, time.min, tzinfo=timezone.utc)
            )
        order_totals = {
            restaurant_id: (count, revenue)
            for restaurant_id, count, revenue in self._db.execute(order_query).all()
        }

        ranked = []
        for restaurant_id, name in self._db.execute(select(Restaurant.id, Restaurant.name)).all():
            order_count, revenue = order_totals.get(restaurant_id, (0, 0))
            ranked.append(TopRestaurant(
                restaurant_id=restaurant_id,
                name=name,
                reservation_count=reservation_counts.get(restaurant_id, 0),
                order_count=order_count,
                revenue=_money(revenue),
            ))
        ranked.sort(key=lambda r: (-r.order_count, -r.revenue, r.restaurant_id))
        return ranked[:limit]

    def peak_hours(self, period: str = "month", today: date | None = None) -> list[PeakHour]:
        """Reservation counts per hour of day, busiest first."""
        since = period_start(period, today)
        query = select(Reservation.reservation_time)
        if since:
            query = query.where(Reservation.reservation_date >= since)
        counts = Counter(value.hour for value in self._db.scalars(query).all())
        return [
            PeakHour(hour=hour, reservation_count=count)
            for hour, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

    def recent_reservations(self, limit: int = 20) -> list[Reservation]:
        return list(self._db.scalars(
            select(Reservation)
            .order_by(
                Reservation.reservation_date.desc(),
                Reservation.reservation_time.desc(),
                Reservation.id.desc(),
            )
            .limit(limit)
        ).all())

    def revenue_by_day(self, days: int = 30, today: date | None = None) -> list[RevenueByDay]:
        """Completed-order revenue per calendar day, newest first."""
        since = (today or date.today()) - timedelta(days=days)
        rows = self._db.execute(
            select(Order.created_at, Order.total_amount).where(
                Order.status == OrderStatus.COMPLETED,
                Order.created_at >= datetime.combine(since, time.min, tzinfo=timezone.utc),
            )
        ).all()

        revenue: dict[date, Decimal] = defaultdict(Decimal)
        counts: Counter = Counter()
        for created_at, total in rows:
            day = created_at.date()
            revenue[day] += Decimal(total or 0)
            counts[day] += 1

        return [
            RevenueByDay(day=day, revenue=float(revenue[day]), order_count=counts[day])
            for day in sorted(revenue, reverse=True)
        ]
