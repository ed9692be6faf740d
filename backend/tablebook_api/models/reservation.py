"""
Reservation Model.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablebook_shared.config.constants import ReservationStatus

from .base import BigIntPK, Base, TimestampMixin, in_clause

if TYPE_CHECKING:
    from .restaurant import Restaurant, Table
    from .user import Customer
    from .order import Order


class Reservation(TimestampMixin, Base):
    """
    A customer's booking at a restaurant, optionally on a specific table.

    At most one active reservation (status not cancelled/no-show) may occupy
    a table within any overlapping service window on the same date.
    Status changes go through ReservationService.
    """

    __tablename__ = "reservation"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    # Nullable so a deleted customer does not erase the venue's history
    customer_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("customer.id", ondelete="SET NULL"), nullable=True, index=True
    )
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    table_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("restaurant_table.id"), nullable=True
    )
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    reservation_time: Mapped[time] = mapped_column(Time, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ReservationStatus.PENDING, index=True
    )
    special_requests: Mapped[Optional[str]] = mapped_column(Text)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(String(500))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)

    __table_args__ = (
        CheckConstraint("party_size > 0", name="ck_reservation_party_size_positive"),
        CheckConstraint(in_clause("status", ReservationStatus.ALL), name="ck_reservation_status"),
        # Availability lookups: all reservations of a table on a date
        Index("ix_reservation_table_date", "table_id", "reservation_date"),
        Index("ix_reservation_restaurant_date", "restaurant_id", "reservation_date"),
    )

    customer: Mapped[Optional["Customer"]] = relationship(back_populates="reservations")
    restaurant: Mapped["Restaurant"] = relationship(back_populates="reservations")
    table: Mapped[Optional["Table"]] = relationship(back_populates="reservations")
    orders: Mapped[list["Order"]] = relationship(back_populates="reservation")

    @property
    def is_active(self) -> bool:
        return self.status not in ReservationStatus.INACTIVE
