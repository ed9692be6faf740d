"""
Venue Models: Restaurant, Table.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BigIntPK, Base, TimestampMixin

if TYPE_CHECKING:
    from .menu import MenuCategory, MenuItem
    from .reservation import Reservation
    from .user import Staff


class Restaurant(TimestampMixin, Base):
    """
    A venue. Owns tables, menu, staff and reservations.
    Deleting a restaurant cascades to everything it owns.
    """

    __tablename__ = "restaurant"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    cuisine_type: Mapped[Optional[str]] = mapped_column(String(100))
    address: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    opening_time: Mapped[Optional[str]] = mapped_column(String(5))  # "HH:MM"
    closing_time: Mapped[Optional[str]] = mapped_column(String(5))
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    rating: Mapped[Decimal] = mapped_column(Numeric(2, 1), default=Decimal("0.0"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    tables: Mapped[list["Table"]] = relationship(
        back_populates="restaurant", cascade="all, delete-orphan", passive_deletes=True
    )
    staff: Mapped[list["Staff"]] = relationship(
        back_populates="restaurant", cascade="all, delete-orphan", passive_deletes=True
    )
    menu_categories: Mapped[list["MenuCategory"]] = relationship(
        back_populates="restaurant", cascade="all, delete-orphan", passive_deletes=True
    )
    menu_items: Mapped[list["MenuItem"]] = relationship(
        back_populates="restaurant", cascade="all, delete-orphan", passive_deletes=True
    )
    reservations: Mapped[list["Reservation"]] = relationship(
        back_populates="restaurant", cascade="all, delete-orphan", passive_deletes=True
    )


class Table(TimestampMixin, Base):
    """
    Physical table in a restaurant.
    Capacity is fixed once reservations reference the table.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    table_number: Mapped[str] = mapped_column(String(20), nullable=False)  # "T1", "Patio-3"
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(100))  # "indoor", "outdoor", "window"
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("restaurant_id", "table_number", name="uq_table_restaurant_number"),
        CheckConstraint("capacity > 0", name="ck_table_capacity_positive"),
        Index("ix_table_restaurant_available", "restaurant_id", "is_available"),
    )

    restaurant: Mapped["Restaurant"] = relationship(back_populates="tables")
    # Deletes are refused while reservations exist; never null their table_id
    reservations: Mapped[list["Reservation"]] = relationship(back_populates="table", passive_deletes="all")
