"""
Principal Models: Customer, Staff, AdminUser.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablebook_shared.config.constants import StaffRoles

from .base import BigIntPK, Base, TimestampMixin, in_clause

if TYPE_CHECKING:
    from .restaurant import Restaurant
    from .reservation import Reservation


class Customer(TimestampMixin, Base):
    """Registered diner who books tables and places orders."""

    __tablename__ = "customer"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    reservations: Mapped[list["Reservation"]] = relationship(back_populates="customer")


class Staff(TimestampMixin, Base):
    """
    Venue employee. Every staff operation is scoped to restaurant_id.
    """

    __tablename__ = "staff"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=StaffRoles.STAFF)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint(in_clause("role", StaffRoles.ALL), name="ck_staff_role"),
    )

    restaurant: Mapped["Restaurant"] = relationship(back_populates="staff")


class AdminUser(TimestampMixin, Base):
    """Platform administrator."""

    __tablename__ = "app_admin"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
