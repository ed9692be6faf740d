"""
Order Models: Order, OrderItem.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablebook_shared.config.constants import OrderStatus, PaymentStatus

from .base import BigIntPK, Base, TimestampMixin, in_clause

if TYPE_CHECKING:
    from .menu import MenuItem
    from .reservation import Reservation
    from .billing import Payment, PaymentTransaction


class Order(TimestampMixin, Base):
    """
    A checked-out order.

    Two independent status axes: fulfillment (status) and payment
    (payment_status). Line items never change after creation.
    """

    # "order" is a reserved SQL keyword
    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    customer_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("customer.id", ondelete="SET NULL"), nullable=True, index=True
    )
    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reservation_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("reservation.id", ondelete="SET NULL"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderStatus.PENDING)
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.UNPAID
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(30))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint(in_clause("status", OrderStatus.ALL), name="ck_order_status"),
        CheckConstraint(in_clause("payment_status", PaymentStatus.ALL), name="ck_order_payment_status"),
        CheckConstraint("total_amount >= 0", name="ck_order_total_non_negative"),
        Index("ix_order_restaurant_status", "restaurant_id", "status"),
    )

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", passive_deletes=True
    )
    reservation: Mapped[Optional["Reservation"]] = relationship(back_populates="orders")
    payments: Mapped[list["Payment"]] = relationship(back_populates="order")
    transactions: Mapped[list["PaymentTransaction"]] = relationship(back_populates="order")


class OrderItem(Base):
    """Line item with the unit price captured at checkout."""

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    menu_item_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("menu_item.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
    )

    order: Mapped["Order"] = relationship(back_populates="items")
    menu_item: Mapped[Optional["MenuItem"]] = relationship()

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, qty={self.quantity})>"
