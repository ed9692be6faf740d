"""
Notification Model: rows polled by the staff and customer inboxes.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tablebook_shared.config.constants import NotificationType

from .base import BigIntPK, Base, TimestampMixin, in_clause


class Notification(TimestampMixin, Base):
    """
    Inbox entry for either a restaurant (staff inbox) or a customer, never both.
    Only is_read changes after creation.
    """

    __tablename__ = "notification"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    restaurant_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=True
    )
    customer_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("customer.id", ondelete="CASCADE"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    reservation_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("reservation.id", ondelete="SET NULL"), nullable=True
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(restaurant_id IS NOT NULL AND customer_id IS NULL) "
            "OR (restaurant_id IS NULL AND customer_id IS NOT NULL)",
            name="ck_notification_single_target",
        ),
        CheckConstraint(in_clause("type", NotificationType.ALL), name="ck_notification_type"),
        Index("ix_notification_restaurant_read", "restaurant_id", "is_read"),
        Index("ix_notification_customer_read", "customer_id", "is_read"),
    )
