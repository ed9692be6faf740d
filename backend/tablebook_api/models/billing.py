"""
Billing Models: Payment (manual record), PaymentTransaction (gateway checkout).
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablebook_shared.config.constants import PaymentMethod, TransactionStatus

from .base import BigIntPK, Base, TimestampMixin, in_clause

if TYPE_CHECKING:
    from .order import Order


class Payment(TimestampMixin, Base):
    """
    Payment recorded directly by the customer (cash, card at counter, ...).
    """

    __tablename__ = "payment"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TransactionStatus.COMPLETED)
    transaction_reference: Mapped[Optional[str]] = mapped_column(String(255))

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
        CheckConstraint(in_clause("payment_method", PaymentMethod.ALL), name="ck_payment_method"),
    )

    order: Mapped["Order"] = relationship(back_populates="payments")


class PaymentTransaction(TimestampMixin, Base):
    """
    Hosted-checkout transaction at the payment gateway.

    status only leaves "pending" once; terminal values are never overwritten.
    """

    __tablename__ = "payment_transaction"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    payment_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)  # gateway id
    reference_number: Mapped[str] = mapped_column(String(100), nullable=False)
    payment_url: Mapped[Optional[str]] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MYR")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TransactionStatus.PENDING)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50))
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255))

    __table_args__ = (
        CheckConstraint(in_clause("status", TransactionStatus.ALL), name="ck_payment_transaction_status"),
    )

    order: Mapped["Order"] = relationship(back_populates="transactions")
