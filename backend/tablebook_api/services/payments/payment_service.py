"""
Gateway payment tracking.

A PaymentTransaction leaves "pending" at most once, and a completed one can
later be refunded once. Webhook deliveries and status polls both go through
apply_gateway_status, which applies only those edges, so replays and
out-of-order deliveries are no-ops.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from tablebook_shared.config.constants import (
    NotificationType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    TRANSACTION_TO_PAYMENT_STATUS,
    TransactionStatus,
    map_gateway_status,
    validate_transaction_transition,
)
from tablebook_shared.config.logging import payment_logger as logger
from tablebook_shared.config.settings import settings
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.utils.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    OrderNotFoundError,
    TransientError,
    ValidationError,
)
from tablebook_shared.utils.schemas import PaymentStatusOutput, WebhookAck
from tablebook_api.models import Customer, Order, PaymentTransaction
from tablebook_api.services.events.notification_service import NotificationEmitter

from .hitpay_client import HitPayClient, verify_signature


def webhook_identifiers(payload: dict[str, Any]) -> tuple[str | None, str | None]:
    """
    (payment_id, transaction_id) of a webhook delivery.

    Payment-request deliveries carry ``id``; payment deliveries carry
    ``payment_request_id`` and a ``payments`` list.
    """
    payment_id = payload.get("id") or payload.get("payment_request_id")
    transaction_id = None
    payments = payload.get("payments")
    if isinstance(payments, list) and payments and isinstance(payments[0], dict):
        transaction_id = payments[0].get("id")
    transaction_id = transaction_id or payload.get("id")
    return (
        str(payment_id) if payment_id else None,
        str(transaction_id) if transaction_id else None,
    )


def verify_webhook_signature(raw_body: bytes, signature: str | None, salt: str | None = None) -> bool:
    """True when no salt is configured or the signature matches the body."""
    salt = settings.hitpay_salt if salt is None else salt
    if not salt:
        logger.warning("Webhook signature verification skipped - no salt configured")
        return True
    valid = verify_signature(raw_body, signature, salt)
    if not valid:
        logger.warning("Webhook signature mismatch", has_signature=bool(signature))
    return valid


class PaymentService:
    """Hosted checkout and gateway status tracking."""

    def __init__(
        self,
        db: Session,
        gateway: HitPayClient | None = None,
        notifier: NotificationEmitter | None = None,
    ):
        self._db = db
        self._gateway = gateway or HitPayClient()
        self._notifier = notifier or NotificationEmitter(db)

    async def create_checkout(self, customer_id: int, order_id: int) -> PaymentTransaction:
        """
        Open a hosted checkout for one of the customer's unpaid orders.

        Raises:
            OrderNotFoundError: order not owned by the customer
            ConflictError: order already paid or cancelled
            TransientError / ExternalServiceError: gateway failure
        """
        order = self._db.scalar(
            select(Order).where(Order.id == order_id, Order.customer_id == customer_id)
        )
        if order is None:
            raise OrderNotFoundError(order_id, customer_id=customer_id)
        if order.payment_status == PaymentStatus.PAID:
            raise ConflictError("Order is already paid", order_id=order_id)
        if order.status == OrderStatus.CANCELLED:
            raise ConflictError("Cannot pay for a cancelled order", order_id=order_id)

        customer = self._db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)

        amount = order.total_amount
        email, name = customer.email, customer.name

        # No DB transaction stays open across the gateway call
        self._db.rollback()
        data = await self._gateway.create_payment_request(
            order_id=order_id,
            amount=amount,
            email=email,
            name=name,
        )

        transaction = PaymentTransaction(
            order_id=order_id,
            payment_id=str(data["id"]),
            reference_number=data.get("reference_number") or f"ORD-{order_id}",
            payment_url=data.get("url"),
            amount=amount,
            currency=data.get("currency") or settings.hitpay_currency,
            status=TransactionStatus.PENDING,
            payment_method=PaymentMethod.HITPAY,
        )
        self._db.add(transaction)

        order = self._db.scalar(select(Order).where(Order.id == order_id).with_for_update())
        if order.payment_status != PaymentStatus.PAID:
            order.payment_status = PaymentStatus.PENDING
        safe_commit(self._db)

        logger.info(
            "Checkout transaction recorded",
            order_id=order.id,
            payment_id=transaction.payment_id,
            amount=str(transaction.amount),
        )
        return transaction

    def apply_gateway_status(
        self,
        payment_id: str,
        raw_status: str | None,
        transaction_id: str | None = None,
    ) -> tuple[PaymentTransaction | None, bool]:
        """
        Apply a gateway status to a transaction.

        Returns (transaction, applied). Only edges in TRANSACTION_TRANSITIONS
        are applied: pending to a final outcome, then completed to refunded.
        Anything else (unknown transaction, replay, out-of-order delivery,
        a status that maps to pending) is ignored. A paid order only changes
        payment_status through a refund.
        """
        transaction = self._db.scalar(
            select(PaymentTransaction)
            .where(PaymentTransaction.payment_id == payment_id)
            .with_for_update()
        )
        if transaction is None:
            self._db.rollback()
            logger.warning("Gateway status for unknown transaction", payment_id=payment_id)
            return None, False

        new_status = map_gateway_status(raw_status)
        if not validate_transaction_transition(transaction.status, new_status):
            current = transaction.status
            self._db.rollback()
            logger.info(
                "Gateway status ignored",
                payment_id=payment_id,
                current_status=current,
                gateway_status=raw_status,
            )
            return transaction, False

        transaction.status = new_status
        if transaction_id and new_status != TransactionStatus.REFUNDED:
            transaction.transaction_id = transaction_id

        order = self._db.scalar(
            select(Order).where(Order.id == transaction.order_id).with_for_update()
        )
        if order is not None:
            if new_status == TransactionStatus.REFUNDED:
                if order.payment_status == PaymentStatus.PAID:
                    order.payment_status = PaymentStatus.REFUNDED
            elif order.payment_status != PaymentStatus.PAID:
                order.payment_status = TRANSACTION_TO_PAYMENT_STATUS[new_status]
                if new_status == TransactionStatus.COMPLETED:
                    order.payment_method = PaymentMethod.HITPAY
        safe_commit(self._db)

        logger.info(
            "Gateway status applied",
            payment_id=payment_id,
            order_id=transaction.order_id,
            status=new_status,
        )

        if new_status == TransactionStatus.COMPLETED and order is not None:
            self._notifier.emit_to_venue(
                order.restaurant_id,
                NotificationType.PAYMENT_RECEIVED,
                "Payment Received",
                f"Payment of {transaction.currency} {transaction.amount:.2f} received for order #{order.id}",
                reservation_id=order.reservation_id,
            )
        return transaction, True

    def handle_webhook(self, payload: dict[str, Any]) -> WebhookAck:
        """
        Process one gateway webhook delivery.

        Raises:
            ValidationError: delivery without a payment id
        """
        payment_id, transaction_id = webhook_identifiers(payload)
        if not payment_id:
            raise ValidationError("Missing payment_id")

        raw_status = payload.get("status")
        logger.info("Gateway webhook received", payment_id=payment_id, gateway_status=raw_status)

        transaction, applied = self.apply_gateway_status(payment_id, raw_status, transaction_id)
        status = transaction.status if transaction is not None else map_gateway_status(raw_status)
        return WebhookAck(received=True, applied=applied, status=status)

    def get_transaction_for_customer(self, customer_id: int, payment_id: str) -> PaymentTransaction:
        transaction = self._db.scalar(
            select(PaymentTransaction)
            .join(Order, PaymentTransaction.order_id == Order.id)
            .where(
                PaymentTransaction.payment_id == payment_id,
                Order.customer_id == customer_id,
            )
        )
        if transaction is None:
            raise NotFoundError("Payment", payment_id)
        return transaction

    async def refresh_status(self, customer_id: int, payment_id: str) -> PaymentStatusOutput:
        """
        Status of a checkout; a pending one is checked with the gateway first.

        A gateway failure during the check is not an error for the caller:
        the stored status is returned with verified=False.
        """
        transaction = self.get_transaction_for_customer(customer_id, payment_id)
        verified = False

        if transaction.status == TransactionStatus.PENDING:
            self._db.rollback()
            try:
                data = await self._gateway.get_payment_request(payment_id)
            except (TransientError, ExternalServiceError) as exc:
                logger.warning(
                    "Gateway status check failed, returning stored status",
                    payment_id=payment_id,
                    error=str(exc.detail),
                )
            else:
                verified = True
                self.apply_gateway_status(payment_id, data.get("status"), data.get("transaction_id"))
            transaction = self.get_transaction_for_customer(customer_id, payment_id)

        return PaymentStatusOutput(
            payment_id=transaction.payment_id,
            order_id=transaction.order_id,
            status=transaction.status,
            amount=float(transaction.amount),
            currency=transaction.currency,
            transaction_id=transaction.transaction_id,
            verified=verified,
        )

    def list_for_customer(self, customer_id: int) -> list[PaymentTransaction]:
        return list(self._db.scalars(
            select(PaymentTransaction)
            .join(Order, PaymentTransaction.order_id == Order.id)
            .where(Order.customer_id == customer_id)
            .order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc())
        ).all())
