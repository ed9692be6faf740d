"""
Order Domain Service.

Orders have two independent status axes:
- status: fulfillment, driven by staff
- payment_status: driven by manual payments and the gateway

Line items capture the menu price at checkout and never change afterwards.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from tablebook_shared.config.constants import (
    NotificationType,
    OrderStatus,
    PaymentStatus,
    TransactionStatus,
)
from tablebook_shared.config.logging import get_logger
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.utils.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from tablebook_shared.utils.schemas import OrderCreate, PaymentCreate
from tablebook_api.models import (
    CartItem,
    Customer,
    MenuItem,
    Order,
    OrderItem,
    Payment,
    Reservation,
    Restaurant,
)
from tablebook_api.services.events.notification_service import NotificationEmitter

logger = get_logger(__name__)


class OrderService:
    """
    Domain service for orders and manual payments.
    """

    def __init__(self, db: Session, notifier: NotificationEmitter | None = None):
        self._db = db
        self._notifier = notifier or NotificationEmitter(db)

    # =========================================================================
    # Queries
    # =========================================================================

    def _query(self):
        return select(Order).options(selectinload(Order.items))

    def get_for_customer(self, customer_id: int, order_id: int) -> Order:
        order = self._db.scalar(
            self._query().where(Order.id == order_id, Order.customer_id == customer_id)
        )
        if order is None:
            raise OrderNotFoundError(order_id, customer_id=customer_id)
        return order

    def get_for_venue(self, venue_id: int, order_id: int, lock: bool = False) -> Order:
        query = self._query().where(Order.id == order_id, Order.restaurant_id == venue_id)
        if lock:
            query = query.with_for_update()
        order = self._db.scalar(query)
        if order is None:
            raise OrderNotFoundError(order_id, restaurant_id=venue_id)
        return order

    def list_for_customer(self, customer_id: int) -> list[Order]:
        return list(self._db.scalars(
            self._query()
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).all())

    def list_for_venue(self, venue_id: int, status: str | None = None) -> list[Order]:
        query = self._query().where(Order.restaurant_id == venue_id)
        if status:
            query = query.where(Order.status == status)
        return list(self._db.scalars(query.order_by(Order.created_at.desc(), Order.id.desc())).all())

    def list_all(self, status: str | None = None, limit: int = 200) -> list[Order]:
        query = self._query()
        if status:
            query = query.where(Order.status == status)
        return list(self._db.scalars(
            query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        ).all())

    # =========================================================================
    # Commands
    # =========================================================================

    def create(self, customer_id: int, request: OrderCreate, clear_cart: bool = True) -> Order:
        """
        Check out an order.

        Unit prices come from the menu, never from the client.

        Raises:
            NotFoundError: restaurant, menu item or reservation unknown to the customer
            ValidationError: menu item unavailable or from another restaurant
        """
        restaurant = self._db.scalar(
            select(Restaurant).where(
                Restaurant.id == request.restaurant_id,
                Restaurant.is_active.is_(True),
            )
        )
        if restaurant is None:
            raise NotFoundError("Restaurant", request.restaurant_id)

        customer = self._db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)

        reservation = None
        if request.reservation_id is not None:
            reservation = self._db.scalar(
                select(Reservation)
                .where(
                    Reservation.id == request.reservation_id,
                    Reservation.customer_id == customer_id,
                    Reservation.restaurant_id == restaurant.id,
                )
                .with_for_update()
            )
            if reservation is None:
                raise NotFoundError("Reservation", request.reservation_id)

        item_ids = {line.menu_item_id for line in request.items}
        menu_items = {
            item.id: item
            for item in self._db.scalars(select(MenuItem).where(MenuItem.id.in_(item_ids))).all()
        }

        total = Decimal("0.00")
        order_items: list[OrderItem] = []
        for line in request.items:
            menu_item = menu_items.get(line.menu_item_id)
            if menu_item is None:
                raise NotFoundError("Menu item", line.menu_item_id)
            if menu_item.restaurant_id != restaurant.id:
                raise ValidationError(
                    f"Menu item {menu_item.id} does not belong to restaurant {restaurant.id}",
                    menu_item_id=menu_item.id,
                )
            if not menu_item.is_available:
                raise ValidationError(
                    f"Menu item '{menu_item.name}' is not available",
                    menu_item_id=menu_item.id,
                )
            unit_price = Decimal(menu_item.price)
            subtotal = unit_price * line.quantity
            total += subtotal
            order_items.append(OrderItem(
                menu_item_id=menu_item.id,
                quantity=line.quantity,
                unit_price=unit_price,
                subtotal=subtotal,
            ))

        order = Order(
            customer_id=customer_id,
            restaurant_id=restaurant.id,
            reservation_id=reservation.id if reservation else None,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.UNPAID,
            total_amount=total,
            notes=request.notes,
            items=order_items,
        )
        self._db.add(order)

        if reservation is not None:
            reservation.total_amount = Decimal(reservation.total_amount or 0) + total

        if clear_cart:
            # Only the lines that were ordered leave the cart
            for cart_item in self._db.scalars(
                select(CartItem).where(
                    CartItem.customer_id == customer_id,
                    CartItem.menu_item_id.in_(item_ids),
                )
            ).all():
                self._db.delete(cart_item)

        safe_commit(self._db)
        self._db.refresh(order)

        logger.info(
            "Order created",
            order_id=order.id,
            restaurant_id=restaurant.id,
            item_count=len(order_items),
            total=str(total),
        )

        self._notifier.emit_to_venue(
            restaurant.id,
            NotificationType.ORDER_NEW,
            "New Order",
            f"{customer.name} placed order #{order.id} ({len(order_items)} item(s), total {total:.2f})",
            reservation_id=order.reservation_id,
        )
        return order

    def set_status(self, venue_id: int, order_id: int, new_status: str) -> Order:
        """Staff status change. Any enumerated status except leaving a terminal one."""
        if new_status not in OrderStatus.ALL:
            raise ValidationError(f"Unknown order status '{new_status}'", status=new_status)

        order = self.get_for_venue(venue_id, order_id, lock=True)
        previous = order.status
        if previous == new_status:
            self._db.rollback()
            return order
        if previous in OrderStatus.TERMINAL:
            self._db.rollback()
            raise InvalidTransitionError("Order", previous, new_status, order_id=order_id)

        order.status = new_status
        safe_commit(self._db)

        logger.info(
            "Order status set",
            order_id=order.id,
            restaurant_id=venue_id,
            from_status=previous,
            to_status=new_status,
        )
        return order

    def record_payment(self, customer_id: int, request: PaymentCreate) -> Payment:
        """
        Record an offline payment for one of the customer's orders.

        Raises:
            OrderNotFoundError: order not owned by the customer
            ConflictError: order already paid or cancelled
        """
        order = self._db.scalar(
            select(Order)
            .where(Order.id == request.order_id, Order.customer_id == customer_id)
            .with_for_update()
        )
        if order is None:
            raise OrderNotFoundError(request.order_id, customer_id=customer_id)

        if order.payment_status == PaymentStatus.PAID:
            self._db.rollback()
            raise ConflictError("Order is already paid", order_id=order.id)
        if order.status == OrderStatus.CANCELLED:
            self._db.rollback()
            raise ConflictError("Cannot pay for a cancelled order", order_id=order.id)

        payment = Payment(
            order_id=order.id,
            amount=Decimal(str(request.amount)),
            payment_method=request.payment_method,
            status=TransactionStatus.COMPLETED,
            transaction_reference=request.transaction_reference,
        )
        self._db.add(payment)
        order.payment_status = PaymentStatus.PAID
        order.payment_method = request.payment_method
        safe_commit(self._db)

        logger.info(
            "Manual payment recorded",
            order_id=order.id,
            payment_id=payment.id,
            method=request.payment_method,
        )
        return payment

    def list_payments(self, customer_id: int) -> list[Payment]:
        return list(self._db.scalars(
            select(Payment)
            .join(Order, Payment.order_id == Order.id)
            .where(Order.customer_id == customer_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
        ).all())
