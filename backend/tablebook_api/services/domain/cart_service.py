"""
Cart Domain Service.

One row per (customer, menu item); adding an item already in the cart
increases its quantity up to the per-line maximum.
"""

from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from tablebook_shared.config.constants import Limits
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.utils.exceptions import NotFoundError, ValidationError
from tablebook_shared.utils.schemas import CartItemOutput, CartOutput
from tablebook_api.models import CartItem, MenuItem


class CartService:
    """Service for a customer's cart."""

    def __init__(self, db: Session):
        self._db = db

    def view(self, customer_id: int) -> CartOutput:
        rows = self._db.scalars(
            select(CartItem)
            .options(joinedload(CartItem.menu_item))
            .where(CartItem.customer_id == customer_id)
            .order_by(CartItem.id)
        ).all()

        items = []
        total = Decimal("0.00")
        for row in rows:
            price = Decimal(row.menu_item.price)
            subtotal = price * row.quantity
            total += subtotal
            items.append(CartItemOutput(
                id=row.id,
                menu_item_id=row.menu_item_id,
                quantity=row.quantity,
                name=row.menu_item.name,
                price=float(price),
                restaurant_id=row.menu_item.restaurant_id,
                subtotal=float(subtotal),
            ))
        return CartOutput(items=items, total=float(total))

    def add(self, customer_id: int, menu_item_id: int, quantity: int) -> CartOutput:
        menu_item = self._db.get(MenuItem, menu_item_id)
        if menu_item is None:
            raise NotFoundError("Menu item", menu_item_id)
        if not menu_item.is_available:
            raise ValidationError(f"Menu item '{menu_item.name}' is not available", menu_item_id=menu_item_id)

        existing = self._db.scalar(
            select(CartItem).where(
                CartItem.customer_id == customer_id,
                CartItem.menu_item_id == menu_item_id,
            )
        )
        if existing is not None:
            existing.quantity = min(existing.quantity + quantity, Limits.MAX_QUANTITY)
        else:
            self._db.add(CartItem(customer_id=customer_id, menu_item_id=menu_item_id, quantity=quantity))
        safe_commit(self._db)
        return self.view(customer_id)

    def _own_item(self, customer_id: int, cart_item_id: int) -> CartItem:
        item = self._db.scalar(
            select(CartItem).where(CartItem.id == cart_item_id, CartItem.customer_id == customer_id)
        )
        if item is None:
            raise NotFoundError("Cart item", cart_item_id)
        return item

    def update(self, customer_id: int, cart_item_id: int, quantity: int) -> CartOutput:
        item = self._own_item(customer_id, cart_item_id)
        item.quantity = quantity
        safe_commit(self._db)
        return self.view(customer_id)

    def remove(self, customer_id: int, cart_item_id: int) -> CartOutput:
        item = self._own_item(customer_id, cart_item_id)
        self._db.delete(item)
        safe_commit(self._db)
        return self.view(customer_id)

    def clear(self, customer_id: int) -> None:
        self._db.execute(delete(CartItem).where(CartItem.customer_id == customer_id))
        safe_commit(self._db)
