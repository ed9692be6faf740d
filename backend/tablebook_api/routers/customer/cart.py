"""
Customer cart router.
Cart lines are per customer; quantities are capped server side.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_customer, get_subject_id
from tablebook_shared.utils.schemas import CartItemInput, CartItemUpdate, CartOutput
from tablebook_api.services.domain import CartService


router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartOutput)
def view_cart(db: Session = Depends(get_db), ctx: dict = Depends(require_customer)) -> CartOutput:
    return CartService(db).view(get_subject_id(ctx))


@router.post("", response_model=CartOutput)
def add_to_cart(
    body: CartItemInput,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> CartOutput:
    """Add a menu item; an existing line for the same item is incremented."""
    return CartService(db).add(get_subject_id(ctx), body.menu_item_id, body.quantity)


@router.patch("/{item_id}", response_model=CartOutput)
def update_cart_item(
    item_id: int,
    body: CartItemUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> CartOutput:
    return CartService(db).update(get_subject_id(ctx), item_id, body.quantity)


@router.delete("/{item_id}", response_model=CartOutput)
def remove_cart_item(
    item_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> CartOutput:
    return CartService(db).remove(get_subject_id(ctx), item_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(db: Session = Depends(get_db), ctx: dict = Depends(require_customer)) -> None:
    CartService(db).clear(get_subject_id(ctx))
