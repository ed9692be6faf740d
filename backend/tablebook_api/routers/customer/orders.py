"""
Customer orders and manual payments router.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_customer, get_subject_id
from tablebook_shared.utils.schemas import (
    OrderCreate,
    OrderOutput,
    PaymentCreate,
    PaymentOutput,
)
from tablebook_api.services.domain import OrderService


router = APIRouter(prefix="/api/orders", tags=["orders"])
payments_router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def create_order(
    body: OrderCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> OrderOutput:
    """
    Place an order. Prices are taken from the menu, never from the client.
    Ordered items are removed from the customer's cart.
    """
    order = OrderService(db).create(get_subject_id(ctx), body)
    return OrderOutput.model_validate(order)


@router.get("", response_model=list[OrderOutput])
def list_orders(db: Session = Depends(get_db), ctx: dict = Depends(require_customer)) -> list[OrderOutput]:
    return [OrderOutput.model_validate(o) for o in OrderService(db).list_for_customer(get_subject_id(ctx))]


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> OrderOutput:
    return OrderOutput.model_validate(OrderService(db).get_for_customer(get_subject_id(ctx), order_id))


@payments_router.post("", response_model=PaymentOutput, status_code=status.HTTP_201_CREATED)
def record_payment(
    body: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> PaymentOutput:
    """Record a cash or card payment and mark the order paid."""
    payment = OrderService(db).record_payment(get_subject_id(ctx), body)
    return PaymentOutput.model_validate(payment)


@payments_router.get("", response_model=list[PaymentOutput])
def list_payments(db: Session = Depends(get_db), ctx: dict = Depends(require_customer)) -> list[PaymentOutput]:
    return [PaymentOutput.model_validate(p) for p in OrderService(db).list_payments(get_subject_id(ctx))]
