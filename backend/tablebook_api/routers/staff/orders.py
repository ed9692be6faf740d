"""
Staff order management, scoped to the staff member's restaurant.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_staff, get_venue_id
from tablebook_shared.utils.schemas import OrderOutput, OrderStatusLiteral, OrderStatusUpdate
from tablebook_api.services.domain import OrderService


router = APIRouter(tags=["staff-orders"])


@router.get("/orders", response_model=list[OrderOutput])
def list_orders(
    status: OrderStatusLiteral | None = None,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> list[OrderOutput]:
    return [OrderOutput.model_validate(o) for o in OrderService(db).list_for_venue(get_venue_id(ctx), status)]


@router.get("/orders/{order_id}", response_model=OrderOutput)
def get_order(order_id: int, db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> OrderOutput:
    return OrderOutput.model_validate(OrderService(db).get_for_venue(get_venue_id(ctx), order_id))


@router.patch("/orders/{order_id}/status", response_model=OrderOutput)
def set_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> OrderOutput:
    return OrderOutput.model_validate(OrderService(db).set_status(get_venue_id(ctx), order_id, body.status))
